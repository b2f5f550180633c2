"""Integration tests for HistoryService against real git repositories."""

from pathlib import Path

import pytest

from sprig.adapters.factory import ServiceFactory
from sprig.core.history import HistoryService
from sprig.domain.exceptions import GitCommandError, NotFoundError
from tests.conftest import (
    ForkSetup,
    LinearRepo,
    commit_files,
    git,
    leftover_workspaces,
)


@pytest.fixture
def history(services: ServiceFactory) -> HistoryService:
    return services.history


class TestBranchesAndTags:
    """Tests for branch and tag listings."""

    def test_empty_repository_has_no_branches(self, history: HistoryService, empty_repo: Path):
        """Test a repository without commits lists nothing and counts zero."""
        assert history.list_branches(empty_repo) == []
        assert history.list_branch_names(empty_repo) == []
        assert history.count_commits(empty_repo, "main") == 0

    def test_list_branches_resolves_heads(self, history: HistoryService, linear_repo: LinearRepo):
        """Test each branch carries its head commit and the current flag."""
        git(linear_repo.path, "branch", "old", linear_repo.a)

        branches = {branch.name: branch for branch in history.list_branches(linear_repo.path)}

        assert set(branches) == {"main", "old"}
        assert branches["main"].head_commit.hash == linear_repo.c
        assert branches["main"].is_current
        assert branches["old"].head_commit.hash == linear_repo.a
        assert not branches["old"].is_current

    def test_has_branch(self, history: HistoryService, linear_repo: LinearRepo):
        """Test branch existence checks."""
        assert history.has_branch(linear_repo.path, "main")
        assert not history.has_branch(linear_repo.path, "missing")

    def test_list_tags(self, history: HistoryService, linear_repo: LinearRepo):
        """Test lightweight and annotated tags resolve to their commits."""
        git(linear_repo.path, "tag", "v1", linear_repo.a)
        git(linear_repo.path, "tag", "-a", "v2", "-m", "release two", linear_repo.b)

        tags = {tag.name: tag.tagged_commit.hash for tag in history.list_tags(linear_repo.path)}

        assert tags == {"v1": linear_repo.a, "v2": linear_repo.b}
        assert history.list_tag_names(linear_repo.path) == ["v1", "v2"]


class TestCommits:
    """Tests for single-commit lookups."""

    def test_get_commit_round_trips_hash(self, history: HistoryService, linear_repo: LinearRepo):
        """Test looking up a hash returns that commit."""
        commit = history.get_commit(linear_repo.path, linear_repo.b)
        assert commit.hash == linear_repo.b
        assert commit.subject == "B"
        assert commit.committer_name == "Test User"
        assert commit.committer_email == "test@example.com"
        assert commit.commit_time_ms % 1000 == 0

    def test_commit_body(self, history: HistoryService, linear_repo: LinearRepo):
        """Test multi-line messages are split into subject and body."""
        (linear_repo.path / "d.txt").write_text("d\n")
        git(linear_repo.path, "add", "d.txt")
        git(linear_repo.path, "commit", "-q", "-m", "Subject line", "-m", "Body paragraph\nsecond line")

        commit = history.get_last_commit(linear_repo.path, "main")

        assert commit.subject == "Subject line"
        assert commit.body == "Body paragraph\nsecond line"

    def test_unknown_ref_raises_not_found(self, history: HistoryService, linear_repo: LinearRepo):
        """Test an unresolvable ref is reported as NotFoundError."""
        with pytest.raises(NotFoundError):
            history.get_commit(linear_repo.path, "no-such-branch")

    def test_get_file_last_commit(self, history: HistoryService, linear_repo: LinearRepo):
        """Test the last commit touching a file is found, and '' means the root."""
        commit_files(linear_repo.path, {"a.txt": "changed\n"}, "D")

        assert history.get_file_last_commit(linear_repo.path, "main", "b.txt").hash == linear_repo.b
        assert history.get_file_last_commit(linear_repo.path, "main", "a.txt").subject == "D"
        assert history.get_file_last_commit(linear_repo.path, "main", "").subject == "D"

    def test_file_never_touched_raises_not_found(self, history: HistoryService, linear_repo: LinearRepo):
        """Test a path without history is NotFoundError."""
        with pytest.raises(NotFoundError):
            history.get_file_last_commit(linear_repo.path, "main", "nothing-here.txt")

    def test_first_and_last_commit_hashes(self, history: HistoryService, linear_repo: LinearRepo):
        """Test the root and tip commits of a branch."""
        assert history.first_commit_hash(linear_repo.path, "main") == linear_repo.a
        assert history.last_commit_hash(linear_repo.path, "main") == linear_repo.c

    def test_file_first_commit_hash(self, history: HistoryService, linear_repo: LinearRepo):
        """Test the commit that introduced a file."""
        commit_files(linear_repo.path, {"b.txt": "changed\n"}, "D")
        assert history.file_first_commit_hash(linear_repo.path, "b.txt", "main") == linear_repo.b


class TestPagination:
    """Tests for paginated commit listings."""

    def test_list_commits_newest_first(self, history: HistoryService, linear_repo: LinearRepo):
        """Test all commits are listed newest first."""
        commits = history.list_commits(linear_repo.path, "main")
        assert [c.hash for c in commits] == [linear_repo.c, linear_repo.b, linear_repo.a]

    def test_offset_and_limit(self, history: HistoryService, linear_repo: LinearRepo):
        """Test pagination windows over A -> B -> C."""
        first_page = history.list_commits(linear_repo.path, "main", offset=0, limit=2)
        second_page = history.list_commits(linear_repo.path, "main", offset=1, limit=1)
        assert [c.hash for c in first_page] == [linear_repo.c, linear_repo.b]
        assert [c.hash for c in second_page] == [linear_repo.b]

    def test_negative_offset_rejected(self, history: HistoryService, linear_repo: LinearRepo):
        """Test invalid bounds never reach git."""
        with pytest.raises(ValueError):
            history.list_commits(linear_repo.path, "main", offset=-1)

    def test_commits_between(self, history: HistoryService, linear_repo: LinearRepo):
        """Test the range excludes commits reachable from the base."""
        commits = history.list_commits_between(linear_repo.path, linear_repo.a, "main")
        assert [c.hash for c in commits] == [linear_repo.c, linear_repo.b]
        assert history.count_commits_between(linear_repo.path, linear_repo.a, "main") == 2
        assert history.count_commits(linear_repo.path, "main") == 3

    def test_file_commits(self, history: HistoryService, linear_repo: LinearRepo):
        """Test file history only contains commits touching the file."""
        d = commit_files(linear_repo.path, {"b.txt": "again\n"}, "D")

        commits = history.list_file_commits(linear_repo.path, "b.txt", "main")
        between = history.list_file_commits_between(linear_repo.path, "b.txt", linear_repo.b, "main")

        assert [c.hash for c in commits] == [d, linear_repo.b]
        assert [c.hash for c in between] == [d]


class TestCrossRepository:
    """Tests for fork comparisons staged in temporary workspaces."""

    def test_commits_between_forks(
        self, history: HistoryService, fork_setup: ForkSetup, workspace_root: Path
    ):
        """Test commits on the fork branch that upstream lacks."""
        git(fork_setup.fork_work, "checkout", "-q", "-b", "feature")
        one = commit_files(fork_setup.fork_work, {"f1.txt": "1\n"}, "fork one")
        two = commit_files(fork_setup.fork_work, {"f2.txt": "2\n"}, "fork two")
        git(fork_setup.fork_work, "push", "-q", "origin", "feature")

        commits = history.list_commits_between_forks(
            fork_setup.upstream, "main", fork_setup.fork, "feature"
        )
        count = history.count_commits_between_forks(
            fork_setup.upstream, "main", fork_setup.fork, "feature"
        )

        assert [c.hash for c in commits] == [two, one]
        assert count == 2
        assert leftover_workspaces(workspace_root) == []

    def test_commits_between_repositories_commits(
        self, history: HistoryService, fork_setup: ForkSetup, workspace_root: Path
    ):
        """Test hash ranges across repositories."""
        base = git(fork_setup.upstream, "rev-parse", "main").strip()
        git(fork_setup.fork_work, "checkout", "-q", "-b", "feature")
        tip = commit_files(fork_setup.fork_work, {"f.txt": "f\n"}, "fork change")
        git(fork_setup.fork_work, "push", "-q", "origin", "feature")

        commits = history.list_commits_between_repositories_commits(
            fork_setup.upstream, base, fork_setup.fork, tip
        )

        assert [c.hash for c in commits] == [tip]
        assert history.count_commits_between_repositories_commits(
            fork_setup.upstream, base, fork_setup.fork, tip
        ) == 1
        assert leftover_workspaces(workspace_root) == []

    def test_same_repository_needs_no_workspace(
        self, history: HistoryService, linear_repo: LinearRepo, workspace_root: Path
    ):
        """Test equal repository paths skip the temporary clone."""
        commits = history.list_commits_between_forks(
            linear_repo.path, linear_repo.a, linear_repo.path / ".", "main"
        )
        assert len(commits) == 2
        assert not workspace_root.exists()

    def test_missing_fork_branch_cleans_up(
        self, history: HistoryService, fork_setup: ForkSetup, workspace_root: Path
    ):
        """Test a failing cross-repository query still removes its workspace."""
        with pytest.raises(GitCommandError):
            history.count_commits_between_forks(
                fork_setup.upstream, "main", fork_setup.fork, "missing"
            )
        assert leftover_workspaces(workspace_root) == []
