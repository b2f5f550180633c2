"""Read-only history queries: branches, tags, commits and commit counts."""

from __future__ import annotations

import logging
from pathlib import Path

from sprig.core.fanout import fan_out
from sprig.core.parsing import (
    log_format_argument,
    parse_branch_listing,
    parse_count,
    parse_log,
    parse_single_commit,
    parse_tag_listing,
)
from sprig.core.refs import check_pagination, check_ref, normalize_path, same_repository
from sprig.core.workspace import WorkspaceManager
from sprig.domain.entities import Branch, Commit, Tag
from sprig.domain.exceptions import GitCommandError, NotFoundError
from sprig.ports.process import ProcessRunner

logger = logging.getLogger(__name__)

# stderr fragments git prints when a ref or revision range does not resolve
_UNKNOWN_REVISION_MARKERS = (
    "unknown revision",
    "bad revision",
    "ambiguous argument",
    "bad object",
    "invalid object name",
    "does not have any commits",
)


def is_unknown_revision(error: GitCommandError) -> bool:
    """Return True if git failed because a ref did not resolve."""
    stderr = error.stderr.lower()
    return any(marker in stderr for marker in _UNKNOWN_REVISION_MARKERS)


def _pagination_args(offset: int, limit: int | None) -> list[str]:
    check_pagination(offset, limit)
    args = [f"--skip={offset}"]
    if limit is not None:
        args.append(f"--max-count={limit}")
    return args


class HistoryService:
    """Branch, tag and commit queries against a single repository.

    Cross-repository variants stage a temporary workspace (clone of the base
    repository with the target added as a remote) and run the same query there.
    """

    def __init__(
        self,
        runner: ProcessRunner,
        workspaces: WorkspaceManager,
        max_workers: int = 8,
    ) -> None:
        """Initialize the history service.

        Args:
            runner: Git process runner.
            workspaces: Manager for cross-repository workspaces.
            max_workers: Fan-out width for per-branch/per-tag commit lookups.
        """
        self._runner = runner
        self._workspaces = workspaces
        self._max_workers = max_workers

    def _git(self, repo: Path, args: list[str]) -> str:
        return self._runner.run(args, cwd=Path(repo))

    def _log(self, repo: Path, args: list[str]) -> list[Commit]:
        return parse_log(self._git(repo, ["log", log_format_argument(), *args]))

    def _rev_list(self, repo: Path, args: list[str], what: str) -> list[str]:
        """Run git rev-list and return the listed hashes.

        Raises:
            NotFoundError: If git reports an unknown revision.
        """
        try:
            return self._git(repo, ["rev-list", *args]).split()
        except GitCommandError as e:
            if is_unknown_revision(e):
                raise NotFoundError(f"{what} not found in {repo}") from e
            raise

    def _single_commit(self, repo: Path, args: list[str], what: str) -> Commit:
        """Run a single-record log query.

        Raises:
            NotFoundError: If the query prints nothing or git reports an unknown revision.
        """
        try:
            output = self._git(repo, ["log", log_format_argument(), "--max-count=1", *args])
        except GitCommandError as e:
            if is_unknown_revision(e):
                raise NotFoundError(f"{what} not found in {repo}", hint=e.stderr.strip() or None) from e
            raise
        commit = parse_single_commit(output)
        if commit is None:
            raise NotFoundError(f"{what} not found in {repo}")
        return commit

    # ------------------------------------------------------------------
    # Branches and tags
    # ------------------------------------------------------------------

    def list_branch_names(self, repo: Path) -> list[str]:
        """List local branch names in git's order."""
        return [line.name for line in parse_branch_listing(self._git(repo, ["branch", "--list"]))]

    def has_branch(self, repo: Path, name: str) -> bool:
        """Return True if the repository has a local branch called name."""
        return name in self.list_branch_names(repo)

    def list_branches(self, repo: Path) -> list[Branch]:
        """List local branches with their head commits.

        Head commits are resolved concurrently; a repository without commits
        has no branches and yields an empty list.
        """
        lines = parse_branch_listing(self._git(repo, ["branch", "--list"]))
        heads = fan_out(
            lambda line: self.get_commit(repo, line.name),
            lines,
            max_workers=self._max_workers,
        )
        return [
            Branch(name=line.name, head_commit=head, is_current=line.is_current)
            for line, head in zip(lines, heads)
        ]

    def list_tag_names(self, repo: Path) -> list[str]:
        """List tag names."""
        return parse_tag_listing(self._git(repo, ["tag", "--list"]))

    def list_tags(self, repo: Path) -> list[Tag]:
        """List tags with the commits they resolve to."""
        names = self.list_tag_names(repo)
        commits = fan_out(
            lambda name: self.get_commit(repo, f"refs/tags/{name}"),
            names,
            max_workers=self._max_workers,
        )
        return [Tag(name=name, tagged_commit=commit) for name, commit in zip(names, commits)]

    # ------------------------------------------------------------------
    # Single commits
    # ------------------------------------------------------------------

    def get_commit(self, repo: Path, ref: str) -> Commit:
        """Get the commit a ref resolves to.

        Raises:
            NotFoundError: If ref does not resolve to a commit.
        """
        return self._single_commit(repo, [check_ref(ref), "--"], f"Commit '{ref}'")

    def get_last_commit(self, repo: Path, branch: str) -> Commit:
        """Get the tip commit of a branch.

        Raises:
            NotFoundError: If the branch does not exist.
        """
        return self._single_commit(repo, [check_ref(branch), "--"], f"Branch '{branch}'")

    def get_file_last_commit(self, repo: Path, ref: str, path: str) -> Commit:
        """Get the last commit reachable from ref that touched path.

        An empty path means the repository root.

        Raises:
            NotFoundError: If ref does not resolve or no commit touched path.
        """
        path = normalize_path(path)
        return self._single_commit(
            repo, [check_ref(ref), "--", path], f"Last commit of '{path}' at '{ref}'"
        )

    def first_commit_hash(self, repo: Path, ref: str = "HEAD") -> str:
        """Hash of the oldest root commit reachable from ref.

        Raises:
            NotFoundError: If ref has no history.
        """
        roots = self._rev_list(repo, ["--max-parents=0", check_ref(ref), "--"], f"Ref '{ref}'")
        if not roots:
            raise NotFoundError(f"No commits reachable from '{ref}' in {repo}")
        # rev-list lists newest first; unrelated histories can contribute several roots
        return roots[-1]

    def file_first_commit_hash(self, repo: Path, path: str, ref: str = "HEAD") -> str:
        """Hash of the first commit reachable from ref that touched path.

        Raises:
            NotFoundError: If no commit touched path.
        """
        hashes = self._rev_list(
            repo, ["--reverse", check_ref(ref), "--", normalize_path(path)], f"Ref '{ref}'"
        )
        if not hashes:
            raise NotFoundError(f"No commits touched '{path}' at '{ref}' in {repo}")
        return hashes[0]

    def last_commit_hash(self, repo: Path, branch: str) -> str:
        """Hash of the tip commit of a branch."""
        return self.get_last_commit(repo, branch).hash

    # ------------------------------------------------------------------
    # Paginated history
    # ------------------------------------------------------------------

    def list_commits(
        self,
        repo: Path,
        ref: str,
        offset: int = 0,
        limit: int | None = None,
    ) -> list[Commit]:
        """List commits reachable from ref, newest first.

        Pagination is applied by git (--skip/--max-count).
        """
        return self._log(repo, [*_pagination_args(offset, limit), check_ref(ref), "--"])

    def list_commits_between(
        self,
        repo: Path,
        base_ref: str,
        target_ref: str,
        offset: int = 0,
        limit: int | None = None,
    ) -> list[Commit]:
        """List commits reachable from target_ref but not from base_ref, newest first."""
        revision_range = f"{check_ref(base_ref)}..{check_ref(target_ref)}"
        return self._log(repo, [*_pagination_args(offset, limit), revision_range, "--"])

    def list_file_commits(
        self,
        repo: Path,
        path: str,
        ref: str,
        offset: int = 0,
        limit: int | None = None,
    ) -> list[Commit]:
        """List commits reachable from ref that touched path, newest first."""
        return self._log(
            repo,
            [*_pagination_args(offset, limit), check_ref(ref), "--", normalize_path(path)],
        )

    def list_file_commits_between(
        self,
        repo: Path,
        path: str,
        base_ref: str,
        target_ref: str,
        offset: int = 0,
        limit: int | None = None,
    ) -> list[Commit]:
        """List commits in base_ref..target_ref that touched path, newest first."""
        revision_range = f"{check_ref(base_ref)}..{check_ref(target_ref)}"
        return self._log(
            repo,
            [*_pagination_args(offset, limit), revision_range, "--", normalize_path(path)],
        )

    # ------------------------------------------------------------------
    # Counts
    # ------------------------------------------------------------------

    def count_commits(self, repo: Path, ref: str) -> int:
        """Count commits reachable from ref.

        A repository without branches (no commits yet) has nothing to count and
        yields 0 instead of an unresolvable-ref error.
        """
        if not self.list_branch_names(repo):
            logger.debug("Repository %s has no branches yet; commit count is 0", repo)
            return 0
        return parse_count(self._git(repo, ["rev-list", "--count", check_ref(ref), "--"]))

    def count_commits_between(self, repo: Path, base_ref: str, target_ref: str) -> int:
        """Count commits reachable from target_ref but not from base_ref."""
        if not self.list_branch_names(repo):
            return 0
        revision_range = f"{check_ref(base_ref)}..{check_ref(target_ref)}"
        return parse_count(self._git(repo, ["rev-list", "--count", revision_range, "--"]))

    # ------------------------------------------------------------------
    # Cross-repository variants
    # ------------------------------------------------------------------

    def list_commits_between_forks(
        self,
        base_repo: Path,
        base_branch: str,
        target_repo: Path,
        target_branch: str,
        offset: int = 0,
        limit: int | None = None,
    ) -> list[Commit]:
        """List commits on target_repo/target_branch missing from base_repo/base_branch."""
        if same_repository(base_repo, target_repo):
            return self.list_commits_between(base_repo, base_branch, target_branch, offset, limit)
        with self._workspaces.open_with_remote(base_repo, target_repo, branch=base_branch) as (
            workspace,
            remote,
        ):
            return self.list_commits_between(
                workspace.root, base_branch, f"{remote}/{target_branch}", offset, limit
            )

    def count_commits_between_forks(
        self,
        base_repo: Path,
        base_branch: str,
        target_repo: Path,
        target_branch: str,
    ) -> int:
        """Count commits on target_repo/target_branch missing from base_repo/base_branch."""
        if same_repository(base_repo, target_repo):
            return self.count_commits_between(base_repo, base_branch, target_branch)
        with self._workspaces.open_with_remote(base_repo, target_repo, branch=base_branch) as (
            workspace,
            remote,
        ):
            return self.count_commits_between(
                workspace.root, base_branch, f"{remote}/{target_branch}"
            )

    def list_commits_between_repositories_commits(
        self,
        base_repo: Path,
        base_commit: str,
        target_repo: Path,
        target_commit: str,
        offset: int = 0,
        limit: int | None = None,
    ) -> list[Commit]:
        """List commits between two commit hashes that live in different repositories."""
        if same_repository(base_repo, target_repo):
            return self.list_commits_between(base_repo, base_commit, target_commit, offset, limit)
        with self._workspaces.open_with_remote(base_repo, target_repo) as (workspace, _):
            return self.list_commits_between(
                workspace.root, base_commit, target_commit, offset, limit
            )

    def count_commits_between_repositories_commits(
        self,
        base_repo: Path,
        base_commit: str,
        target_repo: Path,
        target_commit: str,
    ) -> int:
        """Count commits between two commit hashes that live in different repositories."""
        if same_repository(base_repo, target_repo):
            return self.count_commits_between(base_repo, base_commit, target_commit)
        with self._workspaces.open_with_remote(base_repo, target_repo) as (workspace, _):
            return self.count_commits_between(workspace.root, base_commit, target_commit)
