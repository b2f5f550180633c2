"""File- and hunk-level differences, within one repository or across forks.

Diffs between two refs are always cumulative from their common ancestor to
the target, so the diff of a feature branch stays stable while its base
branch moves on.
"""

from __future__ import annotations

import logging
from pathlib import Path

from sprig.core.fanout import fan_out
from sprig.core.history import is_unknown_revision
from sprig.core.parsing import parse_file_diff, parse_path_list
from sprig.core.refs import EMPTY_TREE_HASH, check_ref, paginate, same_repository
from sprig.core.workspace import Workspace, WorkspaceManager
from sprig.domain.entities import FileDiff
from sprig.domain.exceptions import GitCommandError, NotFoundError
from sprig.ports.process import ProcessRunner

logger = logging.getLogger(__name__)

# Rename detection would list only the new name; both sides are reported as separate paths instead
_DIFF_OPTIONS = ["--no-color", "--no-ext-diff", "--no-renames"]


class DiffService:
    """Computes common ancestors, changed-file lists and per-file diffs."""

    def __init__(
        self,
        runner: ProcessRunner,
        workspaces: WorkspaceManager,
        max_workers: int = 8,
    ) -> None:
        """Initialize the diff service.

        Args:
            runner: Git process runner.
            workspaces: Manager for cross-repository workspaces.
            max_workers: Fan-out width when diffing many files.
        """
        self._runner = runner
        self._workspaces = workspaces
        self._max_workers = max_workers

    def _git(self, repo: Path, args: list[str]) -> str:
        return self._runner.run(args, cwd=Path(repo))

    # ------------------------------------------------------------------
    # Ancestry
    # ------------------------------------------------------------------

    def common_ancestor(self, repo: Path, ref1: str, ref2: str) -> str:
        """Resolve the merge base of two refs.

        Returns:
            Hash of the common ancestor, or EMPTY_TREE_HASH if either ref is the
            empty tree or the histories share no commit.

        Raises:
            GitCommandError: If git fails for any other reason (e.g. unknown ref).
        """
        if EMPTY_TREE_HASH in (ref1, ref2):
            return EMPTY_TREE_HASH
        try:
            output = self._git(repo, ["merge-base", check_ref(ref1), check_ref(ref2)])
        except GitCommandError as e:
            # merge-base exits 1 without output when there is no common ancestor
            if e.returncode == 1 and not e.stderr.strip():
                logger.debug("No common ancestor for %s and %s in %s", ref1, ref2, repo)
                return EMPTY_TREE_HASH
            raise
        return output.strip()

    def has_common_ancestor(
        self,
        repo1: Path,
        ref1: str,
        repo2: Path,
        ref2: str,
    ) -> bool:
        """Return True if ref1 of repo1 and ref2 of repo2 share history.

        ref1 may be a branch, tag or commit of repo1; ref2 must be a branch of repo2.
        """
        if same_repository(repo1, repo2):
            return self.common_ancestor(repo1, ref1, ref2) != EMPTY_TREE_HASH
        with self._workspaces.open_with_remote(repo1, repo2) as (workspace, remote):
            base = self._origin_ref(workspace, ref1)
            return self.common_ancestor(workspace.root, base, f"{remote}/{ref2}") != EMPTY_TREE_HASH

    def _origin_ref(self, workspace: Workspace, ref: str) -> str:
        """Name a ref of the cloned repository as it resolves inside the clone.

        Only the default branch exists locally after cloning; other branches
        live under origin/. Tags and commits resolve unchanged.
        """
        try:
            self._workspaces.run(
                workspace, ["rev-parse", "--verify", "--quiet", f"refs/remotes/origin/{check_ref(ref)}"]
            )
        except GitCommandError:
            return ref
        return f"origin/{ref}"

    def parent_of(self, repo: Path, commit: str) -> str:
        """Return the first parent of commit, or EMPTY_TREE_HASH for a root commit.

        Raises:
            NotFoundError: If commit does not resolve.
            GitCommandError: If git fails for any other reason.
        """
        try:
            output = self._git(repo, ["rev-list", "--parents", "--max-count=1", check_ref(commit), "--"])
        except GitCommandError as e:
            if is_unknown_revision(e):
                raise NotFoundError(f"Commit '{commit}' not found in {repo}") from e
            raise
        hashes = output.split()
        if not hashes:
            raise NotFoundError(f"Commit '{commit}' not found in {repo}")
        return hashes[1] if len(hashes) > 1 else EMPTY_TREE_HASH

    # ------------------------------------------------------------------
    # Raw diffs between two fixed points
    # ------------------------------------------------------------------

    def changed_paths_between(self, repo: Path, from_ref: str, to_ref: str) -> list[str]:
        """List paths that differ between from_ref and to_ref (no ancestor resolution)."""
        output = self._git(
            repo,
            ["diff", *_DIFF_OPTIONS, "--name-only", "-z", check_ref(from_ref), check_ref(to_ref), "--"],
        )
        return parse_path_list(output)

    def file_diff_between(self, repo: Path, path: str, from_ref: str, to_ref: str) -> FileDiff:
        """Diff one path between from_ref and to_ref (no ancestor resolution)."""
        output = self._git(
            repo,
            ["diff", *_DIFF_OPTIONS, check_ref(from_ref), check_ref(to_ref), "--", path],
        )
        return parse_file_diff(path, output)

    def file_diffs_between(self, repo: Path, from_ref: str, to_ref: str) -> list[FileDiff]:
        """Diff every changed path between from_ref and to_ref."""
        paths = self.changed_paths_between(repo, from_ref, to_ref)
        return fan_out(
            lambda path: self.file_diff_between(repo, path, from_ref, to_ref),
            paths,
            max_workers=self._max_workers,
        )

    # ------------------------------------------------------------------
    # Ancestor-relative diffs
    # ------------------------------------------------------------------

    def changed_files(
        self,
        repo: Path,
        base_ref: str,
        target_ref: str,
        offset: int = 0,
        limit: int | None = None,
    ) -> list[str]:
        """List paths changed on target_ref since its common ancestor with base_ref."""
        ancestor = self.common_ancestor(repo, base_ref, target_ref)
        return paginate(self.changed_paths_between(repo, ancestor, target_ref), offset, limit)

    def file_diff(self, repo: Path, path: str, base_ref: str, target_ref: str) -> FileDiff:
        """Diff one path from the common ancestor of base_ref and target_ref to target_ref."""
        ancestor = self.common_ancestor(repo, base_ref, target_ref)
        return self.file_diff_between(repo, path, ancestor, target_ref)

    def file_diffs(self, repo: Path, base_ref: str, target_ref: str) -> list[FileDiff]:
        """Diff every path changed since the common ancestor of base_ref and target_ref."""
        ancestor = self.common_ancestor(repo, base_ref, target_ref)
        return self.file_diffs_between(repo, ancestor, target_ref)

    # ------------------------------------------------------------------
    # Single commits
    # ------------------------------------------------------------------

    def changed_files_for_commit(
        self,
        repo: Path,
        commit: str,
        offset: int = 0,
        limit: int | None = None,
    ) -> list[str]:
        """List paths changed by one commit (against the empty tree for a root commit)."""
        parent = self.parent_of(repo, commit)
        return paginate(self.changed_paths_between(repo, parent, commit), offset, limit)

    def file_diff_for_commit(self, repo: Path, commit: str, path: str) -> FileDiff:
        """Diff one path as changed by one commit."""
        return self.file_diff_between(repo, path, self.parent_of(repo, commit), commit)

    def commit_file_diffs(self, repo: Path, commit: str) -> list[FileDiff]:
        """Diff every path changed by one commit."""
        return self.file_diffs_between(repo, self.parent_of(repo, commit), commit)

    # ------------------------------------------------------------------
    # Cross-repository variants
    # ------------------------------------------------------------------

    def changed_files_between_repositories_commits(
        self,
        base_repo: Path,
        base_commit: str,
        target_repo: Path,
        target_commit: str,
        offset: int = 0,
        limit: int | None = None,
    ) -> list[str]:
        """List paths changed on target_commit of target_repo since its ancestor with base_commit."""
        if same_repository(base_repo, target_repo):
            return self.changed_files(base_repo, base_commit, target_commit, offset, limit)
        with self._workspaces.open_with_remote(base_repo, target_repo) as (workspace, _):
            return self.changed_files(workspace.root, base_commit, target_commit, offset, limit)

    def file_diff_between_repositories_commits(
        self,
        base_repo: Path,
        base_commit: str,
        target_repo: Path,
        target_commit: str,
        path: str,
    ) -> FileDiff:
        """Diff one path between commits that live in different repositories."""
        if same_repository(base_repo, target_repo):
            return self.file_diff(base_repo, path, base_commit, target_commit)
        with self._workspaces.open_with_remote(base_repo, target_repo) as (workspace, _):
            return self.file_diff(workspace.root, path, base_commit, target_commit)

    def changed_files_between_forks(
        self,
        base_repo: Path,
        base_branch: str,
        target_repo: Path,
        target_branch: str,
        offset: int = 0,
        limit: int | None = None,
    ) -> list[str]:
        """List paths changed on target_repo/target_branch since it forked from base_branch."""
        if same_repository(base_repo, target_repo):
            return self.changed_files(base_repo, base_branch, target_branch, offset, limit)
        with self._workspaces.open_with_remote(base_repo, target_repo, branch=base_branch) as (
            workspace,
            remote,
        ):
            return self.changed_files(
                workspace.root, base_branch, f"{remote}/{target_branch}", offset, limit
            )

    def file_diff_between_forks(
        self,
        base_repo: Path,
        base_branch: str,
        target_repo: Path,
        target_branch: str,
        path: str,
    ) -> FileDiff:
        """Diff one path of target_repo/target_branch against its fork point with base_branch."""
        if same_repository(base_repo, target_repo):
            return self.file_diff(base_repo, path, base_branch, target_branch)
        with self._workspaces.open_with_remote(base_repo, target_repo, branch=base_branch) as (
            workspace,
            remote,
        ):
            return self.file_diff(workspace.root, path, base_branch, f"{remote}/{target_branch}")

    def file_diffs_between_forks(
        self,
        base_repo: Path,
        base_branch: str,
        target_repo: Path,
        target_branch: str,
    ) -> list[FileDiff]:
        """Diff every path changed on target_repo/target_branch since its fork point."""
        if same_repository(base_repo, target_repo):
            return self.file_diffs(base_repo, base_branch, target_branch)
        with self._workspaces.open_with_remote(base_repo, target_repo, branch=base_branch) as (
            workspace,
            remote,
        ):
            return self.file_diffs(workspace.root, base_branch, f"{remote}/{target_branch}")
