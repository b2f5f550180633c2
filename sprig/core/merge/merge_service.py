"""Mergeability checks, merges, conflict listing and conflict resolution.

Every operation works in a throwaway clone of the target repository, with the
source repository fetched as a remote when it is a different repository.
Caller repositories are only ever changed by an explicit push.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from pathlib import Path, PurePosixPath

from sprig.core.fanout import fan_out
from sprig.core.parsing import parse_unmerged_paths
from sprig.core.refs import check_ref, same_repository
from sprig.core.workspace import Workspace, WorkspaceManager
from sprig.domain.config import MergeConfig
from sprig.domain.entities import Conflict, Identity
from sprig.domain.exceptions import GitCommandError
from sprig.ports.fs import WorkspaceFileSystem
from sprig.ports.process import ProcessRunner

logger = logging.getLogger(__name__)

_OURS_MARKER = re.compile(r"^<<<<<<< HEAD$", re.MULTILINE)


def relabel_conflict_markers(
    content: str,
    merged_ref: str,
    target_label: str,
    source_label: str,
) -> str:
    """Replace git's conflict marker labels with branch names a reader recognises.

    Git labels our side "HEAD" and their side with the merged ref, which inside
    a workspace is an ephemeral remote name.

    Args:
        content: File content with conflict markers.
        merged_ref: Ref that was merged into HEAD.
        target_label: Label for our side (the branch merged into).
        source_label: Label for their side (the branch merged from).

    Returns:
        Content with every marker label replaced.
    """
    theirs_marker = re.compile(rf"^>>>>>>> {re.escape(merged_ref)}$", re.MULTILINE)
    content = _OURS_MARKER.sub(lambda _: f"<<<<<<< {target_label}", content)
    return theirs_marker.sub(lambda _: f">>>>>>> {source_label}", content)


def check_conflict_path(path: str) -> None:
    """Reject paths that would be written outside a workspace.

    Raises:
        ValueError: If path is empty, absolute, or climbs out through "..".
    """
    pure = PurePosixPath(path)
    if not path or pure.is_absolute() or ".." in pure.parts or Path(path).is_absolute():
        raise ValueError(f"Conflict path escapes the repository: {path!r}")


class MergeService:
    """Merges branches across repositories inside temporary workspaces."""

    def __init__(
        self,
        runner: ProcessRunner,
        workspaces: WorkspaceManager,
        fs: WorkspaceFileSystem,
        config: MergeConfig | None = None,
        max_workers: int = 8,
    ) -> None:
        """Initialize the merge service.

        Args:
            runner: Git process runner.
            workspaces: Manager for the temporary clones.
            fs: File system adapter for reading and writing conflicted files.
            config: Default committer identity and resolution message.
            max_workers: Fan-out width when reading conflicted files.
        """
        self._runner = runner
        self._workspaces = workspaces
        self._fs = fs
        self._config = config or MergeConfig()
        self._max_workers = max_workers

    def _default_identity(self) -> Identity:
        return Identity(name=self._config.committer_name, email=self._config.committer_email)

    def _configure_identity(self, workspace: Workspace, identity: Identity | None) -> None:
        identity = identity or self._default_identity()
        self._workspaces.run(workspace, ["config", "user.name", identity.name])
        self._workspaces.run(workspace, ["config", "user.email", identity.email])

    def _fetch_source(
        self,
        workspace: Workspace,
        source_repo: Path,
        source_branch: str,
        target_repo: Path,
    ) -> str:
        """Make the source branch reachable in a clone of the target.

        Returns:
            The ref to merge.
        """
        if same_repository(source_repo, target_repo):
            return f"origin/{check_ref(source_branch)}"
        remote = self._workspaces.add_remote(workspace, source_repo)
        return f"{remote}/{check_ref(source_branch)}"

    @contextmanager
    def _staged(
        self,
        source_repo: Path,
        source_branch: str,
        target_repo: Path,
        target_branch: str,
        committer: Identity | None = None,
    ) -> Iterator[tuple[Workspace, str]]:
        """Clone target at target_branch and fetch the source; yields (workspace, merge_ref).

        git refuses to start a merge without an identity, even with --no-commit,
        so one is configured in every clone.
        """
        with self._workspaces.open(target_repo, branch=target_branch) as workspace:
            self._configure_identity(workspace, committer)
            yield workspace, self._fetch_source(workspace, source_repo, source_branch, target_repo)

    def is_mergeable(
        self,
        source_repo: Path,
        source_branch: str,
        target_repo: Path,
        target_branch: str,
    ) -> bool:
        """Return True if source_branch merges into target_branch without conflicts.

        Raises:
            WorkspaceError: If the target repository cannot be cloned at target_branch.
        """
        with self._workspaces.open(target_repo, branch=target_branch) as workspace:
            self._configure_identity(workspace, None)
            try:
                merge_ref = self._fetch_source(workspace, source_repo, source_branch, target_repo)
                self._workspaces.run(workspace, ["merge", "--no-commit", "--no-ff", merge_ref])
            except GitCommandError as e:
                logger.debug(
                    "%s:%s does not merge into %s:%s: %s",
                    source_repo,
                    source_branch,
                    target_repo,
                    target_branch,
                    e.message,
                )
                return False
            return True

    def merge(
        self,
        source_repo: Path,
        source_branch: str,
        target_repo: Path,
        target_branch: str,
        message: str,
        committer: Identity | None = None,
    ) -> None:
        """Merge source_branch into target_branch and push the merge commit.

        Args:
            source_repo: Repository holding the branch to merge.
            source_branch: Branch to merge.
            target_repo: Repository receiving the merge.
            target_branch: Branch receiving the merge.
            message: Merge commit message.
            committer: Identity for the merge commit (default: configured committer).

        Raises:
            GitCommandError: If the merge or the push fails.
            WorkspaceError: If the target repository cannot be cloned.
        """
        with self._staged(source_repo, source_branch, target_repo, target_branch, committer) as (
            workspace,
            merge_ref,
        ):
            self._workspaces.run(workspace, ["merge", "--no-ff", "-m", message, merge_ref])
            self._workspaces.run(workspace, ["push", "origin", f"HEAD:{check_ref(target_branch)}"])
        logger.info("Merged %s:%s into %s:%s", source_repo, source_branch, target_repo, target_branch)

    def list_conflicts(
        self,
        source_repo: Path,
        source_branch: str,
        target_repo: Path,
        target_branch: str,
    ) -> list[Conflict]:
        """List the files that conflict when merging source_branch into target_branch.

        A failing merge is the expected outcome here and is not reported. Text
        conflicts carry the conflicted content with markers labelled by branch.

        Returns:
            Conflicts sorted by path (empty when the merge is clean).
        """
        with self._staged(source_repo, source_branch, target_repo, target_branch) as (
            workspace,
            merge_ref,
        ):
            try:
                self._workspaces.run(workspace, ["merge", "--no-commit", "--no-ff", merge_ref])
            except GitCommandError as e:
                logger.debug("Merge of %s stopped: %s", merge_ref, e.message)

            paths = parse_unmerged_paths(self._workspaces.run(workspace, ["ls-files", "-u", "-z"]))
            return fan_out(
                lambda path: self._read_conflict(
                    workspace, path, merge_ref, target_branch, source_branch
                ),
                paths,
                max_workers=self._max_workers,
            )

    def _read_conflict(
        self,
        workspace: Workspace,
        path: str,
        merged_ref: str,
        target_branch: str,
        source_branch: str,
    ) -> Conflict:
        file_path = workspace.root / path
        if not file_path.exists():
            # modify/delete conflicts can leave nothing in the working tree
            return Conflict(path=path, is_binary=False, content="")
        if self._fs.is_binary(file_path):
            return Conflict(path=path, is_binary=True)
        content = relabel_conflict_markers(
            self._fs.read_text(file_path), merged_ref, target_branch, source_branch
        )
        return Conflict(path=path, is_binary=False, content=content)

    def resolve_conflicts(
        self,
        repo: Path,
        branch: str,
        conflicts: Sequence[Conflict],
        pull_request_number: int,
        incoming_repo: Path | None = None,
        incoming_branch: str | None = None,
        committer: Identity | None = None,
    ) -> None:
        """Write resolved file contents onto branch and push a resolution commit.

        When incoming_repo and incoming_branch are given, that branch is merged
        first (its failure is expected and ignored) so the commit concludes the
        merge.

        Args:
            repo: Repository whose branch receives the resolution.
            branch: Branch receiving the resolution commit.
            conflicts: Resolved contents; each content replaces the file at its path.
            pull_request_number: Number referenced in the commit message.
            incoming_repo: Repository of the branch being merged, if any.
            incoming_branch: Branch being merged, if any.
            committer: Identity for the commit (default: configured committer).

        Raises:
            ValueError: If a conflict is binary or its path escapes the repository.
            GitCommandError: If committing or pushing fails.
            WorkspaceError: If repo cannot be cloned at branch.
        """
        if not conflicts:
            return
        for conflict in conflicts:
            if conflict.is_binary:
                raise ValueError(f"Binary conflict for '{conflict.path}' cannot be resolved as text")
            check_conflict_path(conflict.path)
        if (incoming_repo is None) != (incoming_branch is None):
            raise ValueError("incoming_repo and incoming_branch must be given together")

        with self._workspaces.open(repo, branch=branch) as workspace:
            self._configure_identity(workspace, committer)
            if incoming_repo is not None and incoming_branch is not None:
                merge_ref = self._fetch_source(workspace, incoming_repo, incoming_branch, repo)
                try:
                    self._workspaces.run(workspace, ["merge", "--no-ff", "--no-commit", merge_ref])
                except GitCommandError as e:
                    logger.debug("Merge of %s stopped: %s", merge_ref, e.message)

            root = workspace.root.resolve()
            targets = [(root / conflict.path).resolve() for conflict in conflicts]
            for conflict, target in zip(conflicts, targets):
                # symlinks inside the clone can still point elsewhere
                if not target.is_relative_to(root):
                    raise ValueError(f"Conflict path escapes the repository: {conflict.path!r}")
            for conflict, target in zip(conflicts, targets):
                self._fs.write_text(target, conflict.content)

            paths = [conflict.path for conflict in conflicts]
            message = self._config.resolve_message.format(number=pull_request_number)
            self._workspaces.run(workspace, ["add", "--", *paths])
            self._workspaces.run(workspace, ["commit", "-m", message])
            self._workspaces.run(workspace, ["push", "origin", f"HEAD:{check_ref(branch)}"])
        logger.info("Pushed conflict resolution for pull request #%s to %s:%s", pull_request_number, repo, branch)
