"""Ephemeral on-disk clones used to stage cross-repository operations.

A workspace is a fresh clone in a uniquely named temporary directory. It is
owned by the operation that created it and removed when that operation ends,
whichever way it ends:

    with manager.open(base_repo, branch="main") as workspace:
        remote = manager.add_remote(workspace, fork_repo)
        ...  # query f"{remote}/feature" inside workspace.root

Nothing here ever writes to a caller-supplied repository path.
"""

from __future__ import annotations

import itertools
import logging
import time
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path

from sprig.core.refs import check_ref
from sprig.domain.config import WorkspaceConfig
from sprig.domain.exceptions import GitCommandError, WorkspaceError
from sprig.ports.fs import WorkspaceFileSystem
from sprig.ports.process import ProcessRunner

logger = logging.getLogger(__name__)

# Process-wide counter; combined with a nanosecond timestamp it keeps remote
# names distinct even when several are generated within one clock tick
_remote_counter = itertools.count(1)


def generate_remote_name() -> str:
    """Generate a remote name that does not collide within this process."""
    return f"remote_{time.time_ns()}_{next(_remote_counter)}"


@dataclass
class Workspace:
    """Handle to one temporary clone.

    Attributes:
        root: Directory holding the clone.
        source: Repository the clone was made from (the "origin" remote).
        branch: Branch checked out at creation, if one was requested.
        remotes: Names of remotes added after cloning, in order.
    """

    root: Path
    source: Path
    branch: str | None = None
    remotes: list[str] = field(default_factory=list)
    destroyed: bool = False

    def ensure_alive(self) -> None:
        """Raise if the workspace has already been destroyed.

        Raises:
            WorkspaceError: If destroy() already ran for this handle.
        """
        if self.destroyed:
            raise WorkspaceError(
                f"Workspace {self.root} has been destroyed",
                hint="Workspace handles cannot be reused after destroy()",
            )


class WorkspaceManager:
    """Creates, extends and destroys temporary clones."""

    def __init__(
        self,
        runner: ProcessRunner,
        fs: WorkspaceFileSystem,
        config: WorkspaceConfig | None = None,
    ) -> None:
        """Initialize the manager.

        Args:
            runner: Git process runner.
            fs: File system adapter used to allocate and remove directories.
            config: Where and under which prefix workspaces are created.
        """
        self._runner = runner
        self._fs = fs
        self._config = config or WorkspaceConfig()

    def create(
        self,
        source: Path,
        branch: str | None = None,
        single_branch: bool = False,
    ) -> Workspace:
        """Clone source into a fresh temporary directory.

        Args:
            source: Repository to clone.
            branch: Branch to check out (default: the source's HEAD).
            single_branch: Only fetch the requested branch.

        Returns:
            Handle to the new workspace.

        Raises:
            WorkspaceError: If the clone fails. The partially created directory
                has been removed by then.
        """
        source = Path(source)
        root = self._fs.make_temp_dir(self._config.prefix, self._config.temp_root)
        args = ["clone", "--quiet"]
        if branch is not None:
            args += ["--branch", check_ref(branch)]
        if single_branch:
            args.append("--single-branch")
        args += ["--", str(source), str(root)]
        try:
            self._runner.run(args)
        except GitCommandError as e:
            self._remove(root)
            raise WorkspaceError(
                f"Failed to clone {source}"
                + (f" at branch '{branch}'" if branch else "")
                + f": {e.message}",
                hint="Check that the repository exists and the branch is present",
            ) from e
        except BaseException:
            self._remove(root)
            raise
        logger.debug("Created workspace %s from %s", root, source)
        return Workspace(root=root, source=source, branch=branch)

    def add_remote(
        self,
        workspace: Workspace,
        remote_path: Path,
        name: str | None = None,
    ) -> str:
        """Register another repository as a remote of the workspace and fetch it.

        Afterwards "<name>/<branch>" resolves inside the workspace.

        Args:
            workspace: Workspace to extend.
            remote_path: Repository to add.
            name: Remote name (default: a generated, collision-free name).

        Returns:
            The remote name.

        Raises:
            WorkspaceError: If the workspace has been destroyed.
            GitCommandError: If adding or fetching the remote fails.
        """
        workspace.ensure_alive()
        remote_name = name or generate_remote_name()
        self._runner.run(
            ["remote", "add", "-f", check_ref(remote_name), str(remote_path)],
            cwd=workspace.root,
        )
        workspace.remotes.append(remote_name)
        logger.debug("Added remote %s -> %s to %s", remote_name, remote_path, workspace.root)
        return remote_name

    def run(self, workspace: Workspace, args: list[str]) -> str:
        """Run git inside the workspace."""
        workspace.ensure_alive()
        return self._runner.run(args, cwd=workspace.root)

    def destroy(self, workspace: Workspace) -> None:
        """Remove the workspace directory.

        Idempotent: a second call, or a directory that is already partially
        removed, is not an error.

        Raises:
            OSError: If an existing entry cannot be removed.
        """
        if workspace.destroyed:
            return
        workspace.destroyed = True
        self._fs.remove_tree(workspace.root)
        logger.debug("Destroyed workspace %s", workspace.root)

    def _remove(self, root: Path) -> None:
        """Best-effort removal of a directory; failures are logged, not raised."""
        try:
            self._fs.remove_tree(root)
        except OSError as e:
            logger.warning("Failed to remove workspace directory %s: %s", root, e)

    def _release(self, workspace: Workspace) -> None:
        try:
            self.destroy(workspace)
        except OSError as e:
            logger.warning("Failed to destroy workspace %s: %s", workspace.root, e)

    @contextmanager
    def open(
        self,
        source: Path,
        branch: str | None = None,
        single_branch: bool = False,
    ) -> Iterator[Workspace]:
        """Create a workspace for the duration of a with block.

        The workspace is destroyed on every exit path. A failure to remove it
        is logged and never replaces the block's own result or exception.
        """
        workspace = self.create(source, branch=branch, single_branch=single_branch)
        try:
            yield workspace
        finally:
            self._release(workspace)

    @contextmanager
    def open_with_remote(
        self,
        base: Path,
        other: Path,
        branch: str | None = None,
    ) -> Iterator[tuple[Workspace, str]]:
        """Clone base and add other as a fetched remote.

        Yields:
            (workspace, remote_name) so that refs of other are addressed as
            f"{remote_name}/<branch>".
        """
        with self.open(base, branch=branch) as workspace:
            remote_name = self.add_remote(workspace, other)
            yield workspace, remote_name
