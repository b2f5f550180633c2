"""File System port interface.

Defines abstract interface for the file system operations workspaces need.
Enables testing with fakes and keeps core services free of direct I/O.
"""

from pathlib import Path
from typing import Protocol


class WorkspaceFileSystem(Protocol):
    """Protocol for workspace file system operations."""

    def make_temp_dir(self, prefix: str, root: Path | None = None) -> Path:
        """Create a new, uniquely named, empty directory.

        Args:
            prefix: Directory name prefix.
            root: Parent directory (None for the system temp dir).

        Returns:
            Absolute path of the created directory.
        """
        ...

    def remove_tree(self, path: Path) -> None:
        """Recursively remove a directory.

        Must not fail if the directory is already (partially) gone.

        Raises:
            OSError: If an existing entry cannot be removed.
        """
        ...

    def write_text(self, path: Path, content: str) -> None:
        """Write text to a file, creating parent directories."""
        ...

    def read_text(self, path: Path) -> str:
        """Read a UTF-8 text file (undecodable bytes replaced)."""
        ...

    def is_binary(self, path: Path) -> bool:
        """Return True if the file looks binary."""
        ...
