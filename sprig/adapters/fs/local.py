"""Local file system adapter.

Implements the WorkspaceFileSystem port using the standard library.
This is the default adapter for workspace file operations.
"""

import shutil
import sys
import tempfile
from pathlib import Path

from sprig.shared.binary import BINARY_SNIFF_BYTES, looks_binary


class LocalFileSystem:
    """Local file system implementation of WorkspaceFileSystem.

    Temporary directories come from tempfile.mkdtemp, which guarantees a
    unique name per call across threads and processes.
    """

    def make_temp_dir(self, prefix: str, root: Path | None = None) -> Path:
        """Create a new, uniquely named, empty directory.

        Args:
            prefix: Directory name prefix.
            root: Parent directory (None for the system temp dir).

        Returns:
            Absolute path of the created directory.
        """
        if root is not None:
            root.mkdir(parents=True, exist_ok=True)
        return Path(tempfile.mkdtemp(prefix=prefix, dir=root)).resolve()

    def remove_tree(self, path: Path) -> None:
        """Recursively remove a directory, tolerating entries that are already gone.

        Raises:
            OSError: If an existing entry cannot be removed.
        """

        def _ignore_missing(func, failed_path, exc_info) -> None:
            exc = exc_info[1] if isinstance(exc_info, tuple) else exc_info
            if isinstance(exc, FileNotFoundError):
                return
            raise exc

        if not path.exists():
            return
        # onerror is deprecated since 3.12 in favour of onexc, which receives the exception itself
        if sys.version_info >= (3, 12):
            shutil.rmtree(path, onexc=_ignore_missing)
        else:
            shutil.rmtree(path, onerror=_ignore_missing)

    def write_text(self, path: Path, content: str) -> None:
        """Write text to a file, creating parent directories."""
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")

    def read_text(self, path: Path) -> str:
        """Read a UTF-8 text file (undecodable bytes replaced)."""
        return path.read_text(encoding="utf-8", errors="replace")

    def is_binary(self, path: Path) -> bool:
        """Return True if the file looks binary."""
        with path.open("rb") as f:
            return looks_binary(f.read(BINARY_SNIFF_BYTES))
