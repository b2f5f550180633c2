"""File system adapters."""

from sprig.adapters.fs.local import LocalFileSystem

__all__ = ["LocalFileSystem"]
