"""File and directory inspection at a ref."""

from sprig.core.files.file_service import FileService

__all__ = ["FileService"]
