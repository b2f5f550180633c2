"""Diff computation: common ancestors, changed files and per-file hunks."""

from sprig.core.diff.diff_service import DiffService

__all__ = ["DiffService"]
