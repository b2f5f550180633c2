"""History queries: branches, tags, commits and counts."""

from sprig.core.history.history_service import HistoryService, is_unknown_revision

__all__ = ["HistoryService", "is_unknown_revision"]
