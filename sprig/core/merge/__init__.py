"""Merge engine: mergeability, merges, conflict listing and resolution."""

from sprig.core.merge.merge_service import (
    MergeService,
    check_conflict_path,
    relabel_conflict_markers,
)

__all__ = ["MergeService", "check_conflict_path", "relabel_conflict_markers"]
