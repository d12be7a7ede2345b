"""
Metadata reconciliation for audiobook-dl.

Components:
    - comparison: pure conflict detection, auto-fill and choice merging
    - MetadataReconciler: debounced single-record fetches and batch auto-fill
"""

from audiobook_dl.reconcile.comparison import (
    CHOICE_CURRENT,
    CHOICE_FETCHED,
    Choice,
    MetadataConflict,
    auto_fill_empty,
    compare_metadata,
    default_choices,
    merge_choices,
    resolve,
)
from audiobook_dl.reconcile.engine import (
    BatchReport,
    ConflictResolver,
    FetchOutcome,
    MetadataReconciler,
    RecordSession,
    SessionPhase,
)

__all__ = [
    # Comparison
    "Choice",
    "CHOICE_CURRENT",
    "CHOICE_FETCHED",
    "MetadataConflict",
    "compare_metadata",
    "default_choices",
    "auto_fill_empty",
    "merge_choices",
    "resolve",
    # Engine
    "MetadataReconciler",
    "ConflictResolver",
    "RecordSession",
    "SessionPhase",
    "FetchOutcome",
    "BatchReport",
]
