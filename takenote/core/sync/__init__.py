"""Session merge and reconciliation."""

from .merge import merge_notes, merge_sessions
from .reconciler import MergeConflictNotice, ReconcileOutcome, SessionReconciler

__all__ = [
    "MergeConflictNotice",
    "ReconcileOutcome",
    "SessionReconciler",
    "merge_notes",
    "merge_sessions",
]
