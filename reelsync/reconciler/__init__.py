"""Video ingestion reconciliation: resolve, poll, apply, delete."""

from reelsync.reconciler.deleter import CascadingDeleter, CleanupFailure, DeletionReport
from reelsync.reconciler.outcomes import (
    NotYetAvailable,
    Outcome,
    Permanent,
    Ready,
    Resolved,
    Transient,
)
from reelsync.reconciler.poller import ReadinessPoller
from reelsync.reconciler.reconciler import (
    ReconcileResult,
    ReconcileStatus,
    RecordReconciler,
    plan_transition,
)
from reelsync.reconciler.resolver import IdentifierResolver

__all__ = [
    "CascadingDeleter",
    "CleanupFailure",
    "DeletionReport",
    "IdentifierResolver",
    "NotYetAvailable",
    "Outcome",
    "Permanent",
    "ReadinessPoller",
    "Ready",
    "ReconcileResult",
    "ReconcileStatus",
    "RecordReconciler",
    "Resolved",
    "Transient",
    "plan_transition",
]
