"""Prometheus metrics for the reconciler."""

from prometheus_client import REGISTRY, Counter

# Outcomes seen by the reconciler
RECONCILE_OUTCOMES = Counter(
    "reelsync_reconcile_outcomes_total",
    "Total number of resolver/poller outcomes applied",
    ["outcome"],  # not_yet_available, transient, resolved, ready, permanent
)

# State transitions actually persisted
RECORD_TRANSITIONS = Counter(
    "reelsync_record_transitions_total",
    "Total number of persisted record state changes",
    ["state"],  # processing (asset resolved), ready, failed
)

CAS_CONFLICTS = Counter(
    "reelsync_cas_conflicts_total",
    "Total number of compare-and-set writes that lost a race",
)

# Deletion
ORPHANED_ASSETS = Counter(
    "reelsync_orphaned_assets_total",
    "Total number of provider assets left behind by a delete",
)

CLEANUP_FAILURES = Counter(
    "reelsync_cleanup_failures_total",
    "Total number of non-fatal failures during cascading delete",
    ["kind"],  # asset, comment, notification, dependents, counters
)


def register_metrics() -> None:
    """Register metrics with Prometheus."""
    metrics = [
        RECONCILE_OUTCOMES,
        RECORD_TRANSITIONS,
        CAS_CONFLICTS,
        ORPHANED_ASSETS,
        CLEANUP_FAILURES,
    ]
    for metric in metrics:
        try:
            REGISTRY.register(metric)
        except ValueError:
            # Metric already registered
            pass


# Register metrics on module import
register_metrics()
