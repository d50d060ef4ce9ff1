"""Batch reconciliation of every record still processing."""

import asyncio
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

from reelsync.content_store.models import LifecycleState
from reelsync.core.config import settings
from reelsync.core.errors import ReelSyncError
from reelsync.core.logging import get_logger
from reelsync.reconciler.reconciler import ReconcileStatus, RecordReconciler

logger = get_logger().bind(module="reconcile_sweep")

Sleeper = Callable[[float], Awaitable[None]]


@dataclass
class SweepSummary:
    """Counts from one sweep."""

    checked: int = 0
    ready: int = 0
    still_processing: int = 0
    failed: int = 0
    errors: int = 0


async def reconcile_pending(
    reconciler: RecordReconciler,
    limit: Optional[int] = None,
    delay: Optional[float] = None,
    sleep: Sleeper = asyncio.sleep,
) -> SweepSummary:
    """Run one reconciliation attempt for each processing record, oldest first.

    Args:
        reconciler: Reconciler to drive
        limit: Maximum number of records to check
        delay: Pause between records, defaults to settings.RECONCILE_SWEEP_DELAY
        sleep: Awaitable sleep function

    Returns:
        SweepSummary with per-status counts
    """
    pause = settings.RECONCILE_SWEEP_DELAY if delay is None else delay
    records = reconciler.store.list_by_state(LifecycleState.PROCESSING, limit=limit)
    summary = SweepSummary()

    logger.info("sweep_started", pending=len(records))

    for index, record in enumerate(records):
        if index and pause:
            await sleep(pause)

        summary.checked += 1
        try:
            result = await reconciler.attempt_reconcile(record.id)
        except ReelSyncError as e:
            summary.errors += 1
            logger.error("sweep_record_failed", record_id=record.id, error=str(e))
            continue

        if result.status is ReconcileStatus.READY:
            summary.ready += 1
        elif result.status is ReconcileStatus.FAILED:
            summary.failed += 1
        else:
            summary.still_processing += 1

    logger.info(
        "sweep_finished",
        checked=summary.checked,
        ready=summary.ready,
        still_processing=summary.still_processing,
        failed=summary.failed,
        errors=summary.errors,
    )
    return summary
