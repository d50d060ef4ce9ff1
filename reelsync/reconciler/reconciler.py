"""Record reconciler: the only writer of a video record's lifecycle fields."""

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Optional

from reelsync.content_store.models import ContentRecord, LifecycleState
from reelsync.content_store.store import ContentStore
from reelsync.core.config import settings
from reelsync.core.errors import RecordNotFoundError
from reelsync.core.logging import get_logger, get_record_logger
from reelsync.reconciler.metrics import (
    CAS_CONFLICTS,
    RECONCILE_OUTCOMES,
    RECORD_TRANSITIONS,
)
from reelsync.reconciler.outcomes import (
    NotYetAvailable,
    Outcome,
    Permanent,
    Ready,
    Resolved,
    Transient,
)
from reelsync.reconciler.poller import ReadinessPoller

logger = get_logger().bind(module="record_reconciler")

Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ReconcileStatus(str, Enum):
    """What a single reconciliation attempt means for the caller."""

    READY = "ready"
    PROCESSING = "processing"
    RETRYABLE = "retryable"
    FAILED = "failed"


@dataclass(frozen=True)
class ReconcileResult:
    """Result of one caller-driven reconciliation attempt."""

    record: ContentRecord
    status: ReconcileStatus
    outcomes: tuple[Outcome, ...] = ()
    overdue: bool = False
    reason: Optional[str] = None

    @property
    def failure_kind(self) -> Optional[str]:
        return self.record.failure_kind


def plan_transition(record: ContentRecord, outcome: Outcome) -> Optional[dict[str, Any]]:
    """Work out the field changes an outcome implies for a record snapshot.

    Args:
        record: Current snapshot of the record
        outcome: Resolver or poller outcome

    Returns:
        Fields to compare-and-set, or None when the outcome is a no-op for
        this snapshot
    """
    log = get_record_logger(record.id, logger, outcome=outcome.label)

    if isinstance(outcome, (NotYetAvailable, Transient)):
        return None

    if isinstance(outcome, Resolved):
        if record.asset_handle is None:
            return {"asset_handle": outcome.asset_handle}
        if record.asset_handle != outcome.asset_handle:
            log.warning(
                "asset_handle_conflict",
                current=record.asset_handle,
                reported=outcome.asset_handle,
            )
        return None

    if isinstance(outcome, Ready):
        if record.lifecycle_state is LifecycleState.FAILED:
            log.info("ready_ignored_for_failed_record")
            return None
        if record.asset_handle and record.asset_handle != outcome.asset_handle:
            log.warning(
                "asset_handle_conflict",
                current=record.asset_handle,
                reported=outcome.asset_handle,
            )
            return None
        if record.stream_reference:
            if record.stream_reference != outcome.stream_reference:
                log.warning(
                    "stream_reference_conflict",
                    current=record.stream_reference,
                    reported=outcome.stream_reference,
                )
            return None
        fields: dict[str, Any] = {
            "stream_reference": outcome.stream_reference,
            "lifecycle_state": LifecycleState.READY,
        }
        if record.asset_handle is None:
            fields["asset_handle"] = outcome.asset_handle
        return fields

    if isinstance(outcome, Permanent):
        if record.lifecycle_state is not LifecycleState.PROCESSING:
            log.info(
                "permanent_ignored_for_terminal_record",
                state=record.lifecycle_state.value,
            )
            return None
        return {"lifecycle_state": LifecycleState.FAILED, "failure_kind": outcome.kind}

    raise TypeError(f"Unknown outcome: {outcome!r}")


class RecordReconciler:
    """Applies resolver/poller outcomes to content records.

    Writes go through the store's compare-and-set keyed on the record
    version. When a write loses a race the record is reloaded and the outcome
    is planned again against the fresh snapshot, so a stale outcome never
    regresses a state reached by a newer write.
    """

    def __init__(
        self,
        store: ContentStore,
        poller: ReadinessPoller,
        clock: Optional[Clock] = None,
        max_cas_retries: Optional[int] = None,
        soft_threshold_seconds: Optional[int] = None,
    ) -> None:
        """Initialize reconciler.

        Args:
            store: Content store holding the records
            poller: Readiness poller used by attempt_reconcile
            clock: Returns the current UTC time
            max_cas_retries: Compare-and-set attempts per outcome
            soft_threshold_seconds: Processing time after which a record is
                reported as overdue
        """
        self.store = store
        self.poller = poller
        self.clock = clock or _utcnow
        self.max_cas_retries = max_cas_retries or settings.RECONCILE_MAX_CAS_RETRIES
        self.soft_threshold_seconds = (
            soft_threshold_seconds
            if soft_threshold_seconds is not None
            else settings.PROCESSING_SOFT_THRESHOLD_SECONDS
        )

    def apply_resolution(self, record: ContentRecord, outcome: Outcome) -> ContentRecord:
        """Apply one outcome to a record.

        Args:
            record: Snapshot the outcome was computed from
            outcome: Resolver or poller outcome

        Returns:
            The record as persisted after this call

        Raises:
            RecordNotFoundError: If the record was deleted meanwhile
        """
        RECONCILE_OUTCOMES.labels(outcome=outcome.label).inc()
        log = get_record_logger(record.id, logger, outcome=outcome.label)

        snapshot = record
        for _ in range(self.max_cas_retries):
            fields = plan_transition(snapshot, outcome)
            if fields is None:
                return snapshot

            updated = self.store.compare_and_set(snapshot.id, snapshot.version, fields)
            if updated is not None:
                RECORD_TRANSITIONS.labels(state=updated.lifecycle_state.value).inc()
                log.info(
                    "record_updated",
                    state=updated.lifecycle_state.value,
                    version=updated.version,
                )
                return updated

            CAS_CONFLICTS.inc()
            log.info("record_cas_conflict", expected_version=snapshot.version)
            fresh = self.store.get(snapshot.id)
            if fresh is None:
                raise RecordNotFoundError(snapshot.id)
            snapshot = fresh

        log.warning("record_cas_retries_exhausted", attempts=self.max_cas_retries)
        return snapshot

    def is_overdue(self, record: ContentRecord) -> bool:
        """Whether a processing record has exceeded the soft threshold."""
        return (
            record.lifecycle_state is LifecycleState.PROCESSING
            and record.processing_elapsed(self.clock()) > self.soft_threshold_seconds
        )

    async def attempt_reconcile(self, record_id: str) -> ReconcileResult:
        """Run one reconciliation attempt for a record.

        Terminal records are returned without contacting the provider.

        Args:
            record_id: Record to reconcile

        Returns:
            ReconcileResult describing the record after this attempt

        Raises:
            RecordNotFoundError: If the record does not exist
        """
        record = self.store.get(record_id)
        if record is None:
            raise RecordNotFoundError(record_id)

        if record.lifecycle_state.is_terminal:
            return self._result(record, ())

        if record.awaits_conversion:
            outcomes = await self.poller.check_ready(upload_handle=record.upload_handle)
        else:
            outcomes = await self.poller.check_ready(asset_handle=record.asset_handle)
        for outcome in outcomes:
            record = self.apply_resolution(record, outcome)

        return self._result(record, tuple(outcomes))

    def _result(
        self, record: ContentRecord, outcomes: tuple[Outcome, ...]
    ) -> ReconcileResult:
        transient = next((o for o in outcomes if isinstance(o, Transient)), None)

        if record.lifecycle_state is LifecycleState.READY:
            status = ReconcileStatus.READY
        elif record.lifecycle_state is LifecycleState.FAILED:
            status = ReconcileStatus.FAILED
        elif transient is not None:
            status = ReconcileStatus.RETRYABLE
        else:
            status = ReconcileStatus.PROCESSING

        return ReconcileResult(
            record=record,
            status=status,
            outcomes=outcomes,
            overdue=self.is_overdue(record),
            reason=transient.reason if transient else None,
        )
