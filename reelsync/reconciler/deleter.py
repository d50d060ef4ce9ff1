"""Cascading delete of a video record and everything it owns."""

from dataclasses import dataclass, field

from structlog.stdlib import BoundLogger

from reelsync.content_store.store import ContentStore
from reelsync.core.errors import (
    ForbiddenError,
    RecordNotFoundError,
    ReelSyncError,
    StoreError,
)
from reelsync.core.logging import get_logger, get_record_logger
from reelsync.reconciler.metrics import CLEANUP_FAILURES, ORPHANED_ASSETS
from reelsync.streaming.base import StreamingProvider

logger = get_logger().bind(module="cascading_deleter")


@dataclass(frozen=True)
class CleanupFailure:
    """A secondary cleanup step that failed without blocking the delete."""

    kind: str  # asset, comment, notification, dependents, counters
    target_id: str
    error: str


@dataclass
class DeletionReport:
    """What a cascading delete did."""

    record_id: str
    asset_deleted: bool = False
    dependents_removed: int = 0
    cleanup_failures: list[CleanupFailure] = field(default_factory=list)

    @property
    def clean(self) -> bool:
        return not self.cleanup_failures


class CascadingDeleter:
    """Removes a record, its provider asset and its dependent records.

    Only the final record delete is fatal. Provider and dependent cleanup are
    best effort, logged, and safe to run again.
    """

    def __init__(self, store: ContentStore, provider: StreamingProvider) -> None:
        """Initialize deleter.

        Args:
            store: Content store holding records and dependents
            provider: Streaming provider owning the assets
        """
        self.store = store
        self.provider = provider

    async def delete(self, record_id: str, requester_id: str) -> DeletionReport:
        """Delete a record on behalf of its owner.

        Args:
            record_id: Record to delete
            requester_id: User asking for the delete

        Returns:
            DeletionReport listing any non-fatal cleanup failures

        Raises:
            RecordNotFoundError: If the record does not exist
            ForbiddenError: If requester_id is not the record owner
            StoreError: If the record itself could not be deleted
        """
        record = self.store.get(record_id)
        if record is None:
            raise RecordNotFoundError(record_id)
        if record.owner_id != requester_id:
            raise ForbiddenError(record_id, requester_id)

        log = get_record_logger(record_id, logger, owner_id=record.owner_id)
        report = DeletionReport(record_id=record_id)

        if record.asset_handle:
            report.asset_deleted = await self._delete_asset(
                record.asset_handle, report, log
            )

        try:
            dependents = self.store.list_dependents(record_id)
        except StoreError as e:
            dependents = []
            CLEANUP_FAILURES.labels(kind="dependents").inc()
            report.cleanup_failures.append(
                CleanupFailure(kind="dependents", target_id=record_id, error=str(e))
            )
            log.warning("dependent_listing_failed", error=str(e))

        for dependent in dependents:
            try:
                self.store.delete_dependent(dependent.id)
                report.dependents_removed += 1
            except StoreError as e:
                CLEANUP_FAILURES.labels(kind=dependent.kind.value).inc()
                report.cleanup_failures.append(
                    CleanupFailure(
                        kind=dependent.kind.value, target_id=dependent.id, error=str(e)
                    )
                )
                log.warning(
                    "dependent_delete_failed",
                    dependent_id=dependent.id,
                    dependent_kind=dependent.kind.value,
                    error=str(e),
                )

        if not self.store.delete(record_id):
            # Another delete won the race after our read
            raise RecordNotFoundError(record_id)

        try:
            self.store.adjust_owner_counters(record.owner_id, record.kind, -1)
        except StoreError as e:
            CLEANUP_FAILURES.labels(kind="counters").inc()
            report.cleanup_failures.append(
                CleanupFailure(kind="counters", target_id=record.owner_id, error=str(e))
            )
            log.warning("owner_counters_update_failed", error=str(e))

        log.info(
            "record_deleted",
            asset_deleted=report.asset_deleted,
            dependents_removed=report.dependents_removed,
            cleanup_failures=len(report.cleanup_failures),
        )
        return report

    async def _delete_asset(
        self, asset_handle: str, report: DeletionReport, log: BoundLogger
    ) -> bool:
        try:
            deleted = await self.provider.delete_asset(asset_handle)
            error = None if deleted else "provider refused delete"
        except ReelSyncError as e:
            deleted = False
            error = f"{type(e).__name__}: {e}"

        if not deleted:
            ORPHANED_ASSETS.inc()
            CLEANUP_FAILURES.labels(kind="asset").inc()
            report.cleanup_failures.append(
                CleanupFailure(kind="asset", target_id=asset_handle, error=error or "")
            )
            log.warning("orphaned_asset", asset_handle=asset_handle, error=error)
        return deleted
