"""Tests for the batch reconciliation sweep."""

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, patch

import pytest

from reelsync.content_store import ContentKind, ContentStore, LifecycleState
from reelsync.core.errors import RecordNotFoundError
from reelsync.reconciler.poller import ReadinessPoller
from reelsync.reconciler.reconciler import RecordReconciler
from reelsync.reconciler.sweep import SweepSummary, reconcile_pending
from reelsync.streaming.types import UploadStatus
from tests.fixtures.provider import (
    FakeStreamingProvider,
    asset_ready,
    upload_converted,
    upload_waiting,
)


@pytest.fixture
def reconciler(
    content_store: ContentStore, fake_provider: FakeStreamingProvider
) -> RecordReconciler:
    return RecordReconciler(content_store, ReadinessPoller(fake_provider))


def seed(store: ContentStore, handles: list[str]) -> list[str]:
    """Create processing records one minute apart, oldest first."""
    start = datetime.now(timezone.utc) - timedelta(minutes=len(handles))
    return [
        store.create_record(
            "user-1", ContentKind.REEL, handle, start + timedelta(minutes=i)
        ).id
        for i, handle in enumerate(handles)
    ]


@pytest.mark.asyncio
async def test_sweep_counts_each_outcome(
    reconciler: RecordReconciler,
    content_store: ContentStore,
    fake_provider: FakeStreamingProvider,
) -> None:
    ready_id, waiting_id, dead_id = seed(
        content_store, ["up-ready", "up-wait", "up-dead"]
    )
    fake_provider.script_upload("up-ready", upload_converted("up-ready", "asset-r"))
    fake_provider.script_asset("asset-r", asset_ready("asset-r"))
    fake_provider.script_upload("up-wait", upload_waiting("up-wait"))
    fake_provider.script_upload(
        "up-dead", UploadStatus(upload_handle="up-dead", status="errored")
    )
    sleep = AsyncMock()

    summary = await reconcile_pending(reconciler, delay=0.25, sleep=sleep)

    assert summary == SweepSummary(
        checked=3, ready=1, still_processing=1, failed=1, errors=0
    )
    assert content_store.get(ready_id).lifecycle_state is LifecycleState.READY
    assert content_store.get(waiting_id).lifecycle_state is LifecycleState.PROCESSING
    assert content_store.get(dead_id).failure_kind == "handle_expired"
    # Paused between records, never before the first
    assert sleep.await_count == 2
    sleep.assert_awaited_with(0.25)


@pytest.mark.asyncio
async def test_sweep_only_visits_processing_records(
    reconciler: RecordReconciler,
    content_store: ContentStore,
    fake_provider: FakeStreamingProvider,
) -> None:
    [done_id, pending_id] = seed(content_store, ["up-done", "up-pending"])
    content_store.compare_and_set(
        done_id,
        1,
        {"lifecycle_state": LifecycleState.READY, "stream_reference": "play-1"},
    )

    summary = await reconcile_pending(reconciler, delay=0)

    assert summary.checked == 1
    assert fake_provider.calls == [("get_upload_status", "up-pending")]
    assert content_store.get(pending_id) is not None


@pytest.mark.asyncio
async def test_sweep_respects_limit(
    reconciler: RecordReconciler,
    content_store: ContentStore,
    fake_provider: FakeStreamingProvider,
) -> None:
    seed(content_store, ["up-1", "up-2", "up-3"])

    summary = await reconcile_pending(reconciler, limit=2, delay=0)

    assert summary.checked == 2
    assert [handle for _, handle in fake_provider.calls] == ["up-1", "up-2"]


@pytest.mark.asyncio
async def test_sweep_continues_after_record_error(
    reconciler: RecordReconciler,
    content_store: ContentStore,
) -> None:
    """A record deleted mid-sweep is counted and skipped."""
    first_id, _ = seed(content_store, ["up-1", "up-2"])
    real_attempt = reconciler.attempt_reconcile

    async def attempt(record_id: str):
        if record_id == first_id:
            raise RecordNotFoundError(record_id)
        return await real_attempt(record_id)

    with patch.object(reconciler, "attempt_reconcile", side_effect=attempt):
        summary = await reconcile_pending(reconciler, delay=0)

    assert summary.errors == 1
    assert summary.still_processing == 1
    assert summary.checked == 2


@pytest.mark.asyncio
async def test_sweep_with_nothing_pending(reconciler: RecordReconciler) -> None:
    sleep = AsyncMock()

    summary = await reconcile_pending(reconciler, sleep=sleep)

    assert summary == SweepSummary()
    sleep.assert_not_awaited()
