#!/usr/bin/env python3
"""CLI commands for video ingestion reconciliation."""

import asyncio
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Awaitable, Callable, Optional, TypeVar

import click

from reelsync.content_store.config import create_content_store
from reelsync.content_store.models import ContentKind
from reelsync.content_store.store import ContentStore
from reelsync.core.config import settings
from reelsync.core.errors import ReelSyncError
from reelsync.core.logging import configure_logging
from reelsync.streaming.base import StreamingProvider
from reelsync.streaming.mux import MuxProvider, playback_url

T = TypeVar("T")


@contextmanager
def _click_errors() -> Iterator[None]:
    """Report reelsync errors as click errors instead of tracebacks."""
    try:
        yield
    except ReelSyncError as e:
        raise click.ClickException(str(e)) from e


def _run(
    ctx: click.Context, action: Callable[[ContentStore, StreamingProvider], Awaitable[T]]
) -> T:
    """Run an async action with a store and a provider that is closed afterwards."""

    async def runner(store: ContentStore) -> T:
        async with MuxProvider() as provider:
            return await action(store, provider)

    with _click_errors():
        return asyncio.run(runner(_store(ctx)))


def _store(ctx: click.Context) -> ContentStore:
    return create_content_store(ctx.obj.get("store_path"))


@click.group()
@click.option(
    "--store-path",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Content store directory (defaults to CONTENT_STORE_PATH)",
)
@click.option("--log-level", default=None, help="Log level (debug, info, ...)")
@click.pass_context
def cli(ctx: click.Context, store_path: Optional[Path], log_level: Optional[str]) -> None:
    """Video ingestion reconciliation commands."""
    configure_logging(
        testing=not settings.JSON_LOGS, level=log_level or settings.LOG_LEVEL
    )
    ctx.ensure_object(dict)
    ctx.obj["store_path"] = store_path


@cli.command()
@click.argument("owner_id")
@click.argument("video", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--kind",
    type=click.Choice([kind.value for kind in ContentKind]),
    default=ContentKind.REEL.value,
    show_default=True,
)
@click.pass_context
def submit(ctx: click.Context, owner_id: str, video: Path, kind: str) -> None:
    """Upload VIDEO for OWNER_ID and record it as processing."""
    from reelsync.ingest.submission import SubmissionService

    async def action(store: ContentStore, provider: StreamingProvider) -> Any:
        return await SubmissionService(store, provider).submit(
            owner_id, video, ContentKind(kind)
        )

    record = _run(ctx, action)
    print(f"Submitted {record.kind.value} {record.id}")
    print(f"  Upload handle: {record.upload_handle}")
    print("  State: processing (run 'refresh' to check progress)")


@cli.command()
@click.argument("record_id")
@click.pass_context
def refresh(ctx: click.Context, record_id: str) -> None:
    """Run one reconciliation attempt for RECORD_ID."""
    from reelsync.reconciler.poller import ReadinessPoller
    from reelsync.reconciler.reconciler import ReconcileStatus, RecordReconciler

    async def action(store: ContentStore, provider: StreamingProvider) -> Any:
        reconciler = RecordReconciler(store, ReadinessPoller(provider))
        return await reconciler.attempt_reconcile(record_id)

    result = _run(ctx, action)
    record = result.record

    if result.status is ReconcileStatus.READY:
        print(f"Ready: {playback_url(record.stream_reference or '')}")
    elif result.status is ReconcileStatus.FAILED:
        print(f"This video could not be processed ({record.failure_kind})")
    elif result.status is ReconcileStatus.RETRYABLE:
        print(f"Still processing, provider unavailable: {result.reason}")
    else:
        print("Still processing, tap to refresh")
    if result.overdue:
        print("  Processing is taking longer than usual")


@cli.command("refresh-all")
@click.option("--limit", type=int, default=None, help="Maximum records to check")
@click.option(
    "--delay", type=float, default=None, help="Seconds to pause between records"
)
@click.pass_context
def refresh_all(ctx: click.Context, limit: Optional[int], delay: Optional[float]) -> None:
    """Reconcile every record still processing."""
    from reelsync.reconciler.poller import ReadinessPoller
    from reelsync.reconciler.reconciler import RecordReconciler
    from reelsync.reconciler.sweep import reconcile_pending

    async def action(store: ContentStore, provider: StreamingProvider) -> Any:
        reconciler = RecordReconciler(store, ReadinessPoller(provider))
        return await reconcile_pending(reconciler, limit=limit, delay=delay)

    summary = _run(ctx, action)
    print("Refresh complete:")
    print(f"  Checked: {summary.checked}")
    print(f"  Ready: {summary.ready}")
    print(f"  Still processing: {summary.still_processing}")
    print(f"  Failed: {summary.failed}")
    print(f"  Errors: {summary.errors}")


@cli.command()
@click.argument("record_id")
@click.option("--owner", "owner_id", required=True, help="Requesting user ID")
@click.pass_context
def delete(ctx: click.Context, record_id: str, owner_id: str) -> None:
    """Delete RECORD_ID with its provider asset, comments and notifications."""
    from reelsync.reconciler.deleter import CascadingDeleter

    async def action(store: ContentStore, provider: StreamingProvider) -> Any:
        return await CascadingDeleter(store, provider).delete(record_id, owner_id)

    report = _run(ctx, action)
    print(f"Deleted {record_id}")
    print(f"  Asset deleted: {'yes' if report.asset_deleted else 'no'}")
    print(f"  Dependents removed: {report.dependents_removed}")
    for failure in report.cleanup_failures:
        print(f"  Warning: {failure.kind} {failure.target_id}: {failure.error}")


@cli.command()
@click.pass_context
def status(ctx: click.Context) -> None:
    """Show content store status."""
    with _click_errors():
        stats = _store(ctx).get_statistics()

    print("Content Store Status:")
    print(f"  Total records: {stats['total_records']}")
    print(f"  Processing: {stats['processing_records']}")
    print(f"  Ready: {stats['ready_records']}")
    print(f"  Failed: {stats['failed_records']}")
    print(f"  Dependents: {stats['dependent_records']}")
    print(f"  Store size: {stats['store_size_bytes'] / 1024 / 1024:.2f} MB")


@cli.command()
@click.argument("record_id")
@click.pass_context
def inspect(ctx: click.Context, record_id: str) -> None:
    """Inspect a specific content record."""
    with _click_errors():
        store = _store(ctx)
        record = store.get(record_id)
        dependents = store.list_dependents(record_id) if record else []
    if record is None:
        print(f"Record {record_id} not found in store")
        return

    print(f"Record: {record.id}")
    for name, value in record.to_dict().items():
        if name != "id":
            print(f"  {name}: {value if value is not None else '-'}")
    if record.stream_reference:
        print(f"  playback_url: {playback_url(record.stream_reference)}")

    print(f"  dependents: {len(dependents)}")


def main() -> None:
    """Console script entry point."""
    cli(obj={})


if __name__ == "__main__":
    main()
