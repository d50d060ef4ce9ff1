"""SQLite-backed content store for video records and their dependents."""

import functools
import logging
import sqlite3
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Optional, TypeVar

from reelsync.content_store.models import (
    RECONCILED_FIELDS,
    ContentKind,
    ContentRecord,
    DependentKind,
    DependentRecord,
    LifecycleState,
    OwnerCounters,
)
from reelsync.content_store.retry import with_db_retry, with_transaction_retry
from reelsync.core.errors import StoreError

logger = logging.getLogger(__name__)

T = TypeVar("T")

_COUNTER_FIELDS = tuple(kind.counter_field for kind in ContentKind)


def _raise_store_error(func: Callable[..., T]) -> Callable[..., T]:
    """Surface SQLite failures that survived retries as StoreError."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> T:
        try:
            return func(*args, **kwargs)
        except sqlite3.Error as e:
            raise StoreError(f"Content store {func.__name__} failed: {e}") from e

    return wrapper


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _row_to_record(row: sqlite3.Row) -> ContentRecord:
    return ContentRecord(
        id=row["id"],
        owner_id=row["owner_id"],
        kind=ContentKind(row["kind"]),
        upload_handle=row["upload_handle"],
        asset_handle=row["asset_handle"],
        stream_reference=row["stream_reference"],
        lifecycle_state=LifecycleState(row["lifecycle_state"]),
        failure_kind=row["failure_kind"],
        created_at=datetime.fromisoformat(row["created_at"]),
        updated_at=datetime.fromisoformat(row["updated_at"]),
        version=row["version"],
    )


class ContentStore:
    """Stores video content records, their dependents and owner counters.

    Records are only ever changed through :meth:`compare_and_set`, keyed on
    the record's version, so concurrent writers cannot overwrite each other.
    """

    def __init__(self, store_path: Path):
        """Initialize content store.

        Args:
            store_path: Directory holding the SQLite index
        """
        self.store_path = Path(store_path)
        self.store_path.mkdir(parents=True, exist_ok=True)
        self.db_path = self.store_path / "content.db"

        self._init_database()

    @contextmanager
    def _connection(self) -> Iterator[sqlite3.Connection]:
        conn = sqlite3.connect(self.db_path, timeout=5.0)
        conn.row_factory = sqlite3.Row
        try:
            with conn:
                yield conn
        finally:
            conn.close()

    @_raise_store_error
    @with_db_retry()
    def _init_database(self) -> None:
        """Create tables if they do not exist."""
        with self._connection() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS content_record (
                    id TEXT PRIMARY KEY,
                    owner_id TEXT NOT NULL,
                    kind TEXT NOT NULL,
                    upload_handle TEXT NOT NULL,
                    asset_handle TEXT,
                    stream_reference TEXT,
                    lifecycle_state TEXT NOT NULL,
                    failure_kind TEXT,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL,
                    version INTEGER NOT NULL DEFAULT 1
                )
            """
            )
            conn.execute(
                """
                CREATE INDEX IF NOT EXISTS idx_content_record_state
                ON content_record (lifecycle_state, created_at)
            """
            )
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS dependent_record (
                    id TEXT PRIMARY KEY,
                    content_id TEXT NOT NULL,
                    kind TEXT NOT NULL,
                    created_at TEXT NOT NULL
                )
            """
            )
            conn.execute(
                """
                CREATE INDEX IF NOT EXISTS idx_dependent_content
                ON dependent_record (content_id)
            """
            )
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS owner_counters (
                    owner_id TEXT PRIMARY KEY,
                    posts_count INTEGER NOT NULL DEFAULT 0,
                    reels_count INTEGER NOT NULL DEFAULT 0,
                    stories_count INTEGER NOT NULL DEFAULT 0
                )
            """
            )

    # ------------------------------------------------------------------
    # Content records
    # ------------------------------------------------------------------

    @_raise_store_error
    @with_transaction_retry
    def create_record(
        self,
        owner_id: str,
        kind: ContentKind,
        upload_handle: str,
        created_at: Optional[datetime] = None,
    ) -> ContentRecord:
        """Persist a new record in the processing state.

        Args:
            owner_id: Submitting user
            kind: Content kind
            upload_handle: Transient handle returned by the provider

        Returns:
            The stored record
        """
        if not upload_handle:
            raise ValueError("upload_handle must not be empty")

        now = created_at or _utcnow()
        record = ContentRecord(
            id=uuid.uuid4().hex,
            owner_id=owner_id,
            kind=ContentKind(kind),
            upload_handle=upload_handle,
            created_at=now,
            updated_at=now,
        )
        with self._connection() as conn:
            conn.execute(
                """
                INSERT INTO content_record
                (id, owner_id, kind, upload_handle, lifecycle_state,
                 created_at, updated_at, version)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """,
                (
                    record.id,
                    record.owner_id,
                    record.kind.value,
                    record.upload_handle,
                    record.lifecycle_state.value,
                    record.created_at.isoformat(),
                    record.updated_at.isoformat(),
                    record.version,
                ),
            )
        return record

    @_raise_store_error
    @with_db_retry()
    def get(self, record_id: str) -> Optional[ContentRecord]:
        """Load a record by ID, or None if absent."""
        with self._connection() as conn:
            row = conn.execute(
                "SELECT * FROM content_record WHERE id = ?", (record_id,)
            ).fetchone()
        return _row_to_record(row) if row else None

    @_raise_store_error
    @with_transaction_retry
    def compare_and_set(
        self, record_id: str, expected_version: int, fields: dict[str, Any]
    ) -> Optional[ContentRecord]:
        """Apply field changes only if the record is still at expected_version.

        Args:
            record_id: Record to update
            expected_version: Version of the snapshot the change was planned on
            fields: Reconciled fields to write

        Returns:
            The updated record, or None if the record moved on or is gone

        Raises:
            ValueError: If fields contains anything other than reconciled fields
        """
        unknown = set(fields) - RECONCILED_FIELDS
        if unknown or not fields:
            raise ValueError(f"Fields cannot be compare-and-set: {sorted(unknown)}")

        values = {
            name: value.value if isinstance(value, LifecycleState) else value
            for name, value in fields.items()
        }
        assignments = ", ".join(f"{name} = ?" for name in values)

        with self._connection() as conn:
            cursor = conn.execute(
                f"""
                UPDATE content_record
                SET {assignments}, updated_at = ?, version = version + 1
                WHERE id = ? AND version = ?
            """,
                (*values.values(), _utcnow().isoformat(), record_id, expected_version),
            )
            if cursor.rowcount == 0:
                return None
            row = conn.execute(
                "SELECT * FROM content_record WHERE id = ?", (record_id,)
            ).fetchone()
        return _row_to_record(row)

    @_raise_store_error
    @with_transaction_retry
    def delete(self, record_id: str) -> bool:
        """Delete a record.

        Returns:
            True if a row was removed, False if it was already gone
        """
        with self._connection() as conn:
            cursor = conn.execute(
                "DELETE FROM content_record WHERE id = ?", (record_id,)
            )
            return cursor.rowcount > 0

    @_raise_store_error
    @with_db_retry()
    def list_by_state(
        self, state: LifecycleState, limit: Optional[int] = None
    ) -> list[ContentRecord]:
        """List records in a lifecycle state, oldest first."""
        query = (
            "SELECT * FROM content_record WHERE lifecycle_state = ? "
            "ORDER BY created_at ASC"
        )
        params: tuple[Any, ...] = (LifecycleState(state).value,)
        if limit is not None:
            query += " LIMIT ?"
            params += (limit,)
        with self._connection() as conn:
            rows = conn.execute(query, params).fetchall()
        return [_row_to_record(row) for row in rows]

    # ------------------------------------------------------------------
    # Dependent records
    # ------------------------------------------------------------------

    @_raise_store_error
    @with_transaction_retry
    def add_dependent(self, content_id: str, kind: DependentKind) -> DependentRecord:
        """Attach a comment or notification to a content record."""
        dependent = DependentRecord(
            id=uuid.uuid4().hex,
            content_id=content_id,
            kind=DependentKind(kind),
            created_at=_utcnow(),
        )
        with self._connection() as conn:
            conn.execute(
                """
                INSERT INTO dependent_record (id, content_id, kind, created_at)
                VALUES (?, ?, ?, ?)
            """,
                (
                    dependent.id,
                    dependent.content_id,
                    dependent.kind.value,
                    dependent.created_at.isoformat(),
                ),
            )
        return dependent

    @_raise_store_error
    @with_db_retry()
    def list_dependents(self, content_id: str) -> list[DependentRecord]:
        """List every comment and notification referencing content_id."""
        with self._connection() as conn:
            rows = conn.execute(
                """
                SELECT * FROM dependent_record
                WHERE content_id = ?
                ORDER BY created_at ASC
            """,
                (content_id,),
            ).fetchall()
        return [
            DependentRecord(
                id=row["id"],
                content_id=row["content_id"],
                kind=DependentKind(row["kind"]),
                created_at=datetime.fromisoformat(row["created_at"]),
            )
            for row in rows
        ]

    @_raise_store_error
    @with_transaction_retry
    def delete_dependent(self, dependent_id: str) -> bool:
        """Delete a dependent record.

        Deleting a dependent that is already gone is not an error.

        Returns:
            True if a row was removed
        """
        with self._connection() as conn:
            cursor = conn.execute(
                "DELETE FROM dependent_record WHERE id = ?", (dependent_id,)
            )
            return cursor.rowcount > 0

    # ------------------------------------------------------------------
    # Owner counters
    # ------------------------------------------------------------------

    @_raise_store_error
    @with_transaction_retry
    def adjust_owner_counters(
        self, owner_id: str, kind: ContentKind, delta: int
    ) -> OwnerCounters:
        """Add delta to the owner's counter for kind, never going below zero."""
        column = ContentKind(kind).counter_field
        if column not in _COUNTER_FIELDS:
            raise ValueError(f"Unknown counter: {column}")

        with self._connection() as conn:
            conn.execute(
                "INSERT OR IGNORE INTO owner_counters (owner_id) VALUES (?)",
                (owner_id,),
            )
            conn.execute(
                f"""
                UPDATE owner_counters
                SET {column} = MAX(0, {column} + ?)
                WHERE owner_id = ?
            """,
                (delta, owner_id),
            )
            row = conn.execute(
                "SELECT * FROM owner_counters WHERE owner_id = ?", (owner_id,)
            ).fetchone()
        return OwnerCounters(
            owner_id=owner_id, **{name: row[name] for name in _COUNTER_FIELDS}
        )

    @_raise_store_error
    @with_db_retry()
    def get_owner_counters(self, owner_id: str) -> OwnerCounters:
        """Get the owner's cached counters (zeros if never touched)."""
        with self._connection() as conn:
            row = conn.execute(
                "SELECT * FROM owner_counters WHERE owner_id = ?", (owner_id,)
            ).fetchone()
        if row is None:
            return OwnerCounters(owner_id=owner_id)
        return OwnerCounters(
            owner_id=owner_id, **{name: row[name] for name in _COUNTER_FIELDS}
        )

    # ------------------------------------------------------------------
    # Statistics
    # ------------------------------------------------------------------

    @_raise_store_error
    @with_db_retry()
    def get_statistics(self) -> dict[str, int]:
        """Get statistics about stored content.

        Returns:
            Dictionary with statistics
        """
        with self._connection() as conn:
            rows = conn.execute(
                """
                SELECT lifecycle_state, COUNT(*) AS total
                FROM content_record
                GROUP BY lifecycle_state
            """
            ).fetchall()
            dependents = conn.execute(
                "SELECT COUNT(*) FROM dependent_record"
            ).fetchone()[0]

        by_state = {row["lifecycle_state"]: row["total"] for row in rows}

        try:
            store_size = self.db_path.stat().st_size
        except OSError as e:
            logger.warning(f"Could not stat content store database: {e}")
            store_size = 0

        return {
            "total_records": sum(by_state.values()),
            "processing_records": by_state.get(LifecycleState.PROCESSING.value, 0),
            "ready_records": by_state.get(LifecycleState.READY.value, 0),
            "failed_records": by_state.get(LifecycleState.FAILED.value, 0),
            "dependent_records": dependents,
            "store_size_bytes": store_size,
        }
