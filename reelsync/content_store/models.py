"""Data models for content store."""

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional


class LifecycleState(str, Enum):
    """Lifecycle of a submitted video."""

    PROCESSING = "processing"
    READY = "ready"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self is not LifecycleState.PROCESSING


class ContentKind(str, Enum):
    """Kind of content a video belongs to."""

    POST = "post"
    REEL = "reel"
    STORY = "story"

    @property
    def counter_field(self) -> str:
        """Owner counter column tracking this kind."""
        return _COUNTER_COLUMNS[self]


_COUNTER_COLUMNS = {
    ContentKind.POST: "posts_count",
    ContentKind.REEL: "reels_count",
    ContentKind.STORY: "stories_count",
}


class DependentKind(str, Enum):
    """Records owned by a content record."""

    COMMENT = "comment"
    NOTIFICATION = "notification"


# Fields only the reconciler may change through compare-and-set
RECONCILED_FIELDS = frozenset(
    {"asset_handle", "stream_reference", "lifecycle_state", "failure_kind"}
)


@dataclass(frozen=True)
class ContentRecord:
    """Represents one submitted video in the content store."""

    id: str
    owner_id: str
    kind: ContentKind
    upload_handle: str
    created_at: datetime
    updated_at: datetime
    lifecycle_state: LifecycleState = LifecycleState.PROCESSING
    asset_handle: Optional[str] = None
    stream_reference: Optional[str] = None
    failure_kind: Optional[str] = None
    version: int = 1

    @property
    def awaits_conversion(self) -> bool:
        """True while the upload handle has not been resolved to an asset handle."""
        return self.asset_handle is None

    def processing_elapsed(self, now: Optional[datetime] = None) -> float:
        """Seconds since the record was created."""
        now = now or datetime.now(timezone.utc)
        return (now - self.created_at).total_seconds()

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "owner_id": self.owner_id,
            "kind": self.kind.value,
            "upload_handle": self.upload_handle,
            "asset_handle": self.asset_handle,
            "stream_reference": self.stream_reference,
            "lifecycle_state": self.lifecycle_state.value,
            "failure_kind": self.failure_kind,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
            "version": self.version,
        }


@dataclass(frozen=True)
class DependentRecord:
    """A comment or notification attached to a content record."""

    id: str
    content_id: str
    kind: DependentKind
    created_at: datetime


@dataclass(frozen=True)
class OwnerCounters:
    """Cached per-owner content counts."""

    owner_id: str
    posts_count: int = 0
    reels_count: int = 0
    stories_count: int = 0
