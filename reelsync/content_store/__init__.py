"""Content store for submitted videos and their dependent records."""

from reelsync.content_store.models import (
    ContentKind,
    ContentRecord,
    DependentKind,
    DependentRecord,
    LifecycleState,
    OwnerCounters,
)
from reelsync.content_store.store import ContentStore

__all__ = [
    "ContentKind",
    "ContentRecord",
    "ContentStore",
    "DependentKind",
    "DependentRecord",
    "LifecycleState",
    "OwnerCounters",
]
