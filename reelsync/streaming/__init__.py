"""Streaming provider interface and implementations."""

from reelsync.streaming.base import StreamingProvider
from reelsync.streaming.mux import MuxProvider, playback_url
from reelsync.streaming.types import (
    AssetStatus,
    PlaybackEntry,
    UploadStatus,
    UploadTicket,
)

__all__ = [
    "AssetStatus",
    "MuxProvider",
    "PlaybackEntry",
    "StreamingProvider",
    "UploadStatus",
    "UploadTicket",
    "playback_url",
]
