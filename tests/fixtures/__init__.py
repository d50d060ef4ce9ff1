"""Test fixture package for reelsync.

Contains fixtures for:
- Temporary content stores
- A scripted streaming provider
"""

from .content_store import content_store, processing_record, temp_store_path
from .provider import FakeStreamingProvider, fake_provider

__all__ = [
    # Content store
    "content_store",
    "processing_record",
    "temp_store_path",
    # Provider
    "FakeStreamingProvider",
    "fake_provider",
]
