"""Configuration for content store."""

import os
from pathlib import Path
from typing import Optional

from reelsync.content_store.store import ContentStore
from reelsync.core.config import settings


def create_content_store(store_path: Optional[str | Path] = None) -> ContentStore:
    """Create a content store.

    Resolution order for the store location:
    - explicit store_path argument
    - CONTENT_STORE_PATH environment variable
    - settings.CONTENT_STORE_PATH

    Args:
        store_path: Optional explicit store directory

    Returns:
        ContentStore instance rooted at the resolved directory
    """
    resolved = store_path or os.environ.get("CONTENT_STORE_PATH") or settings.CONTENT_STORE_PATH
    path = Path(resolved).expanduser()
    path.mkdir(parents=True, exist_ok=True)
    return ContentStore(store_path=path)
