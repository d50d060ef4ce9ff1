"""Base class for streaming providers."""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

from reelsync.streaming.types import AssetStatus, UploadStatus, UploadTicket


class StreamingProvider(ABC):
    """Base class for third-party ingestion/transcoding/streaming APIs.

    Implementations raise :class:`~reelsync.core.errors.TransientProviderError`
    for transport failures and timeouts, and
    :class:`~reelsync.core.errors.HandleExpiredError` when the provider does
    not know a handle.
    """

    @abstractmethod
    async def create_upload(self) -> UploadTicket:
        """Create a direct upload and return its transient handle and URL."""
        raise NotImplementedError

    @abstractmethod
    async def upload_file(self, upload_url: str, path: Path) -> None:
        """Send a local file to an upload URL."""
        raise NotImplementedError

    @abstractmethod
    async def get_upload_status(self, upload_handle: str) -> UploadStatus:
        """Query the upload-status endpoint for a transient handle."""
        raise NotImplementedError

    @abstractmethod
    async def get_asset_status(self, asset_handle: str) -> AssetStatus:
        """Query the asset-status endpoint for a durable handle."""
        raise NotImplementedError

    @abstractmethod
    async def delete_asset(self, asset_handle: str) -> bool:
        """Delete an asset.

        Returns:
            True if the asset is gone, including when it was already gone
        """
        raise NotImplementedError

    def is_configured(self) -> bool:
        """Check whether the provider has usable credentials."""
        return True

    async def aclose(self) -> None:
        """Release network resources."""

    async def __aenter__(self) -> "StreamingProvider":
        return self

    async def __aexit__(
        self,
        _exc_type: type[BaseException] | None,
        _exc_val: BaseException | None,
        _exc_tb: Any | None,
    ) -> None:
        await self.aclose()

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"
