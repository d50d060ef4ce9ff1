"""Upload handle to asset handle resolution."""

from reelsync.core.errors import HandleExpiredError, TransientProviderError
from reelsync.core.logging import get_logger
from reelsync.reconciler.outcomes import (
    NotYetAvailable,
    Outcome,
    Permanent,
    Resolved,
    Transient,
)
from reelsync.streaming.base import StreamingProvider

logger = get_logger().bind(module="identifier_resolver")


class IdentifierResolver:
    """Converts a transient upload handle into a durable asset handle."""

    def __init__(self, provider: StreamingProvider) -> None:
        """Initialize resolver.

        Args:
            provider: Streaming provider to query
        """
        self.provider = provider

    async def resolve(self, upload_handle: str) -> Outcome:
        """Ask the provider whether an upload has produced an asset.

        Args:
            upload_handle: Transient handle returned at submission time

        Returns:
            Resolved when the asset exists, NotYetAvailable while the provider
            is still building the container, Permanent when the handle is
            unknown or the upload died, Transient when the provider could not
            be reached

        Raises:
            ValueError: If upload_handle is empty
        """
        if not upload_handle:
            raise ValueError("upload_handle must not be empty")

        try:
            status = await self.provider.get_upload_status(upload_handle)
        except TransientProviderError as e:
            logger.warning(
                "upload_status_unavailable", upload_handle=upload_handle, error=str(e)
            )
            return Transient(reason=str(e))
        except HandleExpiredError as e:
            logger.warning("upload_handle_expired", upload_handle=upload_handle)
            return Permanent(kind=HandleExpiredError.kind, detail=str(e))

        if status.converted and status.asset_handle:
            logger.info(
                "upload_resolved",
                upload_handle=upload_handle,
                asset_handle=status.asset_handle,
            )
            return Resolved(asset_handle=status.asset_handle)

        if status.dead:
            logger.warning(
                "upload_dead", upload_handle=upload_handle, status=status.status
            )
            return Permanent(
                kind=HandleExpiredError.kind,
                detail=f"Upload {upload_handle} ended as {status.status}",
            )

        logger.debug(
            "upload_not_converted", upload_handle=upload_handle, status=status.status
        )
        return NotYetAvailable()
