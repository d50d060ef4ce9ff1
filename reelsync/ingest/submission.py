"""Submission of local video files to the streaming provider."""

from pathlib import Path

from reelsync.content_store.models import ContentKind, ContentRecord
from reelsync.content_store.store import ContentStore
from reelsync.core.errors import ProviderNotConfiguredError, StoreError
from reelsync.core.logging import get_logger
from reelsync.streaming.base import StreamingProvider

logger = get_logger().bind(module="submission")


class SubmissionService:
    """Hands a video file to the provider and records it as processing."""

    def __init__(self, store: ContentStore, provider: StreamingProvider) -> None:
        self.store = store
        self.provider = provider

    async def submit(
        self, owner_id: str, file_path: str | Path, kind: ContentKind = ContentKind.REEL
    ) -> ContentRecord:
        """Upload a video and persist its processing record.

        Nothing is persisted until the provider has accepted the file, so a
        failed upload leaves no record behind.

        Args:
            owner_id: Submitting user
            file_path: Local video file
            kind: Content kind the video belongs to

        Returns:
            The new record in the processing state

        Raises:
            ProviderNotConfiguredError: If the provider has no usable credentials
            FileNotFoundError: If file_path does not exist
            TransientProviderError: If the provider could not accept the upload
        """
        if not self.provider.is_configured():
            raise ProviderNotConfiguredError(
                f"{self.provider!r} is not configured; refusing to submit"
            )

        path = Path(file_path)
        if not path.is_file():
            raise FileNotFoundError(f"Video file not found: {path}")

        ticket = await self.provider.create_upload()
        await self.provider.upload_file(ticket.upload_url, path)

        record = self.store.create_record(
            owner_id=owner_id, kind=ContentKind(kind), upload_handle=ticket.upload_handle
        )

        try:
            self.store.adjust_owner_counters(owner_id, record.kind, 1)
        except StoreError as e:
            logger.warning(
                "owner_counters_update_failed", owner_id=owner_id, error=str(e)
            )

        logger.info(
            "video_submitted",
            record_id=record.id,
            owner_id=owner_id,
            kind=record.kind.value,
            upload_handle=ticket.upload_handle,
        )
        return record
