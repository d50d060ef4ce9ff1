"""Type definitions for streaming providers."""

from typing import Optional

from pydantic import BaseModel, Field

PUBLIC_POLICY = "public"

# Upload states after which no asset will ever be created
DEAD_UPLOAD_STATUSES = frozenset({"errored", "cancelled", "timed_out"})


class UploadTicket(BaseModel):
    """Result of creating a direct upload."""

    upload_handle: str = Field(description="Transient upload identifier")
    upload_url: str = Field(description="URL the file must be PUT to")


class UploadStatus(BaseModel):
    """Provider view of a direct upload."""

    upload_handle: str
    status: str
    asset_handle: Optional[str] = None

    @property
    def converted(self) -> bool:
        """Whether the provider has created the durable asset."""
        return bool(self.asset_handle)

    @property
    def dead(self) -> bool:
        """Whether the upload can never produce an asset."""
        return self.status in DEAD_UPLOAD_STATUSES


class PlaybackEntry(BaseModel):
    """One playback configuration of an asset."""

    id: str
    policy: str = ""


class AssetStatus(BaseModel):
    """Provider view of a processed asset."""

    asset_handle: str
    status: str
    playback_entries: list[PlaybackEntry] = Field(default_factory=list)
    duration: Optional[float] = None
    aspect_ratio: Optional[str] = None

    @property
    def ready(self) -> bool:
        return self.status == "ready"

    @property
    def errored(self) -> bool:
        return self.status == "errored"

    def public_playback(self) -> Optional[PlaybackEntry]:
        """First playback entry tagged with the public policy."""
        return next(
            (entry for entry in self.playback_entries if entry.policy == PUBLIC_POLICY),
            None,
        )
