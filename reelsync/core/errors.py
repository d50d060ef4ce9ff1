"""Exception taxonomy for ingestion reconciliation."""


class ReelSyncError(Exception):
    """Base class for all reelsync errors."""


class TransientProviderError(ReelSyncError):
    """Raised when the streaming provider could not be reached or answered 5xx/429.

    Safe to retry; never indicates failure of the underlying provider job.
    """


class PermanentAssetError(ReelSyncError):
    """Base class for asset-level failures that can never recover."""

    kind: str = "permanent"


class HandleExpiredError(PermanentAssetError):
    """Raised when the provider reports an upload or asset handle as unknown or expired."""

    kind = "handle_expired"


class NoPlayableVariantError(PermanentAssetError):
    """Raised when an asset is ready but has no public playback entry."""

    kind = "no_playable_variant"


class ProviderNotConfiguredError(ReelSyncError):
    """Raised when provider credentials are missing or placeholders."""


class RecordNotFoundError(ReelSyncError, KeyError):
    """Raised when a content record does not exist."""

    def __init__(self, record_id: str) -> None:
        super().__init__(record_id)
        self.record_id = record_id

    def __str__(self) -> str:
        return f"Content record not found: {self.record_id}"


class ForbiddenError(ReelSyncError):
    """Raised when a requester acts on a record they do not own."""

    def __init__(self, record_id: str, requester_id: str) -> None:
        super().__init__(f"User {requester_id} may not modify record {record_id}")
        self.record_id = record_id
        self.requester_id = requester_id


class StoreError(ReelSyncError):
    """Raised when a content store write fails."""

