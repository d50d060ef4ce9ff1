"""Readiness polling for processed assets."""

from typing import Optional

from reelsync.core.errors import (
    NoPlayableVariantError,
    PermanentAssetError,
    TransientProviderError,
)
from reelsync.core.logging import get_logger
from reelsync.reconciler.outcomes import (
    NotYetAvailable,
    Outcome,
    Permanent,
    Ready,
    Resolved,
    Transient,
)
from reelsync.reconciler.resolver import IdentifierResolver
from reelsync.streaming.base import StreamingProvider
from reelsync.streaming.types import AssetStatus, PlaybackEntry

logger = get_logger().bind(module="readiness_poller")


class ReadinessPoller:
    """Determines whether a playable stream reference exists for a video.

    Polling is never scheduled here. Each call performs at most two provider
    requests (resolve, then asset status) and is safe to repeat.
    """

    def __init__(
        self, provider: StreamingProvider, resolver: Optional[IdentifierResolver] = None
    ) -> None:
        """Initialize poller.

        Args:
            provider: Streaming provider to query
            resolver: Resolver for upload handles, built from provider if omitted
        """
        self.provider = provider
        self.resolver = resolver or IdentifierResolver(provider)

    async def check_ready(
        self,
        asset_handle: Optional[str] = None,
        upload_handle: Optional[str] = None,
    ) -> list[Outcome]:
        """Check whether a video can be played.

        Args:
            asset_handle: Durable handle if already known
            upload_handle: Transient handle to resolve when asset_handle is unknown

        Returns:
            Outcomes in the order they were obtained. When the upload handle is
            resolved during this call, Resolved comes first, followed by the
            asset check outcome.

        Raises:
            ValueError: If neither handle is given
        """
        outcomes: list[Outcome] = []

        if not asset_handle:
            if not upload_handle:
                raise ValueError("Either asset_handle or upload_handle is required")
            resolution = await self.resolver.resolve(upload_handle)
            outcomes.append(resolution)
            if not isinstance(resolution, Resolved):
                return outcomes
            asset_handle = resolution.asset_handle

        outcomes.append(await self._check_asset(asset_handle))
        return outcomes

    async def _check_asset(self, asset_handle: str) -> Outcome:
        try:
            asset = await self.provider.get_asset_status(asset_handle)
            if not asset.ready and not asset.errored:
                logger.debug(
                    "asset_not_ready", asset_handle=asset_handle, status=asset.status
                )
                return NotYetAvailable()
            playback = _public_playback(asset)
        except TransientProviderError as e:
            logger.warning(
                "asset_status_unavailable", asset_handle=asset_handle, error=str(e)
            )
            return Transient(reason=str(e))
        except PermanentAssetError as e:
            logger.warning(
                "asset_unplayable", asset_handle=asset_handle, kind=e.kind, error=str(e)
            )
            return Permanent(kind=e.kind, detail=str(e))

        logger.info(
            "asset_ready", asset_handle=asset_handle, stream_reference=playback.id
        )
        return Ready(stream_reference=playback.id, asset_handle=asset_handle)


def _public_playback(asset: AssetStatus) -> PlaybackEntry:
    """Public playback entry of an asset the provider has finished with.

    Raises:
        NoPlayableVariantError: If the asset errored or exposes no public entry
    """
    if asset.errored:
        raise NoPlayableVariantError(f"Asset {asset.asset_handle} failed processing")
    playback = asset.public_playback()
    if playback is None:
        policies = ", ".join(entry.policy for entry in asset.playback_entries)
        raise NoPlayableVariantError(
            f"Asset {asset.asset_handle} has no public playback entry "
            f"(policies: {policies or 'none'})"
        )
    return playback
