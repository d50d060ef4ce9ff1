"""Tests for the readiness poller."""

import pytest

from reelsync.core.errors import HandleExpiredError, TransientProviderError
from reelsync.reconciler.outcomes import (
    NotYetAvailable,
    Permanent,
    Ready,
    Resolved,
    Transient,
)
from reelsync.reconciler.poller import ReadinessPoller
from reelsync.streaming.types import AssetStatus
from tests.fixtures.provider import (
    FakeStreamingProvider,
    asset_preparing,
    asset_ready,
    upload_converted,
    upload_waiting,
)


@pytest.fixture
def poller(fake_provider: FakeStreamingProvider) -> ReadinessPoller:
    return ReadinessPoller(fake_provider)


class TestCheckReady:
    """check_ready with a known asset handle."""

    @pytest.mark.asyncio
    async def test_ready_with_public_playback(
        self, poller: ReadinessPoller, fake_provider: FakeStreamingProvider
    ):
        fake_provider.script_asset("asset-xyz", asset_ready(playback="play-123"))

        outcomes = await poller.check_ready(asset_handle="asset-xyz")

        assert outcomes == [Ready(stream_reference="play-123", asset_handle="asset-xyz")]
        assert fake_provider.call_count("get_upload_status") == 0

    @pytest.mark.asyncio
    async def test_not_yet_available_while_preparing(
        self, poller: ReadinessPoller, fake_provider: FakeStreamingProvider
    ):
        fake_provider.script_asset("asset-xyz", asset_preparing())

        assert await poller.check_ready(asset_handle="asset-xyz") == [NotYetAvailable()]

    @pytest.mark.asyncio
    async def test_ready_without_public_entry_is_permanent(
        self, poller: ReadinessPoller, fake_provider: FakeStreamingProvider
    ):
        """Only signed playback means the asset can never be played publicly."""
        fake_provider.script_asset("asset-xyz", asset_ready(policy="signed"))

        [outcome] = await poller.check_ready(asset_handle="asset-xyz")

        assert isinstance(outcome, Permanent)
        assert outcome.kind == "no_playable_variant"

    @pytest.mark.asyncio
    async def test_errored_asset_is_permanent(
        self, poller: ReadinessPoller, fake_provider: FakeStreamingProvider
    ):
        fake_provider.script_asset(
            "asset-xyz", AssetStatus(asset_handle="asset-xyz", status="errored")
        )

        [outcome] = await poller.check_ready(asset_handle="asset-xyz")

        assert isinstance(outcome, Permanent)
        assert outcome.kind == "no_playable_variant"

    @pytest.mark.asyncio
    async def test_unknown_asset_is_permanent(
        self, poller: ReadinessPoller, fake_provider: FakeStreamingProvider
    ):
        fake_provider.script_asset("asset-xyz", HandleExpiredError("gone"))

        [outcome] = await poller.check_ready(asset_handle="asset-xyz")

        assert isinstance(outcome, Permanent)
        assert outcome.kind == "handle_expired"

    @pytest.mark.asyncio
    async def test_outage_is_transient(
        self, poller: ReadinessPoller, fake_provider: FakeStreamingProvider
    ):
        fake_provider.script_asset("asset-xyz", TransientProviderError("timeout"))

        [outcome] = await poller.check_ready(asset_handle="asset-xyz")

        assert isinstance(outcome, Transient)

    @pytest.mark.asyncio
    async def test_requires_a_handle(self, poller: ReadinessPoller):
        with pytest.raises(ValueError):
            await poller.check_ready()


class TestCheckReadyFromUpload:
    """check_ready when only the upload handle is known."""

    @pytest.mark.asyncio
    async def test_resolves_then_checks_asset(
        self, poller: ReadinessPoller, fake_provider: FakeStreamingProvider
    ):
        """Resolution and readiness can complete in a single call."""
        fake_provider.script_upload("upload-abc", upload_converted(asset="asset-xyz"))
        fake_provider.script_asset("asset-xyz", asset_ready(playback="play-123"))

        outcomes = await poller.check_ready(upload_handle="upload-abc")

        assert outcomes == [
            Resolved(asset_handle="asset-xyz"),
            Ready(stream_reference="play-123", asset_handle="asset-xyz"),
        ]

    @pytest.mark.asyncio
    async def test_resolved_but_not_ready(
        self, poller: ReadinessPoller, fake_provider: FakeStreamingProvider
    ):
        fake_provider.script_upload("upload-abc", upload_converted(asset="asset-xyz"))

        outcomes = await poller.check_ready(upload_handle="upload-abc")

        assert outcomes == [Resolved(asset_handle="asset-xyz"), NotYetAvailable()]

    @pytest.mark.asyncio
    async def test_stops_when_unresolved(
        self, poller: ReadinessPoller, fake_provider: FakeStreamingProvider
    ):
        """The asset endpoint is never queried without an asset handle."""
        fake_provider.script_upload("upload-abc", upload_waiting())

        outcomes = await poller.check_ready(upload_handle="upload-abc")

        assert outcomes == [NotYetAvailable()]
        assert fake_provider.call_count("get_asset_status") == 0

    @pytest.mark.asyncio
    async def test_asset_handle_takes_precedence(
        self, poller: ReadinessPoller, fake_provider: FakeStreamingProvider
    ):
        fake_provider.script_asset("asset-xyz", asset_ready())

        await poller.check_ready(asset_handle="asset-xyz", upload_handle="upload-abc")

        assert fake_provider.call_count("get_upload_status") == 0
