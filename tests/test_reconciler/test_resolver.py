"""Tests for the identifier resolver."""

import pytest

from reelsync.core.errors import HandleExpiredError, TransientProviderError
from reelsync.reconciler.outcomes import NotYetAvailable, Permanent, Resolved, Transient
from reelsync.reconciler.resolver import IdentifierResolver
from reelsync.streaming.types import UploadStatus
from tests.fixtures.provider import (
    FakeStreamingProvider,
    upload_converted,
    upload_waiting,
)


@pytest.fixture
def resolver(fake_provider: FakeStreamingProvider) -> IdentifierResolver:
    return IdentifierResolver(fake_provider)


@pytest.mark.asyncio
async def test_not_yet_available_while_waiting(
    resolver: IdentifierResolver, fake_provider: FakeStreamingProvider
) -> None:
    """No asset yet means the provider is still working."""
    fake_provider.script_upload("upload-abc", upload_waiting())

    assert await resolver.resolve("upload-abc") == NotYetAvailable()


@pytest.mark.asyncio
async def test_resolved_once_asset_exists(
    resolver: IdentifierResolver, fake_provider: FakeStreamingProvider
) -> None:
    fake_provider.script_upload("upload-abc", upload_converted(asset="asset-xyz"))

    assert await resolver.resolve("upload-abc") == Resolved(asset_handle="asset-xyz")


@pytest.mark.asyncio
async def test_resolution_is_stable(
    resolver: IdentifierResolver, fake_provider: FakeStreamingProvider
) -> None:
    """Once resolved, the same asset handle keeps coming back."""
    fake_provider.script_upload(
        "upload-abc", upload_waiting(), upload_converted(asset="asset-xyz")
    )

    first = await resolver.resolve("upload-abc")
    second = await resolver.resolve("upload-abc")
    third = await resolver.resolve("upload-abc")

    assert first == NotYetAvailable()
    assert second == third == Resolved(asset_handle="asset-xyz")


@pytest.mark.asyncio
async def test_transient_on_provider_outage(
    resolver: IdentifierResolver, fake_provider: FakeStreamingProvider
) -> None:
    """An unreachable provider never reads as a failed asset."""
    fake_provider.script_upload("upload-abc", TransientProviderError("503"))

    outcome = await resolver.resolve("upload-abc")

    assert isinstance(outcome, Transient)
    assert "503" in outcome.reason


@pytest.mark.asyncio
async def test_permanent_when_handle_unknown(
    resolver: IdentifierResolver, fake_provider: FakeStreamingProvider
) -> None:
    fake_provider.script_upload("upload-abc", HandleExpiredError("gone"))

    outcome = await resolver.resolve("upload-abc")

    assert isinstance(outcome, Permanent)
    assert outcome.kind == "handle_expired"


@pytest.mark.asyncio
@pytest.mark.parametrize("status", ["errored", "cancelled", "timed_out"])
async def test_permanent_when_upload_died(
    resolver: IdentifierResolver, fake_provider: FakeStreamingProvider, status: str
) -> None:
    """Uploads that ended without an asset can never resolve."""
    fake_provider.script_upload(
        "upload-abc", UploadStatus(upload_handle="upload-abc", status=status)
    )

    outcome = await resolver.resolve("upload-abc")

    assert isinstance(outcome, Permanent)
    assert outcome.kind == "handle_expired"


@pytest.mark.asyncio
async def test_empty_handle_is_rejected(resolver: IdentifierResolver) -> None:
    with pytest.raises(ValueError):
        await resolver.resolve("")
