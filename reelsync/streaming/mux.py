"""Mux video API provider."""

from collections.abc import AsyncIterator, Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Optional

import httpx
from pydantic import ValidationError

from reelsync.core.config import settings
from reelsync.core.errors import (
    HandleExpiredError,
    ProviderNotConfiguredError,
    TransientProviderError,
)
from reelsync.core.logging import get_logger
from reelsync.streaming.base import StreamingProvider
from reelsync.streaming.metrics import PROVIDER_REQUESTS
from reelsync.streaming.types import (
    PUBLIC_POLICY,
    AssetStatus,
    PlaybackEntry,
    UploadStatus,
    UploadTicket,
)

logger = get_logger().bind(module="mux_provider")

# Credentials shipped in sample env files; never valid against the real API
PLACEHOLDER_TOKENS = frozenset({"test_token_id", "test_token_secret"})

UPLOAD_CHUNK_SIZE = 1024 * 1024


def _mask(token: str) -> str:
    return f"{token[:8]}..." if token else "Not set"


def playback_url(stream_reference: str, base_url: Optional[str] = None) -> str:
    """Build the HLS URL for a stream reference.

    Args:
        stream_reference: Public playback ID of a ready asset
        base_url: Stream host, defaults to settings.STREAM_BASE_URL

    Returns:
        Playable m3u8 URL
    """
    base = (base_url or settings.STREAM_BASE_URL).rstrip("/")
    return f"{base}/{stream_reference}.m3u8"


@contextmanager
def _parsing(endpoint: str) -> Iterator[None]:
    """Report a malformed provider payload as a transient failure."""
    try:
        yield
    except (ValidationError, TypeError) as e:
        raise TransientProviderError(
            f"Mux {endpoint} returned a malformed payload: {e}"
        ) from e


async def _iter_file(path: Path) -> AsyncIterator[bytes]:
    with path.open("rb") as fh:
        while chunk := fh.read(UPLOAD_CHUNK_SIZE):
            yield chunk


class MuxProvider(StreamingProvider):
    """Streaming provider backed by the Mux video REST API."""

    def __init__(
        self,
        token_id: Optional[str] = None,
        token_secret: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        connect_timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """Initialize the Mux provider.

        Args:
            token_id: API token ID, defaults to settings.MUX_TOKEN_ID
            token_secret: API token secret, defaults to settings.MUX_TOKEN_SECRET
            base_url: API base URL, defaults to settings.MUX_BASE_URL
            timeout: Per-call timeout in seconds
            connect_timeout: Connect timeout in seconds
            transport: Optional httpx transport (used by tests)
        """
        self.token_id = (token_id if token_id is not None else settings.MUX_TOKEN_ID).strip()
        self.token_secret = (
            token_secret if token_secret is not None else settings.MUX_TOKEN_SECRET
        ).strip()
        self.base_url = base_url or settings.MUX_BASE_URL
        self._timeout = httpx.Timeout(
            timeout or settings.PROVIDER_TIMEOUT,
            connect=connect_timeout or settings.PROVIDER_CONNECT_TIMEOUT,
        )
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

        logger.debug(
            "mux_provider_initialized",
            token_id=_mask(self.token_id),
            base_url=self.base_url,
        )

    def is_configured(self) -> bool:
        """Check that real (non-placeholder) credentials are present."""
        if not self.token_id or not self.token_secret:
            logger.warning("mux_credentials_missing")
            return False
        if self.token_id in PLACEHOLDER_TOKENS or self.token_secret in PLACEHOLDER_TOKENS:
            logger.warning("mux_credentials_placeholder")
            return False
        return True

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                auth=httpx.BasicAuth(self.token_id, self.token_secret),
                headers={"Content-Type": "application/json"},
                timeout=self._timeout,
                transport=self._transport,
            )
        return self._client

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _request(
        self, method: str, url: str, endpoint: str, **kwargs: Any
    ) -> httpx.Response:
        """Send one request, mapping infrastructure failures to TransientProviderError.

        Args:
            method: HTTP method
            url: Path relative to base_url, or an absolute URL
            endpoint: Metric label for the call

        Returns:
            Response with a status other than 429, 5xx, 401 or 403

        Raises:
            TransientProviderError: On timeout, any other httpx failure, 429 or 5xx
            ProviderNotConfiguredError: When the provider rejects credentials
        """
        try:
            response = await self.client.request(method, url, **kwargs)
        except httpx.TimeoutException as e:
            PROVIDER_REQUESTS.labels(endpoint=endpoint, status="timeout").inc()
            raise TransientProviderError(f"Mux {endpoint} timed out: {e}") from e
        except httpx.TransportError as e:
            PROVIDER_REQUESTS.labels(endpoint=endpoint, status="transport_error").inc()
            raise TransientProviderError(
                f"Mux {endpoint} transport error: {type(e).__name__}: {e}"
            ) from e
        except httpx.HTTPError as e:
            PROVIDER_REQUESTS.labels(endpoint=endpoint, status="request_error").inc()
            raise TransientProviderError(
                f"Mux {endpoint} request failed: {type(e).__name__}: {e}"
            ) from e

        PROVIDER_REQUESTS.labels(
            endpoint=endpoint, status=str(response.status_code)
        ).inc()

        if response.status_code in (401, 403):
            raise ProviderNotConfiguredError(
                f"Mux rejected credentials ({response.status_code}) on {endpoint}"
            )
        if response.status_code == 429 or response.status_code >= 500:
            raise TransientProviderError(
                f"Mux {endpoint} returned {response.status_code}: {response.text[:200]}"
            )
        return response

    @staticmethod
    def _data(response: httpx.Response, endpoint: str) -> dict[str, Any]:
        if response.status_code >= 400:
            raise TransientProviderError(
                f"Mux {endpoint} returned unexpected {response.status_code}: "
                f"{response.text[:200]}"
            )
        try:
            payload = response.json()
        except ValueError as e:
            raise TransientProviderError(f"Mux {endpoint} returned invalid JSON") from e
        data = payload.get("data") if isinstance(payload, dict) else None
        if not isinstance(data, dict):
            raise TransientProviderError(f"Mux {endpoint} response has no data object")
        return data

    async def create_upload(self) -> UploadTicket:
        if not self.is_configured():
            raise ProviderNotConfiguredError(
                "Mux credentials not configured. Set MUX_TOKEN_ID and MUX_TOKEN_SECRET."
            )

        response = await self._request(
            "POST",
            "/video/v1/uploads",
            "create_upload",
            json={
                "new_asset_settings": {"playback_policy": [PUBLIC_POLICY]},
                "cors_origin": "*",
            },
        )
        data = self._data(response, "create_upload")
        with _parsing("create_upload"):
            ticket = UploadTicket(
                upload_handle=data.get("id"), upload_url=data.get("url")
            )
        logger.info("mux_upload_created", upload_handle=ticket.upload_handle)
        return ticket

    async def upload_file(self, upload_url: str, path: Path) -> None:
        path = Path(path)
        response = await self._request(
            "PUT",
            upload_url,
            "upload_file",
            content=_iter_file(path),
            headers={
                "Content-Type": "video/mp4",
                "Content-Length": str(path.stat().st_size),
            },
            # The upload URL is pre-signed; API credentials must not leak to it
            auth=None,
        )
        if response.status_code >= 400:
            raise TransientProviderError(
                f"Video upload failed: {response.status_code} - {response.text[:200]}"
            )
        logger.info("mux_file_uploaded", path=str(path))

    async def get_upload_status(self, upload_handle: str) -> UploadStatus:
        response = await self._request(
            "GET", f"/video/v1/uploads/{upload_handle}", "get_upload"
        )
        if response.status_code == 404:
            raise HandleExpiredError(f"Upload not found: {upload_handle}")
        data = self._data(response, "get_upload")
        with _parsing("get_upload"):
            return UploadStatus(
                upload_handle=upload_handle,
                status=data.get("status", "waiting"),
                asset_handle=data.get("asset_id") or None,
            )

    async def get_asset_status(self, asset_handle: str) -> AssetStatus:
        response = await self._request(
            "GET", f"/video/v1/assets/{asset_handle}", "get_asset"
        )
        if response.status_code == 404:
            raise HandleExpiredError(f"Asset not found: {asset_handle}")
        data = self._data(response, "get_asset")
        with _parsing("get_asset"):
            return AssetStatus(
                asset_handle=data.get("id", asset_handle),
                status=data.get("status", "preparing"),
                playback_entries=[
                    PlaybackEntry.model_validate(entry)
                    for entry in data.get("playback_ids") or []
                ],
                duration=data.get("duration"),
                aspect_ratio=data.get("aspect_ratio"),
            )

    async def delete_asset(self, asset_handle: str) -> bool:
        response = await self._request(
            "DELETE", f"/video/v1/assets/{asset_handle}", "delete_asset"
        )
        if response.status_code == 404:
            logger.info("mux_asset_already_deleted", asset_handle=asset_handle)
            return True
        if response.is_success:
            return True
        logger.warning(
            "mux_asset_delete_rejected",
            asset_handle=asset_handle,
            status_code=response.status_code,
        )
        return False

    def __repr__(self) -> str:
        return f"MuxProvider(base_url='{self.base_url}')"
