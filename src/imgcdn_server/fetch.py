"""Loading source images for the local proxy.

Remote sources are fetched with httpx (with retry); local sources are read
from the configured public directory with anyio, never outside it.
"""

from __future__ import annotations

import logging
import mimetypes
from dataclasses import dataclass
from pathlib import Path

import anyio
import httpx

from imgcdn.errors import (
    ConfigurationError,
    ContractViolationError,
    SourceNotFoundError,
    UpstreamError,
    classify_upstream_status,
)
from imgcdn.providers.local import LocalImageRequest, SourceKind

from .retry import RetryPolicy, retry_with_policy

logger = logging.getLogger(__name__)

DEFAULT_MEDIA_TYPE = "application/octet-stream"


@dataclass(frozen=True)
class SourceImage:
    data: bytes
    media_type: str


def guess_media_type(name: str) -> str:
    media_type, _ = mimetypes.guess_type(name.split("?", 1)[0])
    return media_type or DEFAULT_MEDIA_TYPE


def _retry_after(value: str | None) -> float | None:
    """Seconds from a numeric Retry-After header; HTTP dates are ignored."""
    if not value:
        return None
    try:
        seconds = float(value)
    except ValueError:
        return None
    return seconds if seconds >= 0 else None


def _has_host(url: str) -> bool:
    try:
        return bool(httpx.URL(url).host)
    except httpx.InvalidURL:
        return False


class SourceLoader:
    """Loads the bytes behind a decoded local proxy request.

    Owns its httpx client unless one is passed in.
    """

    def __init__(
        self,
        *,
        http_client: httpx.AsyncClient | None = None,
        public_dir: str | Path | None = None,
        retry_policy: RetryPolicy | None = None,
        timeout: float = 30.0,
    ) -> None:
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            timeout=httpx.Timeout(timeout, connect=10.0),
            follow_redirects=True,
        )
        self._public_dir = Path(public_dir) if public_dir is not None else None
        self._retry_policy = retry_policy or RetryPolicy()

    async def load(self, request: LocalImageRequest) -> SourceImage:
        match request.source_kind:
            case SourceKind.REMOTE:
                url = request.source
                if url.startswith("//"):
                    url = "https:" + url
                if not url.lower().startswith(("http://", "https://")) or not _has_host(url):
                    raise ContractViolationError(
                        f"Remote source must be an http(s) URL with a host, got {request.source!r}",
                        provider="local",
                        field="source",
                    )
                return await retry_with_policy(lambda: self._fetch_remote(url), self._retry_policy)
            case SourceKind.LOCAL:
                return await self._read_local(request.source)

    async def _fetch_remote(self, url: str) -> SourceImage:
        try:
            response = await self._client.get(url)
        except httpx.TimeoutException as exc:
            raise UpstreamError(f"Timed out fetching {url}", url=url, retryable=True) from exc
        except httpx.TransportError as exc:
            raise UpstreamError(
                f"Network error fetching {url}: {exc}", url=url, retryable=True
            ) from exc

        if response.status_code >= 400:
            logger.warning("Upstream %s returned %d", url, response.status_code)
            raise classify_upstream_status(
                response.status_code,
                url,
                response.text,
                retry_after=_retry_after(response.headers.get("retry-after")),
            )

        content_type = response.headers.get("content-type", "")
        media_type = content_type.split(";", 1)[0].strip() or guess_media_type(url)
        return SourceImage(data=response.content, media_type=media_type)

    async def _read_local(self, source: str) -> SourceImage:
        if self._public_dir is None:
            raise ConfigurationError("Local sources need a public directory", provider="local")

        root = await anyio.Path(self._public_dir).resolve()
        relative = source.split("?", 1)[0].lstrip("/")
        target = await (root / relative).resolve()
        if not Path(target).is_relative_to(Path(root)):
            raise ContractViolationError(
                f"Source {source!r} escapes the public directory", provider="local", field="source"
            )
        if not await target.is_file():
            raise SourceNotFoundError(f"No such file: {source}", url=source)

        data = await target.read_bytes()
        return SourceImage(data=data, media_type=guess_media_type(target.name))

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
