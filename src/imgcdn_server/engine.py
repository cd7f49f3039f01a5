"""Image engine protocol for the local proxy.

The proxy decodes the request and loads the source; turning pixels into
the requested size and format is the engine's job. Plug in a real engine
(libvips, Pillow, an external service) by implementing ``transform``.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from imgcdn.providers.local import LocalImageRequest


@runtime_checkable
class ImageEngine(Protocol):
    async def transform(
        self, data: bytes, media_type: str, request: LocalImageRequest
    ) -> tuple[bytes, str]:
        """Return the transformed bytes and their media type."""
        ...


class PassthroughEngine:
    """Serves the source unchanged."""

    async def transform(
        self, data: bytes, media_type: str, request: LocalImageRequest
    ) -> tuple[bytes, str]:
        return data, media_type
