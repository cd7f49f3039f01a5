"""Top-level image client with provider routing.

The client is the main entry point for host applications. It holds the
providers configured at startup and routes each ``get_image`` call to one
of them; the providers themselves stay pure.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from imgcdn.catalog import create_provider, get_provider_info
from imgcdn.errors import ConfigurationError
from imgcdn.providers.base import ProviderAdapter, ProviderConfig
from imgcdn.types import ImageResult, Modifiers

logger = logging.getLogger(__name__)


class ImageClient:
    """Image URL client with provider routing.

    Usage::

        client = ImageClient(default_provider="cloudinary")
        client.register_provider(
            "cloudinary",
            CloudinaryProvider(ProviderConfig(base_url="https://res.cloudinary.com/demo/image/upload")),
        )

        result = client.get_image("/cat.png", {"width": 300})
    """

    def __init__(self, *, default_provider: str | None = None) -> None:
        self._providers: dict[str, ProviderAdapter] = {}
        self._default_provider = default_provider

    @property
    def providers(self) -> list[str]:
        return list(self._providers)

    @property
    def default_provider(self) -> str | None:
        return self._default_provider

    def register_provider(self, name: str, provider: ProviderAdapter) -> None:
        """Register a provider instance under ``name``.

        Args:
            name: Routing key, usually the provider's catalog name.
            provider: An object implementing ProviderAdapter.
        """
        self._providers[name] = provider
        logger.debug("Registered image provider %r (%s)", name, provider.provider_name)

    def configure(self, name: str, config: ProviderConfig | None = None, **kwargs: Any) -> None:
        """Create a catalog provider and register it under its canonical name."""
        provider = create_provider(name, config, **kwargs)
        self.register_provider(provider.provider_name, provider)

    def _resolve_provider(self, name: str | None) -> ProviderAdapter:
        """Resolve which provider serves a call.

        Resolution order:
        1. Explicit ``name`` (catalog aliases accepted)
        2. The default provider
        3. The only registered provider
        4. Fail with ConfigurationError
        """
        requested = name or self._default_provider
        if requested:
            provider = self._providers.get(requested)
            if provider is None:
                info = get_provider_info(requested)
                if info is not None:
                    provider = self._providers.get(info.name)
            if provider is not None:
                return provider
            raise ConfigurationError(
                f"Provider {requested!r} not registered. Available: {self.providers}",
                provider=requested,
            )

        if len(self._providers) == 1:
            return next(iter(self._providers.values()))

        raise ConfigurationError(
            "Cannot choose a provider: pass one explicitly or set default_provider. "
            f"Available: {self.providers}"
        )

    def get_image(
        self,
        source: str,
        modifiers: Modifiers | Mapping[str, Any] | None = None,
        *,
        provider: str | None = None,
    ) -> ImageResult:
        """Build the URL for ``source`` with the resolved provider."""
        adapter = self._resolve_provider(provider)
        result = adapter.get_image(source, modifiers)
        logger.debug("%s: %s -> %s", adapter.provider_name, source, result.url)
        return result


_default_client: ImageClient | None = None


def get_default_client() -> ImageClient:
    """Return the module-level client, creating one with the local provider."""
    global _default_client
    if _default_client is None:
        _default_client = ImageClient(default_provider="local")
        _default_client.configure("local")
    return _default_client


def set_default_client(client: ImageClient | None) -> None:
    global _default_client
    _default_client = client


def get_image(
    source: str,
    modifiers: Modifiers | Mapping[str, Any] | None = None,
    *,
    provider: str | None = None,
    client: ImageClient | None = None,
) -> ImageResult:
    """Build an image URL with the given (or default) client."""
    return (client or get_default_client()).get_image(source, modifiers, provider=provider)
