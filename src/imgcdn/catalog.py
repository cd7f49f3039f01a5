"""Catalog of the providers imgcdn can build URLs for.

Each entry names the provider, its aliases and its URL grammar, and knows
how to construct it from a ProviderConfig.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from imgcdn.errors import UnknownProviderError
from imgcdn.providers.base import ProviderAdapter, ProviderConfig
from imgcdn.providers.cloudinary import CloudinaryProvider
from imgcdn.providers.fastly import FastlyProvider
from imgcdn.providers.imagekit import ImageKitProvider
from imgcdn.providers.imgix import ImgixProvider
from imgcdn.providers.local import LocalProvider
from imgcdn.providers.twicpics import TwicPicsProvider


@dataclass(frozen=True)
class ProviderInfo:
    """Metadata for a known provider."""

    name: str
    display_name: str
    factory: Callable[..., ProviderAdapter]
    grammar: str
    example: str
    aliases: list[str] = field(default_factory=list)


PROVIDER_CATALOG: list[ProviderInfo] = [
    ProviderInfo(
        name="local",
        display_name="Local image proxy",
        factory=LocalProvider,
        grammar="path segments",
        example="/_image/local/remote/_/w_200/https%3A%2F%2Fexample.com%2Fa.png",
        aliases=["ipx", "static"],
    ),
    ProviderInfo(
        name="cloudinary",
        display_name="Cloudinary",
        factory=CloudinaryProvider,
        grammar="transform list",
        example="/f_auto,q_auto,w_200/a",
    ),
    ProviderInfo(
        name="twicpics",
        display_name="TwicPics",
        factory=TwicPicsProvider,
        grammar="query directive chain",
        example="/a.png?twic=v1/cover=200x-",
        aliases=["twic"],
    ),
    ProviderInfo(
        name="fastly",
        display_name="Fastly Image Optimizer",
        factory=FastlyProvider,
        grammar="query parameters",
        example="/a.png?width=200",
    ),
    ProviderInfo(
        name="imgix",
        display_name="imgix",
        factory=ImgixProvider,
        grammar="query parameters",
        example="/a.png?w=200",
    ),
    ProviderInfo(
        name="imagekit",
        display_name="ImageKit",
        factory=ImageKitProvider,
        grammar="transform query parameter",
        example="/a.png?tr=w-200",
    ),
]

_CATALOG_INDEX: dict[str, ProviderInfo] = {p.name: p for p in PROVIDER_CATALOG}

DEFAULT_PROVIDER = "local"


def get_provider_info(name: str) -> ProviderInfo | None:
    """Look up provider metadata by name or alias (case-insensitive).

    Returns:
        ProviderInfo if found, None otherwise.
    """
    key = name.strip().lower()
    info = _CATALOG_INDEX.get(key)
    if info is not None:
        return info

    for entry in PROVIDER_CATALOG:
        if key in entry.aliases:
            return entry

    return None


def list_providers() -> list[ProviderInfo]:
    return list(PROVIDER_CATALOG)


def create_provider(
    name: str, config: ProviderConfig | None = None, **kwargs: Any
) -> ProviderAdapter:
    """Instantiate the provider registered under ``name``.

    Extra keyword arguments go to the provider constructor, e.g.
    ``static_assets`` for the local provider.

    Raises:
        UnknownProviderError: If ``name`` matches no provider or alias.
    """
    info = get_provider_info(name)
    if info is None:
        raise UnknownProviderError(
            f"Unknown provider: {name!r}. "
            f"Available: {[p.name for p in PROVIDER_CATALOG]}",
            provider=name,
        )
    return info.factory(config or ProviderConfig(), **kwargs)
