"""Base provider protocol and configuration.

Defines the contract every provider implements, and the configuration
shape they are constructed with.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Protocol, runtime_checkable
from urllib.parse import quote

from imgcdn.errors import ContractViolationError
from imgcdn.types import ImageResult, Modifiers
from imgcdn.url import is_absolute_url, join_url


@dataclass(frozen=True)
class ProviderConfig:
    """Configuration for a provider.

    Each provider receives this once at construction time and reuses it for
    every call. ``origin`` is the ambient request origin supplied by the host
    application; ``options`` holds vendor-specific keys (e.g. cloudinary's
    ``mode``) and is exposed read-only.
    """

    base_url: str = ""
    origin: str | None = None
    options: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "options", MappingProxyType(dict(self.options)))

    def option(self, key: str, default: Any = None) -> Any:
        return self.options.get(key, default)


@runtime_checkable
class ProviderAdapter(Protocol):
    """Protocol that all providers implement.

    Each provider translates canonical Modifiers into its vendor's URL
    grammar. Implementations are pure: no I/O, no mutation of their inputs,
    and identical inputs always give an identical URL.
    """

    @property
    def provider_name(self) -> str:
        """The provider identifier (e.g., 'cloudinary', 'imgix', 'local')."""
        ...

    def get_image(
        self, source: str, modifiers: Modifiers | Mapping[str, Any] | None = None
    ) -> ImageResult:
        """Build the URL that serves ``source`` with ``modifiers`` applied.

        Raises:
            ContractViolationError: If ``source`` is empty or the modifiers
                are invalid.
        """
        ...


def check_source(source: str, provider: str) -> str:
    """Validate a source string; shared by every provider."""
    if not isinstance(source, str) or not source.strip():
        raise ContractViolationError(
            "Image source must be a non-empty string", provider=provider, field="source"
        )
    return source.strip()


def compose_source(base_url: str, source: str, *, encode_absolute: bool = False) -> str:
    """Place ``source`` under a resolved base URL.

    Relative sources are appended as a path. Absolute sources are inlined
    after the base (the vendors' web-proxy form), percent-encoded when the
    vendor requires it. With no base the source is returned unchanged.
    """
    if not base_url:
        return source
    if is_absolute_url(source) and encode_absolute:
        return join_url(base_url, quote(source, safe=""))
    return join_url(base_url, source)


def lookup_fit(table: Mapping[str, str], fit: str | None, *, passthrough: bool) -> str | None:
    """Map a canonical fit onto a vendor token.

    Unknown values are returned unchanged when ``passthrough`` is set and
    dropped otherwise.
    """
    if fit is None:
        return None
    if fit in table:
        return table[fit]
    return fit if passthrough else None


def passthrough_pairs(modifiers: Modifiers, reserved: frozenset[str]) -> list[tuple[str, Any]]:
    """Extras whose key is not one of the provider's own token names.

    Colliding keys are dropped so a URL never carries two values for the
    same vendor parameter.
    """
    return [(key, value) for key, value in modifiers.extras if key not in reserved]
