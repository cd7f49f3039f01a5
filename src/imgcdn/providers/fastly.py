"""Fastly Image Optimizer provider.

Flat query parameters: ``?width=&height=&fit=&format=&quality=``, then any
passthrough keys in key order. Absent modifiers omit their parameter, and
passthrough keys named like one of those parameters are dropped.

Fit policy: best-effort. Unknown fit values are passed through unchanged.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from imgcdn.types import ImageResult, Modifiers
from imgcdn.url import append_query, build_query, resolve_base_url

from .base import (
    ProviderConfig,
    check_source,
    compose_source,
    lookup_fit,
    passthrough_pairs,
)

FIT_MAP: dict[str, str] = {
    "contain": "bounds",
    "cover": "cover",
    "fill": "crop",
}

RESERVED_KEYS = frozenset({"width", "height", "fit", "format", "quality"})


class FastlyProvider:
    """Fastly Image Optimizer URLs."""

    def __init__(self, config: ProviderConfig | None = None) -> None:
        self._config = config or ProviderConfig()
        self._base_url = resolve_base_url(self._config.base_url, self._config.origin)

    @property
    def provider_name(self) -> str:
        return "fastly"

    def _translate_params(self, modifiers: Modifiers) -> list[tuple[str, Any]]:
        params: list[tuple[str, Any]] = [
            ("width", modifiers.width),
            ("height", modifiers.height),
            ("fit", lookup_fit(FIT_MAP, modifiers.fit, passthrough=True)),
            ("format", modifiers.format),
            ("quality", modifiers.quality),
        ]
        params.extend(passthrough_pairs(modifiers, RESERVED_KEYS))
        return params

    def get_image(
        self, source: str, modifiers: Modifiers | Mapping[str, Any] | None = None
    ) -> ImageResult:
        source = check_source(source, self.provider_name)
        mods = Modifiers.coerce(modifiers)
        url = compose_source(self._base_url, source)
        return ImageResult(url=append_query(url, build_query(self._translate_params(mods))))
