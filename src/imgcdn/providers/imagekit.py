"""ImageKit provider.

A single ``tr`` query parameter holding comma-joined ``key-value`` tokens:
``?tr=w-200,h-200,cm-pad_resize,f-jpeg,q-80``. Passthrough keys follow as
``key-value`` tokens in key order; keys that collide with
``w``, ``h``, ``c``, ``cm``, ``f`` or ``q`` are dropped.

Fit policy: strict. ImageKit splits resize strategies between the crop
(``c``) and crop-mode (``cm``) parameters and rejects values it does not
know, so unknown fit values are omitted.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from imgcdn.types import ImageResult, Modifiers
from imgcdn.url import append_query, build_query, render_value, resolve_base_url

from .base import ProviderConfig, check_source, compose_source, passthrough_pairs

FIT_MAP: dict[str, tuple[str, str]] = {
    "contain": ("cm", "pad_resize"),
    "cover": ("c", "maintain_ratio"),
    "fill": ("c", "force"),
    "inside": ("c", "at_max"),
    "outside": ("c", "at_least"),
}

RESERVED_KEYS = frozenset({"w", "h", "c", "cm", "f", "q"})


class ImageKitProvider:
    """ImageKit URL-based transformation URLs."""

    def __init__(self, config: ProviderConfig | None = None) -> None:
        self._config = config or ProviderConfig()
        self._base_url = resolve_base_url(self._config.base_url, self._config.origin)

    @property
    def provider_name(self) -> str:
        return "imagekit"

    def _translate_tokens(self, modifiers: Modifiers) -> list[str]:
        pairs: list[tuple[str, Any]] = [("w", modifiers.width), ("h", modifiers.height)]
        if modifiers.fit is not None and modifiers.fit in FIT_MAP:
            pairs.append(FIT_MAP[modifiers.fit])
        pairs.append(("f", modifiers.format))
        pairs.append(("q", modifiers.quality))
        pairs.extend(passthrough_pairs(modifiers, RESERVED_KEYS))
        return [f"{key}-{render_value(value)}" for key, value in pairs if value is not None]

    def get_image(
        self, source: str, modifiers: Modifiers | Mapping[str, Any] | None = None
    ) -> ImageResult:
        source = check_source(source, self.provider_name)
        mods = Modifiers.coerce(modifiers)
        url = compose_source(self._base_url, source)
        tokens = self._translate_tokens(mods)
        query = build_query([("tr", ",".join(tokens))]) if tokens else ""
        return ImageResult(url=append_query(url, query))
