"""TwicPics provider.

Transformations are an ordered, slash-separated directive chain carried by
a ``twic=v1`` query directive:
``?twic=v1/format=jpeg/quality=80/contain=200x200``. A missing dimension
renders as ``-`` in the ``WxH`` pair. Passthrough keys are appended as
``key=value`` directives in key order, except keys that name a
directive this provider emits itself (``format``, ``quality`` and the size
directives).

Fit policy: strict. The fit picks the name of the size directive; unknown
fit values fall back to ``cover``, the TwicPics default.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from imgcdn.types import ImageResult, Modifiers
from imgcdn.url import append_query, build_query, render_value, resolve_base_url

from .base import ProviderConfig, check_source, compose_source, passthrough_pairs

FIT_MAP: dict[str, str] = {
    "fill": "resize",
    "inside": "contain-min",
    "outside": "contain-max",
    "cover": "cover",
    "contain": "contain",
}

DEFAULT_FIT = "cover"
RESERVED_KEYS = frozenset({"format", "quality", *FIT_MAP.values()})
TWIC_VERSION = "v1"


class TwicPicsProvider:
    """TwicPics API URLs."""

    def __init__(self, config: ProviderConfig | None = None) -> None:
        self._config = config or ProviderConfig()
        self._base_url = resolve_base_url(self._config.base_url, self._config.origin)

    @property
    def provider_name(self) -> str:
        return "twicpics"

    def _translate_directives(self, modifiers: Modifiers) -> list[str]:
        directives: list[str] = []
        if modifiers.format is not None:
            directives.append(f"format={modifiers.format}")
        if modifiers.quality is not None:
            directives.append(f"quality={modifiers.quality}")
        if modifiers.width is not None or modifiers.height is not None:
            fit = FIT_MAP.get(modifiers.fit or DEFAULT_FIT, DEFAULT_FIT)
            width = modifiers.width if modifiers.width is not None else "-"
            height = modifiers.height if modifiers.height is not None else "-"
            directives.append(f"{fit}={width}x{height}")
        directives.extend(
            f"{key}={render_value(value)}"
            for key, value in passthrough_pairs(modifiers, RESERVED_KEYS)
        )
        return directives

    def get_image(
        self, source: str, modifiers: Modifiers | Mapping[str, Any] | None = None
    ) -> ImageResult:
        source = check_source(source, self.provider_name)
        mods = Modifiers.coerce(modifiers)
        url = compose_source(self._base_url, source)
        directives = self._translate_directives(mods)
        if not directives:
            return ImageResult(url=url)
        chain = "/".join([TWIC_VERSION, *directives])
        return ImageResult(url=append_query(url, build_query([("twic", chain)])))
