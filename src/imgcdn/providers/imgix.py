"""imgix provider.

Short query parameter names: ``?w=&h=&fit=&fm=&q=``, then passthrough keys
(imgix has hundreds of them, e.g. ``auto``, ``crop``, ``dpr``).

Passthrough keys that reuse ``w``, ``h``, ``fit``, ``fm`` or ``q`` are dropped.

Absolute sources are inlined percent-encoded after the base URL, which is
how an imgix web-proxy source expects them.

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
    "fill": "scale",
    "inside": "max",
    "outside": "min",
    "cover": "crop",
    "contain": "fill",
}

_PARAM_NAMES: tuple[tuple[str, str], ...] = (
    ("width", "w"),
    ("height", "h"),
    ("fit", "fit"),
    ("format", "fm"),
    ("quality", "q"),
)

RESERVED_KEYS = frozenset(short for _, short in _PARAM_NAMES)


class ImgixProvider:
    """imgix rendering API URLs."""

    def __init__(self, config: ProviderConfig | None = None) -> None:
        self._config = config or ProviderConfig()
        self._base_url = resolve_base_url(self._config.base_url, self._config.origin)

    @property
    def provider_name(self) -> str:
        return "imgix"

    def _translate_params(self, modifiers: Modifiers) -> list[tuple[str, Any]]:
        values = {
            "width": modifiers.width,
            "height": modifiers.height,
            "fit": lookup_fit(FIT_MAP, modifiers.fit, passthrough=True),
            "format": modifiers.format,
            "quality": modifiers.quality,
        }
        params: list[tuple[str, Any]] = [(short, values[name]) for name, short in _PARAM_NAMES]
        params.extend(passthrough_pairs(modifiers, RESERVED_KEYS))
        return params

    def get_image(
        self, source: str, modifiers: Modifiers | Mapping[str, Any] | None = None
    ) -> ImageResult:
        source = check_source(source, self.provider_name)
        mods = Modifiers.coerce(modifiers)
        url = compose_source(self._base_url, source, encode_absolute=True)
        return ImageResult(url=append_query(url, build_query(self._translate_params(mods))))
