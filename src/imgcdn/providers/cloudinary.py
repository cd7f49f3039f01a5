"""Cloudinary provider.

Transformations are one comma-joined segment of ``key_value`` tokens placed
in the path: ``f_jpeg,q_auto,w_200,h_200,c_scale``. Passthrough keys follow
as ``key_value`` tokens in key order; ``f``, ``q``, ``w``, ``h`` and ``c``
are never taken from them.

Three composition modes, chosen by the ``mode`` option or, when it is not
set, inferred from the base URL's path:

- ``fetch``: the base contains a ``fetch`` delivery segment. The source is
  a remote URL inlined after the transformations (relative sources are
  resolved against the origin first).
- ``upload``: the base contains an ``upload`` delivery segment. Segments
  after it are a folder; the source is a path under that folder.
- ``path``: anything else. The source's extension is dropped (Cloudinary
  public IDs carry none) and the vendor default ``f_auto,q_auto`` is
  always emitted.

Fit policy: best-effort. Unknown fit values are passed through as ``c_<fit>``.
"""

from __future__ import annotations

from collections.abc import Mapping
from enum import StrEnum
from typing import Any
from urllib.parse import urlsplit, urlunsplit

from imgcdn.errors import ConfigurationError
from imgcdn.types import ImageResult, Modifiers
from imgcdn.url import (
    is_absolute_url,
    join_url,
    render_value,
    resolve_base_url,
    resolve_source,
    strip_extension,
)

from .base import ProviderConfig, check_source, lookup_fit, passthrough_pairs

FIT_MAP: dict[str, str] = {
    "fill": "fill",
    "inside": "pad",
    "outside": "lpad",
    "cover": "fit",
    "contain": "scale",
}

RESERVED_KEYS = frozenset({"f", "q", "w", "h", "c"})


class CloudinaryMode(StrEnum):
    PATH = "path"
    UPLOAD = "upload"
    FETCH = "fetch"


_DELIVERY_SEGMENTS = {CloudinaryMode.UPLOAD.value, CloudinaryMode.FETCH.value}


def detect_mode(base_url: str) -> tuple[CloudinaryMode, str, str]:
    """Infer the composition mode from a resolved base URL.

    Returns:
        ``(mode, root, folder)`` where ``root`` is the base up to and
        including the delivery segment and ``folder`` is whatever path
        follows it (empty when none).
    """
    parts = urlsplit(base_url)
    segments = parts.path.split("/")
    for index, segment in enumerate(segments):
        if segment in _DELIVERY_SEGMENTS:
            root_path = "/".join(segments[: index + 1])
            folder = "/".join(s for s in segments[index + 1 :] if s)
            root = urlunsplit((parts.scheme, parts.netloc, root_path, "", ""))
            return CloudinaryMode(segment), root, folder
    return CloudinaryMode.PATH, base_url, ""


class CloudinaryProvider:
    """Cloudinary delivery URLs."""

    def __init__(self, config: ProviderConfig | None = None) -> None:
        self._config = config or ProviderConfig()
        base_url = resolve_base_url(self._config.base_url, self._config.origin)
        detected, root, folder = detect_mode(base_url)

        explicit = self._config.option("mode")
        if explicit is None:
            self._mode = detected
        else:
            try:
                self._mode = CloudinaryMode(explicit)
            except ValueError:
                raise ConfigurationError(
                    f"Unknown cloudinary mode {explicit!r}. "
                    f"Expected one of: {[m.value for m in CloudinaryMode]}",
                    provider="cloudinary",
                ) from None
            if self._mode != detected:
                root, folder = base_url, ""

        self._root = root
        self._folder = folder

    @property
    def provider_name(self) -> str:
        return "cloudinary"

    @property
    def mode(self) -> CloudinaryMode:
        return self._mode

    def _translate_operations(self, modifiers: Modifiers) -> list[str]:
        with_defaults = self._mode == CloudinaryMode.PATH
        ops: list[tuple[str, Any]] = [
            ("f", modifiers.format or ("auto" if with_defaults else None)),
            ("q", modifiers.quality or ("auto" if with_defaults else None)),
            ("w", modifiers.width),
            ("h", modifiers.height),
            ("c", lookup_fit(FIT_MAP, modifiers.fit, passthrough=True)),
        ]
        ops.extend(passthrough_pairs(modifiers, RESERVED_KEYS))
        return [f"{key}_{render_value(value)}" for key, value in ops if value is not None]

    def get_image(
        self, source: str, modifiers: Modifiers | Mapping[str, Any] | None = None
    ) -> ImageResult:
        source = check_source(source, self.provider_name)
        mods = Modifiers.coerce(modifiers)
        operations = ",".join(self._translate_operations(mods))

        match self._mode:
            case CloudinaryMode.FETCH:
                remote = resolve_source(source, self._config.origin)
                url = join_url(self._root or "/", operations, remote)
            case CloudinaryMode.UPLOAD:
                url = join_url(self._root or "/", operations, self._folder, source)
            case CloudinaryMode.PATH:
                public_id = source if is_absolute_url(source) else strip_extension(source)
                url = join_url(self._root or "/", operations, public_id)

        return ImageResult(url=url)
