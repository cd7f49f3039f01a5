"""Local provider: URLs served by the bundled image proxy.

Path grammar::

    <base>/<provider_key>/<source_kind>/<format or _>/<modifiers>/<encoded source>

``modifiers`` is ``_`` when nothing was requested, otherwise comma-joined
tokens: ``f_<fit>`` first, then the size (``w_<W>``, ``h_<H>`` or
``s_<W>_<H>``), then ``q_<Q>`` and passthrough ``key_value`` tokens in key
order. The source is percent-encoded as one segment; relative sources are
resolved against the origin first and travel as ``remote``, or as ``local``
site paths when no origin is known.

Sources the static oracle recognizes are returned untouched with
``is_static=True``.

Fit policy: best-effort. The fit is forwarded verbatim to the proxy's
image engine.
"""

from __future__ import annotations

import json
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path
from typing import Any, Protocol, runtime_checkable
from urllib.parse import quote, unquote

from imgcdn.errors import ContractViolationError
from imgcdn.types import ImageResult, Modifiers
from imgcdn.url import clean_double_slashes, is_absolute_url, join_url, resolve_base_url

from .base import ProviderConfig, check_source

DEFAULT_BASE_URL = "/_image"
DEFAULT_PROVIDER_KEY = "local"
PLACEHOLDER = "_"

# Token keys owned by the canonical modifiers; passthrough keys may not use them.
RESERVED_TOKENS = frozenset({"f", "s", "w", "h", "q"})


class SourceKind(StrEnum):
    REMOTE = "remote"
    LOCAL = "local"


@runtime_checkable
class StaticAssetLookup(Protocol):
    """Synchronous, read-only oracle for already-servable static assets."""

    def is_static(self, source: str) -> bool: ...


class StaticManifest:
    """Static asset oracle backed by a set of site paths."""

    def __init__(self, paths: Iterable[str] = ()) -> None:
        self._paths = frozenset(self._normalize(p) for p in paths)

    @staticmethod
    def _normalize(path: str) -> str:
        path = path.split("?", 1)[0].split("#", 1)[0]
        return "/" + path.lstrip("/")

    @classmethod
    def from_file(cls, path: str | Path) -> StaticManifest:
        """Load a JSON manifest: a list of paths, or a mapping keyed by path."""
        data = json.loads(Path(path).read_text(encoding="utf-8"))
        if isinstance(data, Mapping):
            return cls(data.keys())
        if isinstance(data, list):
            return cls(str(item) for item in data)
        raise ValueError(f"Static manifest {path} must be a JSON list or object")

    def is_static(self, source: str) -> bool:
        if is_absolute_url(source):
            return False
        return self._normalize(source) in self._paths

    def __len__(self) -> int:
        return len(self._paths)


@dataclass(frozen=True)
class LocalImageRequest:
    """A decoded local proxy path."""

    provider_key: str
    source_kind: SourceKind
    format: str | None
    modifiers: Modifiers
    source: str


def _escape(value: str) -> str:
    return quote(value, safe="-.")


def _escape_key(key: str) -> str:
    return _escape(key).replace("_", "%5F")


def encode_modifiers(modifiers: Modifiers) -> str:
    """Render the modifier segment of a local proxy path."""
    tokens: list[str] = []
    if modifiers.fit is not None:
        tokens.append(f"f_{_escape(modifiers.fit)}")
    if modifiers.width is not None and modifiers.height is not None:
        tokens.append(f"s_{modifiers.width}_{modifiers.height}")
    elif modifiers.width is not None:
        tokens.append(f"w_{modifiers.width}")
    elif modifiers.height is not None:
        tokens.append(f"h_{modifiers.height}")
    if modifiers.quality is not None:
        tokens.append(f"q_{modifiers.quality}")
    for key, value in modifiers.extras:
        if key in RESERVED_TOKENS:
            continue
        tokens.append(f"{_escape_key(key)}_{_escape(str(value))}")
    return ",".join(tokens) or PLACEHOLDER


def decode_modifiers(segment: str, output_format: str | None = None) -> Modifiers:
    """Inverse of :func:`encode_modifiers`.

    Raises:
        ContractViolationError: If a token is malformed or a value is invalid.
    """
    fields: dict[str, Any] = {"format": output_format}
    extras: dict[str, str] = {}
    if segment != PLACEHOLDER:
        for token in segment.split(","):
            key, sep, value = token.partition("_")
            if not sep or not key:
                raise ContractViolationError(
                    f"Malformed modifier token {token!r}", provider="local", field="modifiers"
                )
            key, value = unquote(key), unquote(value)
            match key:
                case "f":
                    fields["fit"] = value
                case "w":
                    fields["width"] = value
                case "h":
                    fields["height"] = value
                case "s":
                    width, _, height = value.partition("_")
                    fields["width"], fields["height"] = width, height
                case "q":
                    fields["quality"] = value
                case _:
                    extras[key] = value
    return Modifiers(**fields, extras=extras)


def parse_local_path(path: str, *, prefix: str = DEFAULT_BASE_URL) -> LocalImageRequest:
    """Decode a raw (still percent-encoded) local proxy path.

    Raises:
        ContractViolationError: If the path does not follow the grammar.
    """
    path = path.split("?", 1)[0]
    prefix = prefix.rstrip("/") + "/"
    if not path.startswith(prefix):
        raise ContractViolationError(
            f"Path {path!r} is not under {prefix!r}", provider="local", field="path"
        )
    parts = path[len(prefix) :].split("/", 4)
    if len(parts) != 5 or not all(parts):
        raise ContractViolationError(
            f"Path {path!r} must have provider/kind/format/modifiers/source segments",
            provider="local",
            field="path",
        )
    provider_key, kind, fmt, segment, encoded = parts
    try:
        source_kind = SourceKind(kind)
    except ValueError:
        raise ContractViolationError(
            f"Unknown source kind {kind!r}", provider="local", field="path"
        ) from None

    output_format = None if fmt == PLACEHOLDER else unquote(fmt)
    source = unquote(encoded)
    if not source.strip():
        raise ContractViolationError("Empty source segment", provider="local", field="source")
    return LocalImageRequest(
        provider_key=unquote(provider_key),
        source_kind=source_kind,
        format=output_format,
        modifiers=decode_modifiers(segment, output_format),
        source=source,
    )


class LocalProvider:
    """URLs for the bundled ``/_image`` proxy."""

    def __init__(
        self,
        config: ProviderConfig | None = None,
        *,
        static_assets: StaticAssetLookup | None = None,
    ) -> None:
        self._config = config or ProviderConfig()
        self._base_url = resolve_base_url(self._config.base_url or DEFAULT_BASE_URL)
        self._provider_key = str(self._config.option("provider_key", DEFAULT_PROVIDER_KEY))
        self._static_assets = static_assets

    @property
    def provider_name(self) -> str:
        return "local"

    @property
    def base_url(self) -> str:
        return self._base_url

    def _resolve(self, source: str) -> tuple[SourceKind, str]:
        if is_absolute_url(source):
            return SourceKind.REMOTE, source
        origin = self._config.origin
        if origin:
            return SourceKind.REMOTE, join_url(origin.rstrip("/"), source)
        return SourceKind.LOCAL, "/" + source.lstrip("/")

    def get_image(
        self, source: str, modifiers: Modifiers | Mapping[str, Any] | None = None
    ) -> ImageResult:
        source = check_source(source, self.provider_name)
        mods = Modifiers.coerce(modifiers)

        if self._static_assets is not None and self._static_assets.is_static(source):
            return ImageResult(url=source, is_static=True)

        kind, resolved = self._resolve(source)
        url = join_url(
            self._base_url,
            _escape(self._provider_key),
            kind.value,
            _escape(mods.format) if mods.format else PLACEHOLDER,
            encode_modifiers(mods),
            quote(resolved, safe=""),
        )
        return ImageResult(url=clean_double_slashes(url))
