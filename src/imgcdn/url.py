"""Pure URL helpers shared by the providers.

None of these touch the network. Providers compose them to build their
vendor grammar on top of a resolved base URL.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from urllib.parse import quote, urljoin

_SCHEME_SEPARATOR = "://"
_SLASH_RUN = re.compile(r"/{2,}")
_ABSOLUTE = re.compile(r"^(https?:)?//", re.IGNORECASE)
_EXTENSION = re.compile(r"\.[^/.]+$")

# Kept readable in query values: vendors use these as their own separators.
_QUERY_SAFE = "/,:=-_.~*!"
_QUERY_KEY_SAFE = _QUERY_SAFE.replace("=", "")


def clean_double_slashes(url: str) -> str:
    """Collapse runs of ``/`` into one.

    The ``//`` after every scheme separator survives, including schemes
    embedded later in the string (a fetch-mode source inlined in a path),
    and so does a leading protocol-relative ``//``. Idempotent.
    """
    pieces = url.split(_SCHEME_SEPARATOR)
    cleaned: list[str] = []
    for index, piece in enumerate(pieces):
        if index == 0 and piece.startswith("//"):
            cleaned.append("//" + _SLASH_RUN.sub("/", piece.lstrip("/")))
        else:
            cleaned.append(_SLASH_RUN.sub("/", piece))
    return _SCHEME_SEPARATOR.join(cleaned)


def join_url(*segments: str) -> str:
    """Join segments with a single ``/``, skipping empty ones.

    A leading ``/`` on the first segment and a trailing ``/`` on the last one
    are kept; separators between segments are never doubled.
    """
    parts = [segment for segment in segments if segment]
    if not parts:
        return ""
    joined = parts[0]
    for segment in parts[1:]:
        joined = joined.rstrip("/") + "/" + segment.lstrip("/")
    return joined


def render_value(value: str | int | float) -> str:
    """Render a modifier value; integral numbers lose their decimal point."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def build_query(pairs: Iterable[tuple[str, str | int | float | None]]) -> str:
    """Render ``key=value`` pairs joined by ``&`` in the given order.

    Pairs whose value is None are omitted, never rendered as ``key=``. Keys
    and values are both percent-quoted; a key never keeps a literal ``=``.
    """
    return "&".join(
        f"{quote(key, safe=_QUERY_KEY_SAFE)}={quote(render_value(value), safe=_QUERY_SAFE)}"
        for key, value in pairs
        if value is not None
    )


def append_query(url: str, query: str) -> str:
    if not query:
        return url
    separator = "&" if "?" in url else "?"
    return f"{url}{separator}{query}"


def is_absolute_url(source: str) -> bool:
    """True for ``http:``, ``https:`` and protocol-relative ``//`` sources."""
    return bool(_ABSOLUTE.match(source))


def resolve_base_url(base_url: str | None, origin: str | None = None) -> str:
    """Normalize a provider base URL against the ambient request origin.

    - empty: the origin itself (or ``""`` when the host supplied none)
    - relative: resolved against the origin when known, else kept relative
    - absolute or protocol-relative: used as-is

    The result never ends with ``/``.
    """
    base = (base_url or "").strip()
    if not base:
        return (origin or "").rstrip("/")
    if is_absolute_url(base) or not origin:
        return base.rstrip("/")
    return urljoin(origin.rstrip("/") + "/", base.lstrip("/")).rstrip("/")


def resolve_source(source: str, origin: str | None) -> str:
    """Turn a site-relative source into an absolute URL when an origin is known."""
    if is_absolute_url(source) or not origin:
        return source
    return join_url(origin.rstrip("/"), source)


def strip_extension(path: str) -> str:
    """Drop a trailing ``.ext`` from the last path segment."""
    return _EXTENSION.sub("", path)
