# File: site_mirror/utils.py
"""site_mirror.utils: URL resolution, normalization and origin checks."""

from __future__ import annotations

import posixpath
from typing import Optional, Sequence, Tuple
from urllib.parse import urljoin, urlsplit, urlunsplit

from site_mirror.errors import MalformedURL
from site_mirror.logger import logger

__all__: Sequence[str] = (
    "normalize_url",
    "resolve_url",
    "origin",
    "same_origin",
    "is_skippable_reference",
)

_DEFAULT_PORTS = {"http": 80, "https": 443}
_SKIPPED_SCHEMES = ("mailto:", "javascript:", "tel:", "data:", "about:")

Origin = Tuple[str, str, Optional[int]]


def _sorted_query(query: str) -> str:
    # pairs stay as written: no decoding, a bare key gets no "="
    return "&".join(sorted(pair for pair in query.split("&") if pair))


def normalize_url(url: str) -> str:
    """Canonicalize an absolute URL.

    Lower-cases scheme and host, drops the default port and the fragment,
    collapses dot segments and sorts query parameters. A trailing slash is
    kept exactly as given.
    """
    try:
        parts = urlsplit(url.strip())
        port = parts.port
    except ValueError as exc:
        raise MalformedURL(url, str(exc)) from exc

    scheme = parts.scheme.lower()
    host = (parts.hostname or "").lower()
    if scheme not in _DEFAULT_PORTS:
        raise MalformedURL(url, f"unsupported scheme {scheme or '(none)'!r}")
    if not host:
        raise MalformedURL(url, "no host")

    netloc = f"[{host}]" if ":" in host else host
    if port is not None and port != _DEFAULT_PORTS[scheme]:
        netloc = f"{netloc}:{port}"

    path = parts.path or "/"
    norm = posixpath.normpath(path)
    if path.endswith("/") and not norm.endswith("/"):
        norm += "/"
    if norm.startswith("//"):
        norm = "/" + norm.lstrip("/")

    query = _sorted_query(parts.query)
    return urlunsplit((scheme, netloc, norm, query, ""))


def resolve_url(base: str, reference: str) -> str:
    """Resolve *reference* (an ``href``/``src`` value) against *base*.

    Absolute references come back normalized but otherwise unchanged;
    relative ones follow RFC 3986 resolution (``..``, ``./``, ``/x``).
    Raises :class:`MalformedURL` when no absolute http(s) URL results.
    """
    ref = reference.strip()
    try:
        joined = urljoin(base, ref)
    except ValueError as exc:
        raise MalformedURL(ref, str(exc)) from exc
    resolved = normalize_url(joined)
    logger.debug("Resolved %s + %s -> %s", base, ref, resolved)
    return resolved


def origin(url: str) -> Origin:
    """Return ``(scheme, host, port)`` with the default port filled in."""
    parts = urlsplit(url)
    scheme = parts.scheme.lower()
    port = parts.port or _DEFAULT_PORTS.get(scheme)
    return scheme, (parts.hostname or "").lower(), port


def same_origin(url: str, root_url: str) -> bool:
    """True when *url* shares scheme, host and port with *root_url*."""
    try:
        return origin(url) == origin(root_url)
    except ValueError:
        return False


def is_skippable_reference(reference: str) -> bool:
    """References that never point at a fetchable document."""
    ref = reference.strip()
    return not ref or ref.startswith("#") or ref.lower().startswith(_SKIPPED_SCHEMES)
