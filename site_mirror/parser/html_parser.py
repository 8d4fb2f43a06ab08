# === FILE: site_mirror/parser/html_parser.py ===
"""HTML parsing utilities for SiteMirror.

Both worker pools need the same few facts about a fetched page, so parsing
is done once here and exposed as a :class:`ParsedPage`:

* base_url: ``<base href>`` resolved against the page URL, or the page URL.
* links: raw ``href`` values of ``<a>`` / ``<area>`` elements (discovery).
* assets: raw references of the mirrored asset kinds:
  ``img@src``, ``link[rel=stylesheet]@href`` and ``script@src``.

Values are returned *unresolved*; callers run them through
:func:`site_mirror.utils.resolve_url` and drop the malformed ones.

:func:`rewrite_links` implements the optional offline-browsing mode that
points in-site references at the local mirror files.
"""
from __future__ import annotations

import posixpath
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Optional, Union

from bs4 import BeautifulSoup
from bs4.element import Tag

from site_mirror.errors import MalformedURL
from site_mirror.utils import is_skippable_reference, resolve_url

__all__: Sequence[str] = ("ASSET_SELECTORS", "ParsedPage", "parse_html", "rewrite_links")

#: (CSS selector, attribute) pairs for the asset kinds that get mirrored
ASSET_SELECTORS: Sequence[tuple[str, str]] = (
    ("img[src]", "src"),
    ("link[rel~=stylesheet][href]", "href"),
    ("script[src]", "src"),
)
_LINK_SELECTORS: Sequence[tuple[str, str]] = (
    ("a[href]", "href"),
    ("area[href]", "href"),
)
_REWRITE_SELECTORS: Sequence[tuple[str, str]] = (*_LINK_SELECTORS, *ASSET_SELECTORS)


@dataclass(slots=True)
class ParsedPage:
    """Outbound references of one HTML page."""

    url: str
    base_url: str
    title: str = ""
    links: list[str] = field(default_factory=list)
    assets: list[str] = field(default_factory=list)


def _soup(body: Union[bytes, str]) -> BeautifulSoup:
    return BeautifulSoup(body, "html.parser")


def _document_base(soup: BeautifulSoup, page_url: str) -> str:
    tag = soup.find("base", href=True)
    if isinstance(tag, Tag):
        href = tag.get("href")
        if isinstance(href, str) and href.strip():
            try:
                return resolve_url(page_url, href)
            except MalformedURL:
                pass
    return page_url


def _collect(soup: BeautifulSoup, selectors: Sequence[tuple[str, str]]) -> list[str]:
    seen: set[str] = set()
    values: list[str] = []
    for selector, attr in selectors:
        for tag in soup.select(selector):
            raw = tag.get(attr)
            if not isinstance(raw, str) or is_skippable_reference(raw):
                continue
            value = raw.strip()
            if value not in seen:
                seen.add(value)
                values.append(value)
    return values


def parse_html(body: Union[bytes, str], url: str) -> ParsedPage:
    """Parse *body* fetched from *url* and collect its outbound references."""
    soup = _soup(body)
    title_tag = soup.find("title")
    title = title_tag.get_text(strip=True) if title_tag else ""
    return ParsedPage(
        url=url,
        base_url=_document_base(soup, url),
        title=title,
        links=_collect(soup, _LINK_SELECTORS),
        assets=_collect(soup, ASSET_SELECTORS),
    )


def rewrite_links(
    body: Union[bytes, str],
    page_url: str,
    page_file: str,
    local_file_for: Callable[[str], Optional[str]],
) -> bytes:
    """Point in-site references of a page at their local mirror files.

    *page_file* is the page's own path relative to the output directory and
    *local_file_for* maps an absolute URL to another such path, or ``None``
    when the URL stays remote. Fragments survive the rewrite. The result is
    UTF-8 encoded and a ``<meta charset>`` declaration is updated to match.
    """
    soup = _soup(body)
    base = _document_base(soup, page_url)
    page_dir = posixpath.dirname(page_file) or "."
    for selector, attr in _REWRITE_SELECTORS:
        for tag in soup.select(selector):
            raw = tag.get(attr)
            if not isinstance(raw, str) or is_skippable_reference(raw):
                continue
            try:
                absolute = resolve_url(base, raw)
            except MalformedURL:
                continue
            target = local_file_for(absolute)
            if target is None:
                continue
            rel = posixpath.relpath(target, page_dir)
            fragment = raw.partition("#")[2]
            tag[attr] = f"{rel}#{fragment}" if fragment else rel
    for tag in soup.find_all("base"):
        tag.decompose()
    return soup.encode("utf-8")
