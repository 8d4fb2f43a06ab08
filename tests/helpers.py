# File: tests/helpers.py
"""Test doubles and builders shared by the test modules."""
from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from typing import Dict, Iterable, List, Union

from aiohttp import web

ROOT = "http://site.test/"

#: response value that never completes; only a timeout gets past it
HANG = object()

Response = Union[bytes, BaseException, object, List[Union[bytes, BaseException, object]]]


class FakeTransport:
    """
    In-memory transport keyed by URL.

    A value may be bytes, an exception instance to raise, :data:`HANG`, or a
    list of those consumed one per call (the last one repeats). Unknown URLs
    raise ConnectionRefusedError. Every call is recorded in :attr:`calls`.
    """

    def __init__(self, responses: Dict[str, Response] | None = None, delay: float = 0.0) -> None:
        self.responses: Dict[str, Response] = {
            k: list(v) if isinstance(v, list) else v for k, v in (responses or {}).items()
        }
        self.delay = delay
        self.calls: List[str] = []

    async def get(self, url: str) -> bytes:
        self.calls.append(url)
        if self.delay:
            await asyncio.sleep(self.delay)
        if url not in self.responses:
            raise ConnectionRefusedError(f"connection refused: {url}")
        value = self.responses[url]
        if isinstance(value, list):
            value = value.pop(0) if len(value) > 1 else value[0]
        if value is HANG:
            await asyncio.sleep(3600)
        if isinstance(value, BaseException):
            raise value
        return value  # type: ignore[return-value]


def html_page(links: Iterable[str] = (), assets: Iterable[str] = (), title: str = "page") -> bytes:
    """Build a small HTML document with anchors and asset references."""
    parts = [f"<html><head><title>{title}</title>"]
    for ref in assets:
        if ref.endswith(".css"):
            parts.append(f'<link rel="stylesheet" href="{ref}">')
        elif ref.endswith(".js"):
            parts.append(f'<script src="{ref}"></script>')
        else:
            parts.append(f'<img src="{ref}">')
    parts.append("</head><body>")
    parts.extend(f'<a href="{href}">{href}</a>' for href in links)
    parts.append("</body></html>")
    return "".join(parts).encode("utf-8")


def site_graph(edges: Dict[str, List[str]], root: str = ROOT) -> Dict[str, Response]:
    """Turn ``{path: [hrefs]}`` into FakeTransport responses under *root*."""
    return {root.rstrip("/") + path: html_page(hrefs, title=path) for path, hrefs in edges.items()}


async def serve_app(app: web.Application, port: int) -> AsyncIterator[str]:
    """Start *app* on *port*, yield base URL, ensure cleanup."""
    runner = web.AppRunner(app)
    await runner.setup()
    site = web.TCPSite(runner, "localhost", port)
    await site.start()
    try:
        yield f"http://localhost:{port}"
    finally:
        await runner.cleanup()
