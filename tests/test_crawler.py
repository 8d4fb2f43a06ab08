# File: tests/test_crawler.py
# Test-suite for the discovery worker pool
from __future__ import annotations

import asyncio
from collections import Counter as Tally
from collections.abc import AsyncIterator

import pytest
import pytest_asyncio
from aiohttp import web

from helpers import ROOT, FakeTransport, serve_app, site_graph
from site_mirror.crawler.crawler import DiscoveryPool
from site_mirror.crawler.fetcher import AiohttpTransport, FetchGate
from site_mirror.crawler.frontier import Frontier
from site_mirror.crawler.models import Counters
from site_mirror.progress import ProgressReporter

#: 10 reachable pages with cycles, duplicates and junk links
GRAPH = {
    "/": ["/p1/", "p2/", "/p3/"],
    "/p1/": ["/p4/", "../p5/"],
    "/p2/": ["/p5/", "/p6/", "/p2/#again"],
    "/p3/": ["/p7/", "/"],
    "/p4/": ["/p8/"],
    "/p5/": [],
    "/p6/": ["/p9/"],
    "/p7/": ["http://other.test/x", "mailto:x@site.test", "#top", "http://[bad", "https://site.test/"],
    "/p8/": ["/p1/"],
    "/p9/": ["/p1/", "/p6/"],
    "/unreachable/": ["/"],
}
REACHABLE = {ROOT.rstrip("/") + path for path in GRAPH if path != "/unreachable/"}


async def discover(config, transport) -> tuple[frozenset[str], Counters, DiscoveryPool]:
    counters = Counters()
    reporter = ProgressReporter.from_config(counters, config, enabled=False)
    pool = DiscoveryPool(config, FetchGate.from_config(transport, config), Frontier(), counters, reporter)
    urls = await asyncio.wait_for(pool.run(), timeout=15)
    return urls, counters, pool


# --------------------------------------------------------------------------- #
#                            Synthetic link graph                             #
# --------------------------------------------------------------------------- #


@pytest.mark.asyncio()
@pytest.mark.parametrize("workers", [1, 8])
async def test_discovery_finds_exactly_reachable_pages(make_config, workers):
    config = make_config(max_parallel_activities=workers)
    transport = FakeTransport(site_graph(GRAPH), delay=0.002)

    urls, counters, pool = await discover(config, transport)

    assert set(urls) == REACHABLE
    assert len(urls) == 10
    # every page fetched exactly once, cross-origin links never fetched
    assert Tally(transport.calls) == Tally(REACHABLE)
    snap = counters.snapshot()
    assert snap.discovery_started == snap.discovery_finished == 10
    assert pool.frontier.frozen
    assert pool.report.discovered == sorted(REACHABLE)


@pytest.mark.asyncio()
async def test_failed_pages_are_dropped_and_counted(make_config):
    responses = site_graph({"/": ["/ok/", "/broken/", "/slow/"], "/ok/": []})
    responses[ROOT + "slow/"] = asyncio.TimeoutError()
    config = make_config(max_retries=2)
    transport = FakeTransport(responses)

    urls, counters, pool = await discover(config, transport)

    assert set(urls) == {ROOT, ROOT + "ok/", ROOT + "broken/", ROOT + "slow/"}
    assert sorted(pool.report.failed("discovery")) == [ROOT + "broken/", ROOT + "slow/"]
    assert transport.calls.count(ROOT + "slow/") == 2
    assert transport.calls.count(ROOT + "broken/") == 1
    snap = counters.snapshot()
    assert snap.discovery_started == snap.discovery_finished == 4


@pytest.mark.asyncio()
async def test_root_failure_still_terminates(make_config):
    transport = FakeTransport({})
    urls, _, pool = await discover(make_config(), transport)
    assert set(urls) == {ROOT}
    assert pool.report.failed("discovery") == [ROOT]


@pytest.mark.asyncio()
async def test_base_href_is_honoured(make_config):
    responses = {
        ROOT: b'<html><head><base href="/docs/"></head><body><a href="intro/">i</a></body></html>',
        ROOT + "docs/intro/": b"<html></html>",
    }
    urls, _, _ = await discover(make_config(), FakeTransport(responses))
    assert set(urls) == {ROOT, ROOT + "docs/intro/"}


@pytest.mark.asyncio()
async def test_wide_fan_out(make_config):
    edges = {"/": [f"/item-{i}/" for i in range(300)]}
    edges.update({f"/item-{i}/": ["/", f"/item-{(i + 1) % 300}/"] for i in range(300)})
    config = make_config(max_parallel_activities=8, max_concurrent_requests=16)

    urls, counters, _ = await discover(config, FakeTransport(site_graph(edges)))

    assert len(urls) == 301
    assert counters.snapshot().discovery_finished == 301


# --------------------------------------------------------------------------- #
#                          Against a real HTTP server                          #
# --------------------------------------------------------------------------- #


@pytest_asyncio.fixture
async def small_site(unused_tcp_port: int) -> AsyncIterator[str]:
    app = web.Application()

    async def handle_root(_):
        return web.Response(
            text='<a href="/page1">Page1</a><a href="/catalogue/">Cat</a><a href="http://example.org/">X</a>',
            content_type="text/html",
        )

    async def handle_page1(_):
        return web.Response(text='<a href="/page2">Page2</a>', content_type="text/html")

    async def handle_page2(_):
        return web.Response(text='<a href="/">Home</a><a href="/missing">Gone</a>', content_type="text/html")

    async def handle_catalogue(_):
        return web.Response(text='<a href="page-2/">Next</a>', content_type="text/html")

    async def handle_catalogue_2(_):
        return web.Response(text='<a href="../">Prev</a>', content_type="text/html")

    app.router.add_get("/", handle_root)
    app.router.add_get("/page1", handle_page1)
    app.router.add_get("/page2", handle_page2)
    app.router.add_get("/catalogue/", handle_catalogue)
    app.router.add_get("/catalogue/page-2/", handle_catalogue_2)

    async for url in serve_app(app, unused_tcp_port):
        yield url


@pytest.mark.asyncio()
async def test_discovery_over_http(make_config, small_site: str):
    config = make_config(root_url=small_site, per_request_timeout=2.0)
    async with AiohttpTransport(config) as transport:
        urls, _, pool = await discover(config, transport)

    assert set(urls) == {
        f"{small_site}/",
        f"{small_site}/page1",
        f"{small_site}/page2",
        f"{small_site}/missing",
        f"{small_site}/catalogue/",
        f"{small_site}/catalogue/page-2/",
    }
    assert pool.report.failed("discovery") == [f"{small_site}/missing"]
