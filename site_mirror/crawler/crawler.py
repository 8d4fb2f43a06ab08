# === FILE: site_mirror/crawler/crawler.py ===
from __future__ import annotations

import asyncio
import logging
import time
from typing import FrozenSet, List, Optional

from site_mirror.aggregator import MirrorReport
from site_mirror.config import MirrorConfig
from site_mirror.crawler.fetcher import FetchGate
from site_mirror.crawler.frontier import Frontier
from site_mirror.crawler.models import Counters, Role, WorkItem
from site_mirror.errors import MalformedURL, MirrorError
from site_mirror.mirror_path import in_root
from site_mirror.parser.html_parser import parse_html
from site_mirror.progress import ProgressReporter
from site_mirror.utils import normalize_url, resolve_url

__all__ = ("DiscoveryPool",)


class DiscoveryPool:
    """Self-feeding pool of discovery workers over one frontier.

    Each worker fetches a page, resolves its anchors and pushes every URL it
    manages to claim back onto the shared queue. ``discovery_started`` is
    bumped when a URL is queued and ``discovery_finished`` once its page has
    been handled, so the two only match when nothing is queued or running.
    """

    def __init__(
        self,
        config: MirrorConfig,
        gate: FetchGate,
        frontier: Frontier,
        counters: Counters,
        reporter: ProgressReporter,
        report: Optional[MirrorReport] = None,
    ) -> None:
        self.config = config
        self.gate = gate
        self.frontier = frontier
        self.counters = counters
        self.reporter = reporter
        self.report = report if report is not None else MirrorReport(root_url=config.root)
        self.root = normalize_url(config.root)
        self.logger = logging.getLogger("SiteMirror")

    async def run(self) -> FrozenSet[str]:
        """Discover every in-site page reachable from the root URL."""
        self.logger.info("Discovery started: %s", self.root)
        start = time.monotonic()
        queue: asyncio.Queue[WorkItem] = asyncio.Queue()
        if self.frontier.claim_if_new(self.root):
            self._submit(queue, self.root)
        workers: List[asyncio.Task[None]] = [
            asyncio.create_task(self._worker(queue)) for _ in range(self.config.max_parallel_activities)
        ]
        try:
            await self.reporter.track_discovery()
        finally:
            for w in workers:
                w.cancel()
            await asyncio.gather(*workers, return_exceptions=True)

        self.frontier.freeze()
        urls = self.frontier.snapshot()
        self.report.discovered = sorted(urls)
        duration = time.monotonic() - start
        self.logger.info(
            "Discovery finished: %d URLs in %.2f s (%d failed)",
            len(urls), duration, len(self.report.failed("discovery")),
        )
        return urls

    def _submit(self, queue: asyncio.Queue[WorkItem], url: str) -> None:
        self.counters.increment("discovery_started")
        queue.put_nowait(WorkItem(url, Role.DISCOVERY))

    async def _worker(self, queue: asyncio.Queue[WorkItem]) -> None:
        while True:
            item = await queue.get()
            try:
                await self._discover(item, queue)
            except MirrorError as exc:
                self.logger.warning("Discovery dropped %s: %s", item.url, exc)
                self.report.record_failure(item.url, "discovery", exc)
            except Exception as exc:
                self.logger.exception("Unexpected error while discovering %s", item.url)
                self.report.record_failure(item.url, "discovery", exc)
            finally:
                self.counters.increment("discovery_finished")
                queue.task_done()

    async def _discover(self, item: WorkItem, queue: asyncio.Queue[WorkItem]) -> None:
        body = await self.gate.fetch(item.url)
        page = parse_html(body, item.url)
        new = 0
        for href in page.links:
            try:
                url = resolve_url(page.base_url, href)
            except MalformedURL as exc:
                self.logger.debug("Dropped link on %s: %s", item.url, exc)
                continue
            if not in_root(url, self.root):
                continue
            if self.frontier.claim_if_new(url):
                self._submit(queue, url)
                new += 1
        self.logger.debug("%s: %d links, %d new", item.url, len(page.links), new)
