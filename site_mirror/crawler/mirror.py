# === FILE: site_mirror/crawler/mirror.py ===
"""
Mirror phase: download every discovered page and the assets it references under the root.
"""
from __future__ import annotations

import asyncio
import logging
import time
from pathlib import Path
from typing import Iterable, List, Optional

from site_mirror.aggregator import MirrorReport
from site_mirror.config import MirrorConfig
from site_mirror.crawler.fetcher import FetchGate
from site_mirror.crawler.frontier import Frontier
from site_mirror.crawler.models import Counters, Role, WorkItem
from site_mirror.errors import MalformedURL, MirrorError
from site_mirror.mirror_path import in_root, mirror_target
from site_mirror.parser.html_parser import ParsedPage, parse_html, rewrite_links
from site_mirror.progress import ProgressReporter
from site_mirror.storage import target_exists, write_file
from site_mirror.utils import normalize_url, resolve_url

__all__ = ("MirrorPool",)


class MirrorPool:
    """Bounded pool that writes pages and their assets under the output directory.

    A page whose mirror file already exists is counted complete without any
    network work, which makes re-runs cheap and safe. Assets are claimed in a
    private frontier so one shared stylesheet is fetched once per run.
    """

    def __init__(
        self,
        config: MirrorConfig,
        gate: FetchGate,
        counters: Counters,
        reporter: ProgressReporter,
        report: Optional[MirrorReport] = None,
    ) -> None:
        self.config = config
        self.gate = gate
        self.counters = counters
        self.reporter = reporter
        self.report = report if report is not None else MirrorReport(root_url=config.root)
        self.root = normalize_url(config.root)
        self.output = Path(config.output_directory)
        self.logger = logging.getLogger("SiteMirror")
        self._asset_claims = Frontier()

    async def run(self, urls: Iterable[str]) -> MirrorReport:
        self._asset_claims = Frontier()
        queue: asyncio.Queue[WorkItem] = asyncio.Queue()
        for url in sorted(set(urls)):
            queue.put_nowait(WorkItem(url, Role.PAGE))
        total = queue.qsize()
        baseline = self.counters.snapshot().mirror_finished
        self.logger.info("Mirroring %d pages into %s", total, self.output)
        start = time.monotonic()

        workers: List[asyncio.Task[None]] = [
            asyncio.create_task(self._worker(queue)) for _ in range(self.config.max_parallel_activities)
        ]
        try:
            await self.reporter.track_mirror(total, baseline=baseline)
        finally:
            for w in workers:
                w.cancel()
            await asyncio.gather(*workers, return_exceptions=True)
        self._asset_claims.freeze()

        self.logger.info(
            "Mirror finished in %.2f s: %d written, %d skipped, %d failed",
            time.monotonic() - start,
            len(self.report.pages_written),
            len(self.report.pages_skipped),
            len(self.report.failed("page")),
        )
        return self.report

    async def _worker(self, queue: asyncio.Queue[WorkItem]) -> None:
        while True:
            item = await queue.get()
            self.counters.increment("mirror_started")
            try:
                await self._mirror_page(item)
            except MirrorError as exc:
                self.logger.warning("Page %s failed: %s", item.url, exc)
                self.report.record_failure(item.url, "page", exc)
            except Exception as exc:
                self.logger.exception("Unexpected error while mirroring %s", item.url)
                self.report.record_failure(item.url, "page", exc)
            finally:
                self.counters.increment("mirror_finished")
                queue.task_done()

    async def _mirror_page(self, item: WorkItem) -> None:
        target = mirror_target(item.url, self.root)
        path = target.under(self.output)
        if target_exists(path):
            self.logger.debug("Skip %s: %s exists", item.url, path)
            self.report.pages_skipped.append(item.url)
            return

        body = await self.gate.fetch(item.url)
        page = parse_html(body, item.url)
        content: bytes = body
        if self.config.rewrite_links:
            content = rewrite_links(body, item.url, str(target.relative_path), self._local_file_for)
        write_file(path, content)
        self.report.pages_written.append(item.url)

        assets = self._asset_items(page)
        if assets:
            await asyncio.gather(*(self._mirror_asset(asset) for asset in assets))

    def _asset_items(self, page: ParsedPage) -> List[WorkItem]:
        items: List[WorkItem] = []
        for ref in page.assets:
            try:
                url = resolve_url(page.base_url, ref)
            except MalformedURL as exc:
                self.logger.debug("Dropped asset on %s: %s", page.url, exc)
                continue
            if not in_root(url, self.root):
                self.logger.debug("Skip out-of-root asset %s on %s", url, page.url)
                continue
            items.append(WorkItem(url, Role.ASSET, owner=page.url))
        return items

    async def _mirror_asset(self, item: WorkItem) -> None:
        if not self._asset_claims.claim_if_new(item.url):
            return
        path = mirror_target(item.url, self.root).under(self.output)
        try:
            if target_exists(path):
                self.report.assets_skipped.append(item.url)
                return
            body = await self.gate.fetch(item.url)
            write_file(path, body)
            self.report.assets_written.append(item.url)
        except MirrorError as exc:
            self.logger.warning("Asset %s (on %s) failed: %s", item.url, item.owner, exc)
            self.report.record_failure(item.url, "asset", exc)
        except Exception as exc:
            self.logger.exception("Unexpected error while mirroring asset %s (on %s)", item.url, item.owner)
            self.report.record_failure(item.url, "asset", exc)

    def _local_file_for(self, url: str) -> Optional[str]:
        if not in_root(url, self.root):
            return None
        return str(mirror_target(url, self.root).relative_path)
