# File: site_mirror/engine.py
"""site_mirror.engine: orchestration of the discovery and mirror phases."""

from __future__ import annotations

import asyncio
import time
from typing import IO, List, Optional

from site_mirror.aggregator import MirrorReport
from site_mirror.config import MirrorConfig, load_config
from site_mirror.crawler.crawler import DiscoveryPool
from site_mirror.crawler.fetcher import AiohttpTransport, FetchGate, Transport
from site_mirror.crawler.frontier import Frontier
from site_mirror.crawler.mirror import MirrorPool
from site_mirror.crawler.models import Counters
from site_mirror.logger import logger
from site_mirror.progress import ProgressReporter
from site_mirror.storage import ensure_directory
from site_mirror.utils import normalize_url

__all__ = ["Engine", "start_discovery", "start_mirror"]


class _Run:
    """Collaborators shared by both phases of one run."""

    def __init__(
        self,
        config: MirrorConfig,
        transport: Transport,
        *,
        show_progress: bool,
        progress_stream: Optional[IO[str]],
    ) -> None:
        self.config = config
        self.counters = Counters()
        self.frontier = Frontier()
        self.gate = FetchGate.from_config(transport, config)
        self.reporter = ProgressReporter.from_config(
            self.counters, config, enabled=show_progress, stream=progress_stream
        )
        self.report = MirrorReport(
            root_url=normalize_url(config.root),
            output_directory=str(config.output_directory),
        )

    async def discover(self) -> List[str]:
        pool = DiscoveryPool(self.config, self.gate, self.frontier, self.counters, self.reporter, self.report)
        return sorted(await pool.run())

    async def mirror(self) -> MirrorReport:
        urls = await self.discover()
        ensure_directory(self.config.output_directory)
        pool = MirrorPool(self.config, self.gate, self.counters, self.reporter, self.report)
        return await pool.run(urls)


async def _with_transport(config: MirrorConfig, transport: Optional[Transport], action):
    if transport is not None:
        return await action(transport)
    async with AiohttpTransport(config) as http:
        return await action(http)


async def start_discovery(
    config: MirrorConfig,
    transport: Optional[Transport] = None,
    *,
    show_progress: bool = True,
    progress_stream: Optional[IO[str]] = None,
) -> List[str]:
    """Run the discovery phase only and return the sorted frontier."""

    async def _action(t: Transport) -> List[str]:
        run = _Run(config, t, show_progress=show_progress, progress_stream=progress_stream)
        return await run.discover()

    return await _with_transport(config, transport, _action)


async def start_mirror(
    config: MirrorConfig,
    transport: Optional[Transport] = None,
    *,
    show_progress: bool = True,
    progress_stream: Optional[IO[str]] = None,
) -> MirrorReport:
    """
    Discover the site, then mirror every discovered page and its assets.

    Parameters
    ----------
    config : MirrorConfig
        Run configuration.
    transport : Transport, optional
        HTTP transport; an aiohttp session is opened when omitted.

    Returns
    -------
    MirrorReport
        What was written, skipped and lost.
    """

    async def _action(t: Transport) -> MirrorReport:
        run = _Run(config, t, show_progress=show_progress, progress_stream=progress_stream)
        start = time.monotonic()
        report = await run.mirror()
        report.requests_made = run.gate.requests_made
        report.elapsed = time.monotonic() - start
        return report

    return await _with_transport(config, transport, _action)


class Engine:
    """Facade for the CLI and tests: config loading and a blocking run."""

    @staticmethod
    def load_config(path: Optional[str]) -> MirrorConfig:
        """Load the config from YAML/JSON (or the default file)."""
        return load_config(path)

    def __init__(self, config: MirrorConfig, *, show_progress: bool = True) -> None:
        self.config = config
        self.show_progress = show_progress

    def run(self, timeout: Optional[float] = None) -> MirrorReport:
        """Mirror the site, optionally bounded by an overall *timeout* in seconds."""
        logger.info("Starting mirror of %s", self.config.root)
        coro = start_mirror(self.config, show_progress=self.show_progress)
        try:
            report = asyncio.run(asyncio.wait_for(coro, timeout=timeout))
        except asyncio.TimeoutError:
            logger.error("Mirroring did not finish within %s seconds", timeout)
            raise
        except Exception as exc:
            logger.error("Mirroring failed: %s", exc)
            raise
        logger.info("Mirror complete: %s", report.summary())
        return report
