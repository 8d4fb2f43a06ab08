# File: site_mirror/progress.py
"""site_mirror.progress: console progress and discovery termination.

The reporter only reads :class:`~site_mirror.crawler.models.Counters`. During
discovery there is no known total, so it shows a spinner with running counts
and returns once the started/finished counters have matched for
``stable_samples`` consecutive polls. During mirroring the total is the
frontier size and a percentage bar is drawn.
"""

from __future__ import annotations

import asyncio
from typing import IO, Optional

import click

from site_mirror.config import MirrorConfig
from site_mirror.crawler.models import Counters, CounterSnapshot

__all__ = ["ProgressReporter"]


class ProgressReporter:
    """Polls counters on a fixed interval and renders one status line."""

    _SPINNER = "|/-\\"

    def __init__(
        self,
        counters: Counters,
        *,
        interval: float = 0.1,
        stable_samples: int = 3,
        bar_width: int = 30,
        line_width: int = 79,
        enabled: bool = True,
        stream: Optional[IO[str]] = None,
    ) -> None:
        if stable_samples < 1:
            raise ValueError("stable_samples must be >= 1")
        self.counters = counters
        self.interval = interval
        self.stable_samples = stable_samples
        self.bar_width = bar_width
        self.line_width = line_width
        self.enabled = enabled
        self.stream = stream

    @classmethod
    def from_config(
        cls,
        counters: Counters,
        config: MirrorConfig,
        *,
        enabled: bool = True,
        stream: Optional[IO[str]] = None,
    ) -> ProgressReporter:
        return cls(
            counters,
            interval=config.progress_interval,
            stable_samples=config.quiescence_samples,
            enabled=enabled,
            stream=stream,
        )

    # ------------------------------------------------------------------ #
    # Phase trackers                                                      #
    # ------------------------------------------------------------------ #

    async def track_discovery(self) -> CounterSnapshot:
        """Poll until discovery is quiescent and return the final counters."""
        stable = 0
        frame = 0
        while True:
            snap = self.counters.snapshot()
            stable = stable + 1 if snap.discovery_idle else 0
            if stable >= self.stable_samples:
                self._emit(self.render_discovery(snap, None), final=True)
                return snap
            self._emit(self.render_discovery(snap, frame))
            frame += 1
            await asyncio.sleep(self.interval)

    async def track_mirror(self, total: int, *, baseline: int = 0) -> CounterSnapshot:
        """Poll until *total* mirror work items past *baseline* have finished."""
        while True:
            snap = self.counters.snapshot()
            done = snap.mirror_finished - baseline
            if done >= total:
                self._emit(self.render_mirror(done, total), final=True)
                return snap
            self._emit(self.render_mirror(done, total))
            await asyncio.sleep(self.interval)

    # ------------------------------------------------------------------ #
    # Rendering                                                           #
    # ------------------------------------------------------------------ #

    def render_discovery(self, snap: CounterSnapshot, frame: Optional[int]) -> str:
        mark = "done" if frame is None else self._SPINNER[frame % len(self._SPINNER)]
        return (
            f"Discovering [{mark}] {snap.discovery_started} found, "
            f"{snap.discovery_finished} fetched, {snap.discovery_in_flight} pending"
        )

    def render_mirror(self, finished: int, total: int) -> str:
        done = min(finished, total)
        ratio = done / total if total else 1.0
        filled = int(ratio * self.bar_width)
        bar = "#" * filled + "-" * (self.bar_width - filled)
        return f"Mirroring [{bar}] {ratio * 100:5.1f}% ({done}/{total})"

    def _emit(self, line: str, *, final: bool = False) -> None:
        if not self.enabled:
            return
        text = line[: self.line_width].ljust(self.line_width)
        click.echo("\r" + text, file=self.stream, nl=final, err=self.stream is None)
