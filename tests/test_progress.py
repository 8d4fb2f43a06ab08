# File: tests/test_progress.py
from __future__ import annotations

import asyncio
import io

import pytest

from site_mirror.crawler.models import Counters, CounterSnapshot
from site_mirror.progress import ProgressReporter


def reporter_for(counters: Counters, stream=None, **kwargs) -> ProgressReporter:
    kwargs.setdefault("interval", 0.001)
    kwargs.setdefault("stable_samples", 3)
    return ProgressReporter(counters, stream=stream, enabled=stream is not None, **kwargs)


@pytest.mark.asyncio()
async def test_discovery_returns_once_idle():
    counters = Counters()
    counters.increment("discovery_started", 4)
    counters.increment("discovery_finished", 4)

    snap = await asyncio.wait_for(reporter_for(counters).track_discovery(), timeout=2)

    assert snap.discovery_started == snap.discovery_finished == 4


@pytest.mark.asyncio()
async def test_discovery_waits_for_in_flight_work():
    counters = Counters()
    counters.increment("discovery_started", 2)
    counters.increment("discovery_finished")

    async def finish_later():
        await asyncio.sleep(0.05)
        counters.increment("discovery_started")
        counters.increment("discovery_finished", 2)

    finisher = asyncio.create_task(finish_later())
    snap = await asyncio.wait_for(reporter_for(counters).track_discovery(), timeout=2)
    await finisher

    assert snap.discovery_started == 3
    assert snap.discovery_idle


@pytest.mark.asyncio()
async def test_discovery_requires_consecutive_idle_samples(monkeypatch):
    counters = Counters()
    polls = []
    real_snapshot = counters.snapshot

    def counting_snapshot() -> CounterSnapshot:
        polls.append(1)
        return real_snapshot()

    monkeypatch.setattr(counters, "snapshot", counting_snapshot)

    await asyncio.wait_for(reporter_for(counters, stable_samples=5).track_discovery(), timeout=2)

    assert len(polls) == 5


@pytest.mark.asyncio()
async def test_discovery_line_ends_done():
    counters = Counters()
    counters.increment("discovery_started", 3)
    counters.increment("discovery_finished", 3)
    stream = io.StringIO()

    await reporter_for(counters, stream).track_discovery()

    final = stream.getvalue().rsplit("\r", 1)[-1]
    assert final.startswith("Discovering [done] 3 found, 3 fetched, 0 pending")
    assert final.endswith("\n")


@pytest.mark.asyncio()
async def test_mirror_progress_reaches_total():
    counters = Counters()
    stream = io.StringIO()

    async def work():
        for _ in range(4):
            await asyncio.sleep(0.005)
            counters.increment("mirror_finished")

    worker = asyncio.create_task(work())
    await asyncio.wait_for(reporter_for(counters, stream).track_mirror(4), timeout=2)
    await worker

    output = stream.getvalue()
    assert "100.0% (4/4)" in output
    assert output.count("\n") == 1


@pytest.mark.asyncio()
async def test_mirror_baseline_ignores_earlier_runs():
    counters = Counters()
    counters.increment("mirror_finished", 10)
    reporter = reporter_for(counters)

    task = asyncio.create_task(reporter.track_mirror(2, baseline=10))
    await asyncio.sleep(0.02)
    assert not task.done()

    counters.increment("mirror_finished", 2)
    snap = await asyncio.wait_for(task, timeout=2)
    assert snap.mirror_finished == 12


@pytest.mark.asyncio()
async def test_mirror_with_zero_total_returns_immediately():
    snap = await asyncio.wait_for(reporter_for(Counters()).track_mirror(0), timeout=1)
    assert snap.mirror_finished == 0


def test_render_mirror_bar():
    reporter = reporter_for(Counters(), bar_width=10)
    assert reporter.render_mirror(0, 4) == "Mirroring [----------]   0.0% (0/4)"
    assert reporter.render_mirror(2, 4) == "Mirroring [#####-----]  50.0% (2/4)"
    assert reporter.render_mirror(9, 4) == "Mirroring [##########] 100.0% (4/4)"


def test_render_discovery_spinner_cycles():
    reporter = reporter_for(Counters())
    snap = CounterSnapshot(discovery_started=5, discovery_finished=2)
    frames = [reporter.render_discovery(snap, i)[len("Discovering [")] for i in range(5)]
    assert frames == ["|", "/", "-", "\\", "|"]
    assert reporter.render_discovery(snap, 0).endswith("5 found, 2 fetched, 3 pending")


def test_lines_are_padded_and_truncated():
    stream = io.StringIO()
    reporter = reporter_for(Counters(), stream, line_width=20)
    reporter._emit("x" * 50)
    reporter._emit("short")
    lines = stream.getvalue().split("\r")[1:]
    assert [len(line) for line in lines] == [20, 20]


def test_disabled_reporter_writes_nothing(capsys):
    reporter = ProgressReporter(Counters(), enabled=False)
    reporter._emit("Mirroring", final=True)
    captured = capsys.readouterr()
    assert captured.out == captured.err == ""


def test_stable_samples_must_be_positive():
    with pytest.raises(ValueError):
        ProgressReporter(Counters(), stable_samples=0)
