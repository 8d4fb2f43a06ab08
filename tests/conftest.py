# File: tests/conftest.py
from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest

from helpers import ROOT, FakeTransport
from site_mirror.config import MirrorConfig
from site_mirror.crawler.fetcher import FetchGate
from site_mirror.crawler.models import Counters
from site_mirror.progress import ProgressReporter


@pytest.fixture()
def make_config(tmp_path: Path) -> Callable[..., MirrorConfig]:
    """Factory for a fast MirrorConfig writing under tmp_path/out."""

    def _make(**overrides) -> MirrorConfig:
        values = dict(
            root_url=ROOT,
            output_directory=tmp_path / "out",
            max_parallel_activities=4,
            max_concurrent_requests=4,
            max_retries=3,
            per_request_timeout=1.0,
            retry_backoff=0.0,
            progress_interval=0.001,
            quiescence_samples=3,
        )
        values.update(overrides)
        return MirrorConfig(**values)

    return _make


@pytest.fixture()
def counters() -> Counters:
    return Counters()


@pytest.fixture()
def make_gate() -> Callable[..., FetchGate]:
    def _make(transport: FakeTransport, config: MirrorConfig) -> FetchGate:
        return FetchGate.from_config(transport, config)

    return _make


@pytest.fixture()
def make_reporter(counters: Counters) -> Callable[..., ProgressReporter]:
    """Silent reporter bound to the shared counters fixture."""

    def _make(config: MirrorConfig) -> ProgressReporter:
        return ProgressReporter.from_config(counters, config, enabled=False)

    return _make
