# File: site_mirror/aggregator.py
"""site_mirror.aggregator: the run report collected by the worker pools."""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, TypedDict


class FailureInfo(TypedDict):
    """One URL that could not be mirrored."""

    url: str
    phase: str
    cause: str


@dataclass(slots=True)
class MirrorReport:
    """Outcome of a mirroring run: what was found, written, skipped and lost."""

    root_url: str = ""
    output_directory: str = ""
    discovered: List[str] = field(default_factory=list)
    pages_written: List[str] = field(default_factory=list)
    pages_skipped: List[str] = field(default_factory=list)
    assets_written: List[str] = field(default_factory=list)
    assets_skipped: List[str] = field(default_factory=list)
    failures: List[FailureInfo] = field(default_factory=list)
    requests_made: int = 0
    elapsed: float = 0.0

    def record_failure(self, url: str, phase: str, cause: BaseException | str) -> None:
        self.failures.append({"url": url, "phase": phase, "cause": str(cause)})

    def failed(self, phase: str) -> List[str]:
        return [f["url"] for f in self.failures if f["phase"] == phase]

    def summary(self) -> Dict[str, int]:
        """Counts only; handy for the CLI one-liner and templates."""
        return {
            "discovered": len(self.discovered),
            "pages_written": len(self.pages_written),
            "pages_skipped": len(self.pages_skipped),
            "pages_failed": len(self.failed("page")),
            "assets_written": len(self.assets_written),
            "assets_skipped": len(self.assets_skipped),
            "assets_failed": len(self.failed("asset")),
            "discovery_failed": len(self.failed("discovery")),
            "requests_made": self.requests_made,
        }

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        for key in ("discovered", "pages_written", "pages_skipped", "assets_written", "assets_skipped"):
            data[key] = sorted(data[key])
        data["summary"] = self.summary()
        return data

    def json(self, *, pretty: bool = False) -> str:
        """JSON representation of the report."""
        return json.dumps(self.to_dict(), ensure_ascii=False, indent=2 if pretty else None)
