"""
Data models shared by the SiteMirror worker pools.
"""
from __future__ import annotations

import threading
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional


class Role(str, Enum):
    """What a queued URL is for."""

    DISCOVERY = "discovery"
    PAGE = "page"
    ASSET = "asset"


@dataclass(frozen=True, slots=True)
class WorkItem:
    """A pending site URL; assets also carry the page they were found on."""

    url: str
    role: Role
    owner: Optional[str] = None


class OutcomeKind(str, Enum):
    SUCCESS = "success"
    RETRYABLE = "retryable"
    FATAL = "fatal"


@dataclass(frozen=True, slots=True)
class FetchOutcome:
    """Result of a single network attempt."""

    kind: OutcomeKind
    body: Optional[bytes] = None
    cause: Optional[BaseException] = None

    @classmethod
    def success(cls, body: bytes) -> FetchOutcome:
        return cls(OutcomeKind.SUCCESS, body=body)

    @classmethod
    def retryable(cls, cause: BaseException) -> FetchOutcome:
        return cls(OutcomeKind.RETRYABLE, cause=cause)

    @classmethod
    def fatal(cls, cause: BaseException) -> FetchOutcome:
        return cls(OutcomeKind.FATAL, cause=cause)


@dataclass(frozen=True, slots=True)
class CounterSnapshot:
    discovery_started: int = 0
    discovery_finished: int = 0
    mirror_started: int = 0
    mirror_finished: int = 0

    @property
    def discovery_in_flight(self) -> int:
        return self.discovery_started - self.discovery_finished

    @property
    def discovery_idle(self) -> bool:
        return self.discovery_started == self.discovery_finished


class Counters:
    """Progress counters written by the pools and read by the reporter.

    Increments go through a lock so the counters stay exact even when
    touched from executor threads; reads return a consistent snapshot.
    """

    FIELDS = ("discovery_started", "discovery_finished", "mirror_started", "mirror_finished")

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._values: Dict[str, int] = dict.fromkeys(self.FIELDS, 0)

    def increment(self, name: str, amount: int = 1) -> int:
        if name not in self._values:
            raise KeyError(f"unknown counter {name!r}")
        with self._lock:
            self._values[name] += amount
            return self._values[name]

    def snapshot(self) -> CounterSnapshot:
        with self._lock:
            return CounterSnapshot(**self._values)

    def __repr__(self) -> str:
        return f"Counters({self.snapshot()})"
