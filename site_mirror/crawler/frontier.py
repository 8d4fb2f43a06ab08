"""
Frontier: the shared, deduplicated set of discovered URLs.
"""
from __future__ import annotations

import threading
from typing import FrozenSet, Iterator, Set

from site_mirror.errors import FrontierFrozen


class Frontier:
    """Set of site URLs with an atomic claim.

    :meth:`claim_if_new` is the only mutating call: membership test and
    insertion happen under one lock, so for each distinct URL exactly one
    caller ever sees ``True``. After :meth:`freeze` the set is read-only and
    :meth:`snapshot` becomes available.
    """

    def __init__(self) -> None:
        self._urls: Set[str] = set()
        self._lock = threading.Lock()
        self._frozen = False

    def claim_if_new(self, url: str) -> bool:
        with self._lock:
            if self._frozen:
                raise FrontierFrozen(f"frontier is frozen, cannot claim {url}")
            if url in self._urls:
                return False
            self._urls.add(url)
            return True

    def freeze(self) -> None:
        with self._lock:
            self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    def snapshot(self) -> FrozenSet[str]:
        with self._lock:
            if not self._frozen:
                raise RuntimeError("snapshot requested before discovery quiesced")
            return frozenset(self._urls)

    def __contains__(self, url: object) -> bool:
        with self._lock:
            return url in self._urls

    def __len__(self) -> int:
        with self._lock:
            return len(self._urls)

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self.snapshot()))
