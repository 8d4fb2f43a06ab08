# File: site_mirror/errors.py
"""site_mirror.errors: per-URL failure taxonomy.

Every error a worker can hit while handling one URL derives from
:class:`MirrorError`, so pools catch a single base class, log one line and
move on to the next unit of work.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Sequence, Union

__all__: Sequence[str] = (
    "MirrorError",
    "MalformedURL",
    "FetchError",
    "FetchTimeout",
    "FetchFatal",
    "FetchExhausted",
    "WriteError",
    "FrontierFrozen",
)


class MirrorError(Exception):
    """Base class for everything that can go wrong with a single URL."""


class MalformedURL(MirrorError, ValueError):
    """A reference could not be resolved into an absolute http(s) URL."""

    def __init__(self, reference: str, reason: str) -> None:
        super().__init__(f"malformed URL {reference!r}: {reason}")
        self.reference = reference
        self.reason = reason


class FetchError(MirrorError):
    """Common parent of the fetch failures."""

    def __init__(self, url: str, message: str) -> None:
        super().__init__(message)
        self.url = url


class FetchTimeout(FetchError):
    """One attempt exceeded the per-request timeout. Retryable."""

    def __init__(self, url: str, timeout: float) -> None:
        super().__init__(url, f"timed out after {timeout:g}s")
        self.timeout = timeout


class FetchFatal(FetchError):
    """Connection, DNS, protocol or HTTP status failure. Never retried."""

    def __init__(self, url: str, cause: Optional[BaseException] = None) -> None:
        detail = f"{type(cause).__name__}: {cause}" if cause is not None else "request failed"
        super().__init__(url, detail)
        self.cause = cause


class FetchExhausted(FetchError):
    """Every attempt timed out."""

    def __init__(self, url: str, attempts: int) -> None:
        super().__init__(url, f"gave up after {attempts} timed out attempt(s)")
        self.attempts = attempts


class WriteError(MirrorError):
    """The mirror file (or its parent directory) could not be written."""

    def __init__(self, path: Union[str, Path], cause: OSError) -> None:
        super().__init__(f"cannot write {path}: {cause}")
        self.path = Path(path)
        self.cause = cause


class FrontierFrozen(RuntimeError):
    """A claim was attempted after discovery had quiesced."""
