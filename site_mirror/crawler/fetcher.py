# site_mirror/crawler/fetcher.py
"""
Fetcher module: the HTTP transport and the Fetch Gate wrapped around it.

The gate combines a global concurrency limit, shared by every worker of both
phases, with a per-request retry policy that retries timeouts only.
"""
from __future__ import annotations

import asyncio
from typing import Optional, Protocol

from aiohttp import ClientError, ClientSession, ClientTimeout

from site_mirror.config import MirrorConfig
from site_mirror.crawler.models import FetchOutcome, OutcomeKind
from site_mirror.errors import FetchExhausted, FetchFatal, FetchTimeout
from site_mirror.logger import logger

__all__ = ("Transport", "AiohttpTransport", "FetchGate")

_MAX_BACKOFF = 60.0


class Transport(Protocol):
    """Anything able to GET a URL and return its body.

    Timeouts must surface as :class:`asyncio.TimeoutError`; any other
    exception is treated as fatal for that request.
    """

    async def get(self, url: str) -> bytes: ...


class AiohttpTransport:
    """aiohttp-backed transport; use as an async context manager."""

    def __init__(self, config: MirrorConfig) -> None:
        self.config = config
        self.session: Optional[ClientSession] = None

    async def __aenter__(self) -> AiohttpTransport:
        timeout = ClientTimeout(total=self.config.per_request_timeout)
        self.session = ClientSession(
            timeout=timeout,
            headers={"User-Agent": self.config.user_agent},
            raise_for_status=False,
        )
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if self.session and not self.session.closed:
            await self.session.close()

    async def get(self, url: str) -> bytes:
        if not self.session:
            raise RuntimeError("Session not initialized")
        async with self.session.get(url) as resp:
            resp.raise_for_status()
            return await resp.read()


class FetchGate:
    """Concurrency limiter plus timeout-only retry policy around a transport."""

    def __init__(
        self,
        transport: Transport,
        *,
        max_concurrent_requests: int,
        max_retries: int,
        timeout: float,
        backoff: float = 0.0,
    ) -> None:
        if max_concurrent_requests < 1 or max_retries < 1:
            raise ValueError("max_concurrent_requests and max_retries must be >= 1")
        self.transport = transport
        self.max_retries = max_retries
        self.timeout = timeout
        self.backoff = backoff
        self._slots = asyncio.Semaphore(max_concurrent_requests)
        self.requests_made = 0
        self.in_flight = 0
        self.peak_in_flight = 0

    @classmethod
    def from_config(cls, transport: Transport, config: MirrorConfig) -> FetchGate:
        return cls(
            transport,
            max_concurrent_requests=config.max_concurrent_requests,
            max_retries=config.max_retries,
            timeout=config.per_request_timeout,
            backoff=config.retry_backoff,
        )

    async def fetch(self, url: str) -> bytes:
        """
        Fetch *url* and return its body.

        Raises FetchFatal on the first non-timeout failure and FetchExhausted
        once every attempt has timed out.
        """
        for attempt in range(1, self.max_retries + 1):
            outcome = await self._attempt(url)
            if outcome.kind is OutcomeKind.SUCCESS:
                return outcome.body or b""
            if outcome.kind is OutcomeKind.FATAL:
                raise FetchFatal(url, outcome.cause) from outcome.cause
            if attempt < self.max_retries:
                delay = min(self.backoff * 2 ** (attempt - 1), _MAX_BACKOFF)
                logger.debug("Retry %d/%d for %s after %.2f s", attempt, self.max_retries, url, delay)
                if delay > 0:
                    await asyncio.sleep(delay)
        raise FetchExhausted(url, self.max_retries)

    async def _attempt(self, url: str) -> FetchOutcome:
        # the slot is held for exactly one attempt; backoff happens outside it
        async with self._slots:
            self.requests_made += 1
            self.in_flight += 1
            self.peak_in_flight = max(self.peak_in_flight, self.in_flight)
            try:
                body = await asyncio.wait_for(self.transport.get(url), timeout=self.timeout)
            except asyncio.TimeoutError:
                return FetchOutcome.retryable(FetchTimeout(url, self.timeout))
            except (ClientError, OSError, ValueError) as exc:
                return FetchOutcome.fatal(exc)
            finally:
                self.in_flight -= 1
        return FetchOutcome.success(body)
