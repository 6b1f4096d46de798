# carrier_scout/fetcher.py
"""
Fetcher module: HTTP GET with per-attempt timeout and exponential-backoff retries.
"""
from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Optional, Protocol

from aiohttp import ClientError, ClientSession, ClientTimeout

from carrier_scout.config import ScraperConfig
from carrier_scout.logger import logger

SleepFn = Callable[[float], Awaitable[None]]


class FetchExhausted(Exception):
    """Every attempt for *url* failed; ``last_error`` is the final underlying error."""

    def __init__(self, url: str, attempts: int, last_error: Optional[BaseException]) -> None:
        super().__init__(f"{url}: failed after {attempts} attempt(s): {last_error!r}")
        self.url = url
        self.attempts = attempts
        self.last_error = last_error


class PageFetcher(Protocol):
    """Anything that turns a URL into page text or raises :class:`FetchExhausted`."""

    async def fetch(self, url: str, label: str = "fetch") -> str: ...


class ResilientFetcher:
    """Handles HTTP fetching with timeout and retries/backoff."""

    def __init__(
        self,
        session: ClientSession,
        *,
        max_attempts: int = 3,
        timeout: float = 30.0,
        backoff_base: float = 2.0,
        sleep: SleepFn = asyncio.sleep,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        self.session = session
        self.max_attempts = max_attempts
        self.timeout = timeout
        self.backoff_base = backoff_base
        self._sleep = sleep

    @classmethod
    def from_config(
        cls, session: ClientSession, config: ScraperConfig, sleep: SleepFn = asyncio.sleep
    ) -> ResilientFetcher:
        return cls(
            session,
            max_attempts=config.max_attempts,
            timeout=config.fetch_timeout,
            backoff_base=config.backoff_base,
            sleep=sleep,
        )

    async def fetch(self, url: str, label: str = "fetch") -> str:
        """
        Return the body of *url*.

        Attempt ``i`` (zero-based) that fails is followed by a ``backoff_base * 2**i``
        pause, except after the last one, which raises :class:`FetchExhausted`.
        """
        last_error: Optional[BaseException] = None
        for attempt in range(self.max_attempts):
            try:
                return await self._get(url)
            except (ClientError, asyncio.TimeoutError) as exc:
                last_error = exc
                if attempt + 1 >= self.max_attempts:
                    logger.warning(
                        "%s attempt %d/%d failed for %s: %r. Giving up",
                        label, attempt + 1, self.max_attempts, url, exc,
                    )
                    break
                backoff = self.backoff_base * 2**attempt
                logger.warning(
                    "%s attempt %d/%d failed for %s: %r. Backoff %.2f s",
                    label, attempt + 1, self.max_attempts, url, exc, backoff,
                )
                await self._sleep(backoff)
        raise FetchExhausted(url, self.max_attempts, last_error) from last_error

    async def _get(self, url: str) -> str:
        # total timeout aborts the in-flight request and releases its connection
        timeout = ClientTimeout(total=self.timeout)
        async with self.session.get(url, timeout=timeout, allow_redirects=True) as resp:
            if not 200 <= resp.status < 300:
                raise ClientError(f"HTTP {resp.status}")
            return await resp.text(errors="replace")
