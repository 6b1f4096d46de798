"""carrier_scout.deep_fetch: best-effort e-mail recovery through cross-referenced pages.

The snapshot page links to a transfer page of the safety-measurement system, which
in turn links to the carrier registration page where the contact e-mail is listed::

    snapshot --(transfer hop)--> SMS page --(registration hop)--> registration page

Each hop is a small step that either yields the next page or stops the chain. A
stopped chain, a malformed link or a failed fetch only means "no e-mail"; nothing
is raised.
"""
from __future__ import annotations

import asyncio
import html
import re
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple
from urllib.parse import urljoin

from carrier_scout.fetcher import FetchExhausted, PageFetcher, SleepFn
from carrier_scout.logger import logger

__all__ = ["Hop", "DeepFetchOutcome", "DeepFetchResolver", "DEFAULT_HOPS", "find_link", "find_email"]

EMAIL_RE = re.compile(r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}")


@dataclass(slots=True, frozen=True)
class Hop:
    """One link to follow: *pattern* must capture the ``href`` value in group 1."""

    name: str
    pattern: re.Pattern[str]


DEFAULT_HOPS: Tuple[Hop, ...] = (
    Hop("transfer", re.compile(r"""href=["']([^"']*(?:safer_xfr\.aspx|/SMS/)[^"']*)["']""", re.IGNORECASE)),
    Hop("registration", re.compile(r"""href=["']([^"']*CarrierRegistration\.aspx[^"']*)["']""", re.IGNORECASE)),
)


@dataclass(slots=True, frozen=True)
class DeepFetchOutcome:
    email: Optional[str] = None
    stopped_at: Optional[str] = None
    error: Optional[str] = None


def find_link(page: str, base_url: str, pattern: re.Pattern[str]) -> Optional[str]:
    """Absolute URL of the first ``href`` matching *pattern*, or None."""
    match = pattern.search(page or "")
    if not match:
        return None
    return urljoin(base_url, html.unescape(match.group(1).strip()))


def find_email(page: str) -> Optional[str]:
    match = EMAIL_RE.search(page or "")
    return match.group(0) if match else None


class DeepFetchResolver:
    """Follows :data:`DEFAULT_HOPS` with a politeness pause before every request."""

    def __init__(
        self,
        fetcher: PageFetcher,
        *,
        politeness_delay: float = 0.3,
        hops: Sequence[Hop] = DEFAULT_HOPS,
        sleep: SleepFn = asyncio.sleep,
    ) -> None:
        self.fetcher = fetcher
        self.politeness_delay = politeness_delay
        self.hops = tuple(hops)
        self._sleep = sleep

    async def follow(self, hop: Hop, page: str, url: str) -> Optional[Tuple[str, str]]:
        """Run one hop: ``(next_url, next_page)`` or None when the link is missing.

        :class:`FetchExhausted` and the :class:`ValueError` of a malformed link
        propagate to :meth:`resolve`.
        """
        link = find_link(page, url, hop.pattern)
        if link is None:
            return None
        await self._sleep(self.politeness_delay)
        return link, await self.fetcher.fetch(link, label=hop.name)

    async def resolve(self, page: str, url: str) -> DeepFetchOutcome:
        current_page, current_url = page, url
        try:
            for hop in self.hops:
                step = await self.follow(hop, current_page, current_url)
                if step is None:
                    logger.debug("Deep fetch for %s stopped: no %s link", url, hop.name)
                    return DeepFetchOutcome(stopped_at=hop.name)
                current_url, current_page = step
        except (FetchExhausted, ValueError) as exc:
            logger.warning("Deep fetch error for %s: %s", url, exc)
            return DeepFetchOutcome(error=str(exc))
        return DeepFetchOutcome(email=find_email(current_page))
