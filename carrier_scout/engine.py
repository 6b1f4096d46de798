# File: carrier_scout/engine.py
"""carrier_scout.engine: slice-by-slice orchestration of the per-identifier pipeline."""

from __future__ import annotations

import asyncio
from typing import List, Protocol, Sequence

from aiohttp import ClientSession

from carrier_scout.config import ScraperConfig
from carrier_scout.deep_fetch import DeepFetchResolver
from carrier_scout.eligibility import EligibilityFilter
from carrier_scout.fetcher import ResilientFetcher, SleepFn
from carrier_scout.logger import logger
from carrier_scout.models import BatchResult, Verdict
from carrier_scout.parser import build_extractor
from carrier_scout.pipeline import CarrierPipeline

__all__ = ["BatchOrchestrator", "build_pipeline", "run_batch", "slices"]


class IdentifierProcessor(Protocol):
    async def process(self, identifier: str) -> Verdict: ...


def slices(items: Sequence[str], size: int) -> List[Sequence[str]]:
    """Contiguous chunks of *size* (the last one may be shorter)."""
    if size < 1:
        raise ValueError("slice size must be >= 1")
    return [items[i : i + size] for i in range(0, len(items), size)]


class BatchOrchestrator:
    """Runs one slice at a time: all members concurrently, then a join, then a pause."""

    def __init__(
        self,
        pipeline: IdentifierProcessor,
        *,
        concurrency: int = 4,
        slice_delay: float = 1.0,
        sleep: SleepFn = asyncio.sleep,
    ) -> None:
        if concurrency < 1:
            raise ValueError("concurrency must be >= 1")
        self.pipeline = pipeline
        self.concurrency = concurrency
        self.slice_delay = slice_delay
        self._sleep = sleep

    async def run(self, identifiers: Sequence[str]) -> BatchResult:
        result = BatchResult()
        chunks = slices(list(identifiers), self.concurrency)
        logger.info("Processing %d identifiers in %d slice(s)", len(identifiers), len(chunks))

        for number, chunk in enumerate(chunks, start=1):
            start = (number - 1) * self.concurrency
            logger.info(
                "Processing slice %d (items %d to %d)", number, start, start + len(chunk) - 1
            )
            verdicts = await asyncio.gather(*(self.pipeline.process(i) for i in chunk))
            for verdict in verdicts:
                await result.add(verdict)
            if number < len(chunks):
                await self._sleep(self.slice_delay)

        logger.info(
            "Finished: %d accepted, %d rejected of %d",
            result.accepted, sum(result.rejections.values()), result.processed,
        )
        for reason, count in sorted(result.rejections.items(), key=lambda kv: kv[0].value):
            logger.info("  rejected (%s): %d", reason.value, count)
        return result


def build_pipeline(
    config: ScraperConfig, session: ClientSession, sleep: SleepFn = asyncio.sleep
) -> CarrierPipeline:
    """Wire fetcher, extractor, filter and resolver as described by *config*."""
    fetcher = ResilientFetcher.from_config(session, config, sleep=sleep)
    extractor = build_extractor(config.extractor)
    resolver = None
    if config.mode.wants_records:
        resolver = DeepFetchResolver(fetcher, politeness_delay=config.politeness_delay, sleep=sleep)
    return CarrierPipeline(
        fetcher,
        extractor,
        EligibilityFilter(extractor, min_age_days=config.min_age_days),
        resolver,
        url_template=config.snapshot_url,
        mode=config.mode,
    )


async def run_batch(
    config: ScraperConfig, identifiers: Sequence[str], sleep: SleepFn = asyncio.sleep
) -> BatchResult:
    """Open an HTTP session and process *identifiers* with the given configuration."""
    async with ClientSession(headers={"User-Agent": config.user_agent}) as session:
        orchestrator = BatchOrchestrator(
            build_pipeline(config, session, sleep=sleep),
            concurrency=config.concurrency,
            slice_delay=config.slice_delay,
            sleep=sleep,
        )
        return await orchestrator.run(identifiers)

