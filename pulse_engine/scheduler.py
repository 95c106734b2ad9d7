"""Periodic feed refresh chained to engagement enrichment.

Two asyncio tasks cooperate over a one-slot channel: the poller fetches the
feed every ``interval_seconds`` and publishes each successful result, the
enrichment worker runs one paced pass per published entry list. A fetch that
lands while a pass is running replaces any result still waiting in the channel,
so the worker always moves on to the newest entries.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Callable, Dict, List, Optional

from fetchers.engagement_enricher import EngagementEnricher
from fetchers.feed_fetcher import FeedFetcher
from generation_engine.models import EngagementStats, TrendEntry

logger = logging.getLogger(__name__)

EntriesCallback = Callable[[List[TrendEntry]], None]
EngagementCallback = Callable[[List[TrendEntry], Dict[str, EngagementStats]], None]


class RefreshScheduler:
    """Refreshes the feed on a fixed interval and re-enriches every new entry list."""

    def __init__(
        self,
        fetcher: FeedFetcher,
        enricher: EngagementEnricher,
        feed_url: str,
        interval_seconds: float = 60.0,
        on_entries: Optional[EntriesCallback] = None,
        on_engagement: Optional[EngagementCallback] = None,
    ):
        self.fetcher = fetcher
        self.enricher = enricher
        self.feed_url = feed_url
        self.interval_seconds = interval_seconds
        self.on_entries = on_entries
        self.on_engagement = on_engagement

        self.engagement: Dict[str, EngagementStats] = {}
        self.cycle_count = 0
        self.pass_count = 0
        self.running = False

        self._cancelled = False
        self._enriching = False
        self._channel: "asyncio.Queue[List[TrendEntry]]" = asyncio.Queue(maxsize=1)
        self._poll_task: Optional[asyncio.Task] = None
        self._enrich_task: Optional[asyncio.Task] = None

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def start(self) -> None:
        """Fetch immediately, then every ``interval_seconds``, until :meth:`cancel`."""
        if self._cancelled:
            raise RuntimeError("A cancelled scheduler cannot be restarted")
        if self.running:
            return

        self.running = True
        logger.info(f"Starting feed refresh every {self.interval_seconds:g}s")
        self._poll_task = asyncio.create_task(self._poll_loop(), name="feed-poll")
        self._enrich_task = asyncio.create_task(self._enrich_loop(), name="engagement-enrich")

    def cancel(self) -> None:
        """Stop refreshing. Safe to call more than once.

        An enrichment pass already in flight runs to completion, but its result
        is thrown away.
        """
        if self._cancelled:
            return
        self._cancelled = True
        self.running = False

        if self._poll_task is not None:
            self._poll_task.cancel()
        if self._enrich_task is not None and not self._enriching:
            self._enrich_task.cancel()
        logger.info(f"Refresh scheduler cancelled after {self.cycle_count} cycles")

    async def wait_closed(self) -> None:
        """Wait until both background tasks have finished."""
        tasks = [task for task in (self._poll_task, self._enrich_task) if task is not None]
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    async def __aenter__(self) -> "RefreshScheduler":
        self.start()
        return self

    async def __aexit__(self, *exc_info) -> None:
        self.cancel()
        await self.wait_closed()

    async def run_cycle(self) -> Optional[List[TrendEntry]]:
        """Fetch the feed once and hand a successful result to the enrichment worker."""
        self.cycle_count += 1
        logger.info(f"Refresh cycle {self.cycle_count}")

        entries = await self.fetcher.refresh(self.feed_url)
        if entries is None or self._cancelled:
            return entries

        if self.on_entries is not None:
            self.on_entries(entries)
        self._publish(entries)
        return entries

    async def run_once(self) -> Dict[str, EngagementStats]:
        """One fetch plus one enrichment pass, without background tasks."""
        self.cycle_count += 1
        entries = await self.fetcher.refresh(self.feed_url)
        if entries is None:
            return self.engagement

        if self.on_entries is not None:
            self.on_entries(entries)
        self._apply(entries, await self.enricher.enrich(entries))
        return self.engagement

    def _publish(self, entries: List[TrendEntry]) -> None:
        try:
            self._channel.get_nowait()
            logger.debug("Replacing entry list still waiting for enrichment")
        except asyncio.QueueEmpty:
            pass
        self._channel.put_nowait(entries)

    def _apply(self, entries: List[TrendEntry], engagement: Dict[str, EngagementStats]) -> None:
        self.pass_count += 1
        self.engagement = engagement
        if self.on_engagement is not None:
            self.on_engagement(entries, engagement)

    async def _poll_loop(self) -> None:
        loop = asyncio.get_running_loop()
        while not self._cancelled:
            cycle_start = loop.time()
            try:
                await self.run_cycle()
            except Exception:  # noqa: BLE001
                logger.exception(f"Refresh cycle {self.cycle_count} crashed")

            sleep_time = max(0.0, self.interval_seconds - (loop.time() - cycle_start))
            await asyncio.sleep(sleep_time)

    async def _enrich_loop(self) -> None:
        while not self._cancelled:
            entries = await self._channel.get()
            self._enriching = True
            try:
                engagement = await self.enricher.enrich(entries)
            except Exception:  # noqa: BLE001
                logger.exception("Enrichment pass crashed, keeping previous engagement data")
                continue
            finally:
                self._enriching = False

            if self._cancelled:
                logger.info("Scheduler cancelled during enrichment, discarding pass result")
                break
            self._apply(entries, engagement)
