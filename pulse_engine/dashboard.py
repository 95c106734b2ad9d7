"""Dashboard state: the one place that wires fetcher, enricher, scheduler and summaries."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Optional

import httpx

from fetchers.engagement_enricher import EngagementEnricher
from fetchers.feed_fetcher import FeedFetcher
from fetchers.http_utils import build_client
from generation_engine.models import EngagementStats, GeneratedSummary, TrendEntry
from generation_engine.summary_board import Summarizer, SummaryBoard
from generation_engine.summary_generator import RemoteSummaryClient, SummaryGenerator

from .config import Settings
from .errors import ConfigurationError
from .scheduler import RefreshScheduler

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DashboardOptions:
    """Optional behaviours of the dashboard."""

    include_oldest_post_date: bool = True
    include_summary_generation: bool = True


class TrendDashboard:
    """Live view of the trends feed with engagement stats and on-demand summaries."""

    def __init__(
        self,
        fetcher: FeedFetcher,
        enricher: EngagementEnricher,
        feed_url: str,
        summarizer: Optional[Summarizer] = None,
        options: DashboardOptions = DashboardOptions(),
        refresh_seconds: float = 60.0,
    ):
        self.options = options
        self.fetcher = fetcher
        self.enricher = enricher
        self.enricher.include_oldest_post_date = options.include_oldest_post_date
        self.summaries: Optional[SummaryBoard] = None
        if options.include_summary_generation and summarizer is not None:
            self.summaries = SummaryBoard(summarizer)

        self.scheduler = RefreshScheduler(
            fetcher,
            enricher,
            feed_url,
            interval_seconds=refresh_seconds,
            on_entries=self._on_entries,
        )
        self._client: Optional[httpx.AsyncClient] = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "TrendDashboard":
        """Build a dashboard and its HTTP client from *settings*.

        Without a summary endpoint or an API key the dashboard still runs, just
        without summary generation.
        """
        client = build_client(settings.http_timeout_seconds)
        fetcher = FeedFetcher(client, proxy_url=settings.proxy_url, retries=settings.http_retries)
        enricher = EngagementEnricher(
            client,
            search_url=settings.search_url,
            delay=settings.enrich_delay_seconds,
            retries=settings.http_retries,
        )

        summarizer: Optional[Summarizer] = None
        if settings.include_summary_generation:
            if settings.summary_endpoint:
                summarizer = RemoteSummaryClient(client, settings.summary_endpoint)
            else:
                try:
                    summarizer = SummaryGenerator.from_settings(settings)
                except ConfigurationError as exc:
                    logger.warning(f"Summary generation disabled: {exc}")

        options = DashboardOptions(
            include_oldest_post_date=settings.include_oldest_post_date,
            include_summary_generation=summarizer is not None,
        )
        dashboard = cls(
            fetcher,
            enricher,
            settings.feed_url,
            summarizer=summarizer,
            options=options,
            refresh_seconds=settings.refresh_seconds,
        )
        dashboard._client = client
        return dashboard

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def loading(self) -> bool:
        """True until the first successful fetch."""
        return self.fetcher.last_updated is None

    @property
    def entries(self) -> List[TrendEntry]:
        return self.fetcher.entries

    @property
    def last_updated(self) -> Optional[datetime]:
        return self.fetcher.last_updated

    @property
    def engagement(self) -> Dict[str, EngagementStats]:
        return self.scheduler.engagement

    def engagement_for(self, title: str) -> EngagementStats:
        return self.scheduler.engagement.get(title) or EngagementStats.empty()

    def summary_for(self, position: int) -> Optional[GeneratedSummary]:
        if self.summaries is None:
            return None
        return self.summaries.get(position)

    def is_generating(self, position: int) -> bool:
        return self.summaries is not None and self.summaries.is_generating(position)

    def request_summary(self, position: int) -> bool:
        """Start a summary for the entry at *position*; ``False`` if the trigger is disabled."""
        if self.summaries is None:
            return False
        if not 0 <= position < len(self.entries):
            logger.warning(f"No entry at position {position}")
            return False

        headlines = self.entries[position].headline_titles()
        if not headlines:
            logger.info(f"Entry {position} has no related headlines to summarise")
            return False
        return self.summaries.request(position, headlines)

    def _on_entries(self, entries: List[TrendEntry]) -> None:
        if self.summaries is not None:
            self.summaries.reset()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        self.scheduler.start()

    async def aclose(self) -> None:
        """Stop refreshing, let outstanding summaries finish, close owned HTTP client."""
        self.scheduler.cancel()
        await self.scheduler.wait_closed()
        if self.summaries is not None:
            await self.summaries.wait_idle()
        if self._client is not None:
            await self._client.aclose()

    async def __aenter__(self) -> "TrendDashboard":
        self.start()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()
