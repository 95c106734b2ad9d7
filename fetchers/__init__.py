"""Outbound fetchers: the trends feed and social engagement search."""

from .engagement_enricher import EngagementEnricher
from .feed_fetcher import FeedFetcher, parse_feed

__all__ = [
    "EngagementEnricher",
    "FeedFetcher",
    "parse_feed",
]
