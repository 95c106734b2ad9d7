"""Engagement enrichment against the public Bluesky post search.

Queries are issued strictly one at a time with a fixed pause between them; the
search API rate-limits aggressively and this pacing is what keeps us under it.
"""
from __future__ import annotations

import asyncio
import logging
import time
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

import httpx
from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from generation_engine.models import EngagementStats, SocialPost, TrendEntry
from pulse_engine.config import DEFAULT_SEARCH_URL
from pulse_engine.errors import TransportError

from .http_utils import Sleeper, get_with_retry

logger = logging.getLogger(__name__)

_TIMESTAMP = TypeAdapter(Optional[datetime])


def _count(value: Any) -> int:
    """Counters are sometimes missing or null in search results."""
    try:
        return max(int(value or 0), 0)
    except (TypeError, ValueError):
        return 0


def _parse_indexed_at(value: Any) -> Optional[datetime]:
    """Unreadable timestamps become ``None`` so the post still counts."""
    try:
        return _TIMESTAMP.validate_python(value or None)
    except PydanticValidationError:
        logger.debug(f"Ignoring unreadable indexedAt {value!r}")
        return None


def parse_post(raw: Dict[str, Any]) -> SocialPost:
    """Map one ``searchPosts`` post object onto :class:`SocialPost`."""
    author = raw.get("author") or {}
    record = raw.get("record") or {}
    return SocialPost(
        author_display_name=author.get("displayName") or author.get("handle") or "",
        author_handle=author.get("handle"),
        text=record.get("text") or "",
        like_count=_count(raw.get("likeCount")),
        repost_count=_count(raw.get("repostCount")),
        reply_count=_count(raw.get("replyCount")),
        indexed_at=_parse_indexed_at(raw.get("indexedAt")),
        uri=raw.get("uri"),
    )


def aggregate_posts(posts: List[SocialPost], include_oldest_post_date: bool = True) -> EngagementStats:
    """Sum the counters of *posts* and find the oldest one by ``indexed_at``."""
    oldest: Optional[datetime] = None
    if include_oldest_post_date:
        timestamps = [post.indexed_at for post in posts if post.indexed_at is not None]
        oldest = min(timestamps) if timestamps else None

    return EngagementStats(
        likes=sum(post.like_count for post in posts),
        reposts=sum(post.repost_count for post in posts),
        replies=sum(post.reply_count for post in posts),
        oldest_post_at=oldest,
        posts=posts,
    )


class EngagementEnricher:
    """Sequential, paced engagement lookups for a batch of trend entries."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        search_url: str = DEFAULT_SEARCH_URL,
        delay: float = 1.0,
        include_oldest_post_date: bool = True,
        retries: int = 1,
        sleep: Sleeper = asyncio.sleep,
    ):
        self.client = client
        self.search_url = search_url
        self.delay = delay
        self.include_oldest_post_date = include_oldest_post_date
        self.retries = retries
        self._sleep = sleep

    async def fetch_engagement(self, title: str) -> EngagementStats:
        """Run one search for *title* (latest first) and aggregate the result.

        Raises :class:`TransportError` when the request fails or the payload
        cannot be read.
        """
        response = await get_with_retry(
            self.client,
            self.search_url,
            params={"q": title, "sort": "latest"},
            retries=self.retries,
            backoff=max(self.delay, 1.0),
            sleep=self._sleep,
        )
        try:
            payload = response.json()
            raw_posts = payload.get("posts") or []
        except (ValueError, AttributeError) as exc:
            raise TransportError(f"Unreadable search response for '{title}': {exc}") from exc
        if not isinstance(raw_posts, list):
            raise TransportError(f"Unreadable search response for '{title}': posts is not a list")

        posts: List[SocialPost] = []
        for raw in raw_posts:
            if not isinstance(raw, dict):
                continue
            try:
                posts.append(parse_post(raw))
            except (AttributeError, PydanticValidationError) as exc:
                logger.warning(f"Skipping unreadable post for '{title}': {exc}")

        logger.debug(f"'{title}': {len(posts)} posts")
        return aggregate_posts(posts, self.include_oldest_post_date)

    async def enrich(self, entries: Iterable[TrendEntry]) -> Dict[str, EngagementStats]:
        """Return a new title -> stats mapping for *entries*.

        Each distinct title is queried once, in order, with ``delay`` seconds
        between queries. A failed query yields :meth:`EngagementStats.empty`
        for that title and the batch carries on.
        """
        # One query per distinct title
        titles = list(dict.fromkeys(entry.title for entry in entries))

        start_time = time.time()
        logger.info(f"Enriching {len(titles)} entries with engagement data...")

        results: Dict[str, EngagementStats] = {}
        for index, title in enumerate(titles):
            try:
                results[title] = await self.fetch_engagement(title)
            except TransportError as exc:
                logger.warning(f"Engagement lookup failed for '{title}': {exc}")
                results[title] = EngagementStats.empty()

            if index < len(titles) - 1:
                await self._sleep(self.delay)

        elapsed = time.time() - start_time
        logger.info(f"Engagement enrichment completed in {elapsed:.1f}s")
        return results
