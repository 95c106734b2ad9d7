"""Google Trends RSS fetcher.

The feed is requested through the RSS proxy (``GET <proxy>?url=<feed>``), parsed
into a plain tag -> value tree and turned into :class:`TrendEntry` objects,
newest first.
"""
from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any, Dict, List, Optional, Union

import httpx

from generation_engine.models import RelatedHeadline, TrendEntry
from pulse_engine.errors import FetchError, ParseError, TransportError

from .http_utils import get_with_retry

logger = logging.getLogger(__name__)


def _local_name(tag: str) -> str:
    """Strip the ``{namespace}`` prefix ElementTree puts on namespaced tags."""
    return tag.rsplit("}", 1)[-1]


def _element_to_obj(element: ET.Element) -> Union[Dict[str, Any], str, None]:
    """Convert *element* into nested dicts.

    Leaf elements become their stripped text. A tag that appears once becomes a
    single value, a repeated tag becomes a list, so callers must normalise with
    :func:`_as_list` wherever a list is expected.
    """
    children = list(element)
    if not children:
        text = (element.text or "").strip()
        return text or None

    node: Dict[str, Any] = {}
    for child in children:
        key = _local_name(child.tag)
        value = _element_to_obj(child)
        if key not in node:
            node[key] = value
        elif isinstance(node[key], list):
            node[key].append(value)
        else:
            node[key] = [node[key], value]
    return node


def _as_list(value: Any) -> List[Any]:
    if value is None:
        return []
    if isinstance(value, list):
        return value
    return [value]


def _text(value: Any) -> Optional[str]:
    return value if isinstance(value, str) else None


def parse_pub_date(raw: str) -> datetime:
    """Parse an RSS ``pubDate`` (RFC 822, ISO 8601 accepted too) as an aware datetime."""
    try:
        parsed = parsedate_to_datetime(raw)
    except (TypeError, ValueError):
        parsed = datetime.fromisoformat(raw.strip().replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _parse_headline(raw: Any) -> Optional[RelatedHeadline]:
    if not isinstance(raw, dict):
        return None
    return RelatedHeadline(
        title=_text(raw.get("news_item_title")),
        url=_text(raw.get("news_item_url")),
        source=_text(raw.get("news_item_source")),
        picture=_text(raw.get("news_item_picture")),
    )


def _parse_item(raw: Any) -> Optional[TrendEntry]:
    if not isinstance(raw, dict):
        logger.warning("Skipping empty feed item")
        return None

    title = _text(raw.get("title"))
    if not title:
        logger.warning("Skipping feed item without a title")
        return None

    pub_date = _text(raw.get("pubDate"))
    try:
        published_at = parse_pub_date(pub_date) if pub_date else None
    except ValueError:
        published_at = None
    if published_at is None:
        logger.warning(f"Skipping '{title}': missing or invalid pubDate {pub_date!r}")
        return None

    headlines = [h for h in map(_parse_headline, _as_list(raw.get("news_item"))) if h is not None]

    return TrendEntry(
        title=title,
        published_at=published_at,
        approx_traffic=_text(raw.get("approx_traffic")),
        related_headlines=headlines,
        link=_text(raw.get("link")),
        picture=_text(raw.get("picture")),
    )


def parse_feed(markup: Union[str, bytes]) -> List[TrendEntry]:
    """Parse feed *markup* into entries, in feed order.

    Raises :class:`ParseError` when the markup is not XML or is not shaped like
    ``rss > channel``. A channel without items is a valid, empty feed.
    """
    try:
        root = ET.fromstring(markup)
    except ET.ParseError as exc:
        raise ParseError(f"Feed is not well-formed XML: {exc}") from exc

    if _local_name(root.tag) != "rss":
        raise ParseError(f"Expected <rss> root element, got <{_local_name(root.tag)}>")

    tree = _element_to_obj(root)
    channel = tree.get("channel") if isinstance(tree, dict) else None
    if isinstance(channel, list):
        channel = channel[0]
    if not isinstance(channel, dict):
        raise ParseError("Feed has no <channel> element")

    entries = []
    for raw_item in _as_list(channel.get("item")):
        entry = _parse_item(raw_item)
        if entry is not None:
            entries.append(entry)
    return entries


def sort_entries(entries: List[TrendEntry]) -> List[TrendEntry]:
    """Newest first. ``sorted`` is stable, so equal timestamps keep feed order."""
    return sorted(entries, key=lambda entry: entry.published_at, reverse=True)


class FeedFetcher:
    """Fetches the trends feed and remembers the last good result."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        proxy_url: Optional[str] = None,
        retries: int = 1,
        backoff: float = 1.0,
    ):
        """
        Args:
            client: shared async HTTP client (carries the request timeout)
            proxy_url: RSS proxy endpoint; when ``None`` the feed URL is fetched directly
            retries: extra attempts on transport failure
            backoff: seconds before the first retry
        """
        self.client = client
        self.proxy_url = proxy_url
        self.retries = retries
        self.backoff = backoff
        self.entries: List[TrendEntry] = []
        self.last_updated: Optional[datetime] = None

    async def _download(self, feed_url: str) -> bytes:
        if self.proxy_url:
            response = await get_with_retry(
                self.client, self.proxy_url, params={"url": feed_url},
                retries=self.retries, backoff=self.backoff,
            )
        else:
            response = await get_with_retry(
                self.client, feed_url, retries=self.retries, backoff=self.backoff,
            )
        return response.content

    async def fetch_feed(self, feed_url: str) -> List[TrendEntry]:
        """Fetch, parse and sort the feed.

        On success ``entries`` and ``last_updated`` are replaced. On failure
        both are left as they were and :class:`FetchError` is raised.
        """
        try:
            body = await self._download(feed_url)
            entries = sort_entries(parse_feed(body))
        except (TransportError, ParseError) as exc:
            raise FetchError(f"Could not load feed {feed_url}: {exc}") from exc

        self.entries = entries
        self.last_updated = datetime.now(timezone.utc)
        logger.info(f"Fetched {len(entries)} trend entries from feed")
        return entries

    async def refresh(self, feed_url: str) -> Optional[List[TrendEntry]]:
        """Like :meth:`fetch_feed` but logs failures and returns ``None``."""
        try:
            return await self.fetch_feed(feed_url)
        except FetchError as exc:
            logger.error(f"Feed refresh failed, keeping previous entries: {exc}")
            return None
