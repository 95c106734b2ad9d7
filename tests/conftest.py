"""Shared fixtures: feed markup and search payload builders."""
from __future__ import annotations

from typing import Any, Dict, Optional, Sequence, Tuple

import pytest

FEED_HEADER = (
    '<?xml version="1.0" encoding="UTF-8"?>\n'
    '<rss xmlns:atom="http://www.w3.org/2005/Atom" '
    'xmlns:ht="https://trends.google.com/trending/rss" version="2.0">\n'
    "<channel>\n"
    "<title>Daily Search Trends</title>\n"
    '<atom:link href="https://trends.google.com/trending/rss?geo=US" rel="self" type="application/rss+xml"/>\n'
)
FEED_FOOTER = "</channel>\n</rss>\n"


def build_item(
    title: str,
    pub_date: Optional[str],
    traffic: Optional[str] = None,
    news: Sequence[Tuple[str, str]] = (),
) -> str:
    parts = ["<item>", f"<title>{title}</title>"]
    if traffic:
        parts.append(f"<ht:approx_traffic>{traffic}</ht:approx_traffic>")
    parts.append("<link>https://trends.google.com/trending/rss?geo=US</link>")
    if pub_date is not None:
        parts.append(f"<pubDate>{pub_date}</pubDate>")
    for news_title, news_url in news:
        parts.append(
            "<ht:news_item>"
            f"<ht:news_item_title>{news_title}</ht:news_item_title>"
            f"<ht:news_item_url>{news_url}</ht:news_item_url>"
            "<ht:news_item_source>Example News</ht:news_item_source>"
            "</ht:news_item>"
        )
    parts.append("</item>")
    return "\n".join(parts)


def build_feed(items: Sequence[Dict[str, Any]]) -> bytes:
    body = "\n".join(build_item(**item) for item in items)
    return (FEED_HEADER + body + "\n" + FEED_FOOTER).encode("utf-8")


def build_post(
    likes: Optional[int] = 0,
    reposts: Optional[int] = 0,
    replies: Optional[int] = 0,
    indexed_at: str = "2024-01-02T10:00:00.000Z",
    author: str = "Alice",
    text: str = "hello",
) -> Dict[str, Any]:
    post: Dict[str, Any] = {
        "uri": f"at://did:plc:{author.lower()}/app.bsky.feed.post/1",
        "author": {"displayName": author, "handle": f"{author.lower()}.bsky.social"},
        "record": {"text": text},
        "indexedAt": indexed_at,
    }
    if likes is not None:
        post["likeCount"] = likes
    if reposts is not None:
        post["repostCount"] = reposts
    if replies is not None:
        post["replyCount"] = replies
    return post


@pytest.fixture
def feed_builder():
    return build_feed


@pytest.fixture
def post_builder():
    return build_post


@pytest.fixture
def two_item_feed() -> bytes:
    return build_feed([
        {"title": "A", "pub_date": "Tue, 02 Jan 2024 10:00:00 +0000", "traffic": "200+",
         "news": [("A wins award", "https://news.example/a")]},
        {"title": "B", "pub_date": "Wed, 03 Jan 2024 10:00:00 +0000", "traffic": "1000+",
         "news": [("B first", "https://news.example/b1"), ("B second", "https://news.example/b2")]},
    ])

