"""Pydantic data models shared by the fetchers, enricher and generators."""
from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

_FROZEN = {"frozen": True}


class RelatedHeadline(BaseModel):
    """One news article attached to a trend by the feed."""

    title: Optional[str] = Field(None, description="Headline text (ht:news_item_title)")
    url: Optional[str] = Field(None, description="Article URL (ht:news_item_url)")
    source: Optional[str] = Field(None, description="Publisher name (ht:news_item_source)")
    picture: Optional[str] = Field(None, description="Thumbnail URL (ht:news_item_picture)")

    model_config = _FROZEN


class TrendEntry(BaseModel):
    """A trending search topic as published by the feed."""

    title: str = Field(..., description="Trending search term, e.g. 'Super Bowl'")
    published_at: datetime = Field(..., description="Item pubDate")
    approx_traffic: Optional[str] = Field(None, description="Approximate traffic, e.g. '200K+'")
    related_headlines: List[RelatedHeadline] = Field(default_factory=list)
    link: Optional[str] = None
    picture: Optional[str] = None

    model_config = _FROZEN

    def headline_titles(self) -> List[str]:
        """Non-empty related headline titles, in feed order."""
        return [headline.title for headline in self.related_headlines if headline.title]


class SocialPost(BaseModel):
    """Snapshot of a single post returned by the social search API."""

    author_display_name: str = ""
    text: str = ""
    like_count: int = Field(0, ge=0)
    repost_count: int = Field(0, ge=0)
    reply_count: int = Field(0, ge=0)
    indexed_at: Optional[datetime] = None
    uri: Optional[str] = None
    author_handle: Optional[str] = None

    model_config = _FROZEN

    @field_validator("indexed_at")
    @classmethod
    def _assume_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value


class EngagementStats(BaseModel):
    """Aggregated engagement for one trend title."""

    likes: int = Field(0, ge=0)
    reposts: int = Field(0, ge=0)
    replies: int = Field(0, ge=0)
    oldest_post_at: Optional[datetime] = None
    posts: List[SocialPost] = Field(default_factory=list)

    model_config = _FROZEN

    @classmethod
    def empty(cls) -> "EngagementStats":
        """All-zero stats used when nothing (or nothing usable) came back."""
        return cls()

    @property
    def total(self) -> int:
        return self.likes + self.reposts + self.replies


class GeneratedSummary(BaseModel):
    """Model-written summary post for one entry's headlines."""

    text: str
    generated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    model_config = _FROZEN
