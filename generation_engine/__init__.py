"""Trend Pulse generation engine.

Data models shared across the pipeline plus the summary-post generators that
turn a trend's related headlines into a short social post.
"""

from .models import (
    EngagementStats,
    GeneratedSummary,
    RelatedHeadline,
    SocialPost,
    TrendEntry,
)

__all__ = [
    "EngagementStats",
    "GeneratedSummary",
    "RelatedHeadline",
    "SocialPost",
    "TrendEntry",
]

__version__ = "0.1.0"
