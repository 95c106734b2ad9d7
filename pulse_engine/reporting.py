"""Tabular snapshots of the dashboard for the console and CSV export."""
from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional

import pandas as pd

from generation_engine.models import EngagementStats, TrendEntry

SNAPSHOT_COLUMNS = [
    "rank",
    "title",
    "published_at",
    "approx_traffic",
    "likes",
    "reposts",
    "replies",
    "oldest_post_at",
    "post_count",
    "headline_count",
]


def snapshot_frame(entries: List[TrendEntry], engagement: Dict[str, EngagementStats]) -> pd.DataFrame:
    """One row per entry, in feed order, with its engagement totals (zero when missing)."""
    rows = []
    for rank, entry in enumerate(entries, 1):
        stats = engagement.get(entry.title) or EngagementStats.empty()
        rows.append({
            "rank": rank,
            "title": entry.title,
            "published_at": entry.published_at.isoformat(),
            "approx_traffic": entry.approx_traffic or "",
            "likes": stats.likes,
            "reposts": stats.reposts,
            "replies": stats.replies,
            "oldest_post_at": stats.oldest_post_at.isoformat() if stats.oldest_post_at else "",
            "post_count": len(stats.posts),
            "headline_count": len(entry.related_headlines),
        })
    return pd.DataFrame(rows, columns=SNAPSHOT_COLUMNS)


def format_cycle_summary(df: pd.DataFrame, last_updated: Optional[datetime], top_n: int = 5) -> str:
    """Console summary of one refresh cycle."""
    updated = last_updated.strftime("%Y-%m-%d %H:%M:%S") if last_updated else "never"
    lines = [
        "",
        "📊 TRENDS SNAPSHOT",
        "=" * 50,
        f"⏰ Last updated: {updated}",
        f"📈 Trending topics: {len(df):,}",
    ]

    if df.empty:
        lines.append("=" * 50)
        return "\n".join(lines)

    lines.extend([
        f"❤️ Total likes: {int(df['likes'].sum()):,}",
        f"🔁 Total reposts: {int(df['reposts'].sum()):,}",
        f"💬 Total replies: {int(df['replies'].sum()):,}",
        "",
        f"🔥 TOP {min(top_n, len(df))} BY ENGAGEMENT:",
    ])

    ranked = df.assign(engagement=df["likes"] + df["reposts"] + df["replies"])
    ranked = ranked.sort_values("engagement", ascending=False, kind="stable").head(top_n)
    for _, row in ranked.iterrows():
        traffic = f", {row['approx_traffic']} searches" if row["approx_traffic"] else ""
        lines.append(
            f"  • #{row['rank']}: {row['title']} "
            f"({int(row['likes']):,} likes, {int(row['reposts']):,} reposts, "
            f"{int(row['replies']):,} replies{traffic})"
        )
    lines.append("=" * 50)
    return "\n".join(lines)


def export_snapshot(df: pd.DataFrame, path: Path) -> Path:
    """Write *df* as CSV to *path*, creating parent directories."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(path, index=False)
    return path
