#!/usr/bin/env python3

"""
Trends Refresh Scheduler - Poll the Google Trends feed, enrich every topic with
Bluesky engagement and print a snapshot after each enrichment pass.
"""

import argparse
import asyncio
import logging
import os
import signal
import sys
from dataclasses import replace
from pathlib import Path
from typing import Dict, List, Optional

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from generation_engine.models import EngagementStats, TrendEntry
from pulse_engine.config import Settings
from pulse_engine.dashboard import TrendDashboard
from pulse_engine.reporting import export_snapshot, format_cycle_summary, snapshot_frame

logging.basicConfig(
    level=os.getenv("PULSE_LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s | %(levelname)s | %(message)s",
)
logger = logging.getLogger(__name__)


def display_cycle_summary(
    dashboard: TrendDashboard,
    entries: List[TrendEntry],
    engagement: Dict[str, EngagementStats],
    export_path: Optional[Path] = None,
) -> None:
    """Print the snapshot of the latest pass and optionally export it."""
    df = snapshot_frame(entries, engagement)
    print(format_cycle_summary(df, dashboard.last_updated))
    if export_path:
        saved = export_snapshot(df, export_path)
        logger.info(f"💾 Snapshot saved: {saved}")


async def run_once(dashboard: TrendDashboard, export_path: Optional[Path]) -> bool:
    """Single fetch + enrichment. Returns False when the feed could not be loaded."""
    try:
        engagement = await dashboard.scheduler.run_once()
        if dashboard.loading:
            logger.error("❌ Feed could not be fetched")
            return False
        display_cycle_summary(dashboard, dashboard.entries, engagement, export_path)
        return True
    finally:
        await dashboard.aclose()


async def run_continuous(dashboard: TrendDashboard, export_path: Optional[Path]) -> None:
    """Refresh until SIGINT/SIGTERM."""
    dashboard.scheduler.on_engagement = (
        lambda entries, engagement: display_cycle_summary(dashboard, entries, engagement, export_path)
    )

    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for signum in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(signum, stop.set)
        except NotImplementedError:  # Windows
            pass

    print("🚀 STARTING TRENDS REFRESH MONITORING")
    print("=" * 60)
    print(f"⏰ Interval: {dashboard.scheduler.interval_seconds:g} seconds")
    print("🛑 Press Ctrl+C to stop gracefully")
    print("=" * 60)

    async with dashboard:
        await stop.wait()
        logger.info("🛑 Shutdown requested")

    print("\n🏁 MONITORING STOPPED")
    print(f"📊 Total refresh cycles: {dashboard.scheduler.cycle_count}")
    print("✅ Graceful shutdown complete")


def main():
    """Main function with CLI interface."""
    parser = argparse.ArgumentParser(description="Google Trends refresh scheduler with Bluesky engagement")
    parser.add_argument("--interval", "-i", type=float, default=None,
                        help="Refresh interval in seconds (default: PULSE_REFRESH_SECONDS or 60)")
    parser.add_argument("--feed-url", default=None, help="Feed URL (default: PULSE_FEED_URL)")
    parser.add_argument("--once", action="store_true", help="Run one fetch + enrichment and exit")
    parser.add_argument("--export", type=Path, default=None, help="Write the snapshot CSV to this path")

    args = parser.parse_args()

    settings = Settings.from_env()
    overrides = {}
    if args.interval is not None:
        overrides["refresh_seconds"] = args.interval
    if args.feed_url:
        overrides["feed_url"] = args.feed_url
    if overrides:
        settings = replace(settings, **overrides)

    dashboard = TrendDashboard.from_settings(settings)

    if args.once:
        print("🚀 Running single refresh cycle...")
        if not asyncio.run(run_once(dashboard, args.export)):
            print("❌ Single cycle failed")
            sys.exit(1)
        print("✅ Single cycle completed")
    else:
        asyncio.run(run_continuous(dashboard, args.export))


if __name__ == "__main__":
    main()
