import asyncio
from datetime import datetime, timezone

import pytest

from generation_engine.models import EngagementStats, TrendEntry
from pulse_engine.scheduler import RefreshScheduler

FEED_URL = "https://trends.google.com/trending/rss?geo=US"


def _entries(*titles):
    return [TrendEntry(title=t, published_at=datetime(2024, 1, 2, tzinfo=timezone.utc)) for t in titles]


class FakeFetcher:
    """Returns queued results from ``refresh``; ``None`` means a failed fetch."""

    def __init__(self, *results):
        self.results = list(results)
        self.calls = 0

    async def refresh(self, feed_url):
        self.calls += 1
        if self.results:
            return self.results.pop(0)
        return _entries(f"cycle-{self.calls}")


class FakeEnricher:
    def __init__(self, gated=False):
        self.gate = asyncio.Event()
        if not gated:
            self.gate.set()
        self.started = []
        self.finished = []

    async def enrich(self, entries):
        self.started.append([e.title for e in entries])
        await self.gate.wait()
        result = {e.title: EngagementStats(likes=len(e.title)) for e in entries}
        self.finished.append(result)
        return result


async def _settle(rounds=10):
    for _ in range(rounds):
        await asyncio.sleep(0)


@pytest.mark.asyncio
async def test_start_fetches_immediately_and_enriches_result():
    fetcher = FakeFetcher(_entries("A", "BB"))
    enricher = FakeEnricher()
    scheduler = RefreshScheduler(fetcher, enricher, FEED_URL, interval_seconds=60)

    scheduler.start()
    await _settle()

    assert fetcher.calls == 1
    assert enricher.started == [["A", "BB"]]
    assert scheduler.engagement["BB"].likes == 2

    scheduler.cancel()
    await scheduler.wait_closed()


@pytest.mark.asyncio
async def test_feed_is_refetched_every_interval():
    fetcher = FakeFetcher()
    scheduler = RefreshScheduler(fetcher, FakeEnricher(), FEED_URL, interval_seconds=0.02)

    async with scheduler:
        await asyncio.sleep(0.09)

    assert fetcher.calls >= 3
    assert scheduler.cycle_count == fetcher.calls


@pytest.mark.asyncio
async def test_failed_fetch_triggers_no_enrichment_and_keeps_engagement():
    fetcher = FakeFetcher(_entries("A"), None)
    enricher = FakeEnricher()
    scheduler = RefreshScheduler(fetcher, enricher, FEED_URL, interval_seconds=60)

    scheduler.start()
    await _settle()
    before = scheduler.engagement

    assert await scheduler.run_cycle() is None
    await _settle()

    assert enricher.started == [["A"]]
    assert scheduler.engagement is before
    scheduler.cancel()
    await scheduler.wait_closed()


@pytest.mark.asyncio
async def test_cancel_mid_pass_discards_result():
    fetcher = FakeFetcher(_entries("A"))
    enricher = FakeEnricher(gated=True)
    scheduler = RefreshScheduler(fetcher, enricher, FEED_URL, interval_seconds=60)

    scheduler.start()
    await _settle()
    assert enricher.started == [["A"]]

    scheduler.cancel()
    enricher.gate.set()
    await scheduler.wait_closed()

    assert len(enricher.finished) == 1  # pass ran to completion
    assert scheduler.engagement == {}
    assert scheduler.pass_count == 0


@pytest.mark.asyncio
async def test_cancel_is_idempotent_and_stops_polling():
    fetcher = FakeFetcher()
    scheduler = RefreshScheduler(fetcher, FakeEnricher(), FEED_URL, interval_seconds=0.01)

    scheduler.start()
    await asyncio.sleep(0.03)
    scheduler.cancel()
    scheduler.cancel()
    await scheduler.wait_closed()
    calls = fetcher.calls

    await asyncio.sleep(0.05)

    assert fetcher.calls == calls
    assert scheduler.cancelled
    assert not scheduler.running


@pytest.mark.asyncio
async def test_no_enrichment_starts_after_cancel():
    fetcher = FakeFetcher()
    enricher = FakeEnricher()
    scheduler = RefreshScheduler(fetcher, enricher, FEED_URL, interval_seconds=60)

    scheduler.start()
    scheduler.cancel()
    await scheduler.wait_closed()

    assert enricher.started == []
    with pytest.raises(RuntimeError):
        scheduler.start()


@pytest.mark.asyncio
async def test_latest_entries_win_while_a_pass_is_running():
    fetcher = FakeFetcher(_entries("first"), _entries("second"), _entries("third"))
    enricher = FakeEnricher(gated=True)
    scheduler = RefreshScheduler(fetcher, enricher, FEED_URL, interval_seconds=60)

    scheduler.start()
    await _settle()
    await scheduler.run_cycle()
    await scheduler.run_cycle()
    enricher.gate.set()
    await _settle()

    assert enricher.started == [["first"], ["third"]]
    assert set(scheduler.engagement) == {"third"}
    scheduler.cancel()
    await scheduler.wait_closed()


@pytest.mark.asyncio
async def test_callbacks_see_entries_and_engagement():
    seen_entries = []
    seen_engagement = []
    scheduler = RefreshScheduler(
        FakeFetcher(_entries("A")),
        FakeEnricher(),
        FEED_URL,
        on_entries=lambda entries: seen_entries.append([e.title for e in entries]),
        on_engagement=lambda entries, engagement: seen_engagement.append(sorted(engagement)),
    )

    engagement = await scheduler.run_once()

    assert seen_entries == [["A"]]
    assert seen_engagement == [["A"]]
    assert engagement is scheduler.engagement


@pytest.mark.asyncio
async def test_run_once_with_failed_fetch_leaves_engagement_alone():
    scheduler = RefreshScheduler(FakeFetcher(None), FakeEnricher(), FEED_URL)
    scheduler.engagement = {"old": EngagementStats(likes=1)}

    assert await scheduler.run_once() == {"old": EngagementStats(likes=1)}


@pytest.mark.asyncio
async def test_crashing_fetch_does_not_kill_the_loop():
    class ExplodingFetcher(FakeFetcher):
        async def refresh(self, feed_url):
            self.calls += 1
            if self.calls == 1:
                raise RuntimeError("boom")
            return _entries("recovered")

    fetcher = ExplodingFetcher()
    scheduler = RefreshScheduler(fetcher, FakeEnricher(), FEED_URL, interval_seconds=0.01)

    async with scheduler:
        await asyncio.sleep(0.05)

    assert fetcher.calls >= 2
    assert "recovered" in scheduler.engagement
