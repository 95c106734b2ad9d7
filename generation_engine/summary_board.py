"""Position-keyed summary cache with per-entry in-progress tracking."""
from __future__ import annotations

import asyncio
import logging
from typing import Dict, Optional, Protocol, Sequence, Set

from pulse_engine.errors import PulseError

from .models import GeneratedSummary

logger = logging.getLogger(__name__)


class Summarizer(Protocol):
    async def generate_summary(self, headlines: Sequence[str]) -> str:
        ...


class SummaryBoard:
    """Runs summary requests as background tasks, one at a time per entry.

    Requests for different positions run concurrently. A second request for a
    position that is still generating is refused. :meth:`reset` starts a new
    fetch cycle: the cache is cleared and results of requests started before
    the reset are dropped, since positions now point at different entries.
    """

    def __init__(self, summarizer: Summarizer):
        self.summarizer = summarizer
        self.summaries: Dict[int, GeneratedSummary] = {}
        self._in_progress: Set[int] = set()
        self._tasks: Set[asyncio.Task] = set()
        self._cycle = 0

    def is_generating(self, position: int) -> bool:
        return position in self._in_progress

    def get(self, position: int) -> Optional[GeneratedSummary]:
        return self.summaries.get(position)

    def request(self, position: int, headlines: Sequence[str]) -> bool:
        """Start generating a summary for *position*.

        Returns ``False`` without doing anything when that position already has
        a request in flight. Must be called from inside a running event loop.
        """
        if position in self._in_progress:
            logger.debug(f"Summary for entry {position} already in progress")
            return False

        self._in_progress.add(position)
        task = asyncio.create_task(self._generate(position, list(headlines), self._cycle))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return True

    async def _generate(self, position: int, headlines: Sequence[str], cycle: int) -> None:
        try:
            text = await self.summarizer.generate_summary(headlines)
        except PulseError as exc:
            logger.error(f"Summary generation failed for entry {position}: {exc}")
            return
        finally:
            if cycle == self._cycle:
                self._in_progress.discard(position)

        if cycle != self._cycle:
            logger.info(f"Dropping summary for entry {position} from a previous feed cycle")
            return
        self.summaries[position] = GeneratedSummary(text=text)

    def reset(self) -> None:
        """Forget all summaries; a new entry list has replaced the old one."""
        self._cycle += 1
        self.summaries = {}
        self._in_progress = set()

    async def wait_idle(self) -> None:
        """Wait for every outstanding request to finish."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
