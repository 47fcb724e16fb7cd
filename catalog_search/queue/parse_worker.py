"""
Background catalog parsing.
Runs the synchronous parser in a worker thread and streams its progress
to an asyncio listener, so a serving loop never stalls on a large export.
"""
import asyncio
from dataclasses import dataclass
from typing import Callable, Optional

from catalog_search.errors import IngestionError
from catalog_search.logger import logger
from catalog_search.models.search import ParseResult, ParseStats
from catalog_search.services.csv_parser import ParseCache, parse_catalog


@dataclass(frozen=True)
class ParseEvent:
    """One progress notification. The last event of a parse has done=True."""
    percent: int
    stats: ParseStats
    done: bool = False
    result: Optional[ParseResult] = None
    error: Optional[Exception] = None


class ParseWorker:
    """
    One parse in flight at a time.
    Events arrive in row order and exactly one of them reports 100%.
    """

    def __init__(self, cache: Optional[ParseCache] = None):
        self.cache = cache if cache is not None else ParseCache()
        self.is_processing = False
        self._task: Optional[asyncio.Task] = None

    async def start(self, text: str, progress_interval: Optional[int] = None) -> "asyncio.Queue[ParseEvent]":
        """
        Begin parsing in the background.

        Returns:
            Queue receiving ParseEvents; the final one has done=True

        Raises:
            IngestionError: If a parse is already running on this worker
        """
        if self.is_processing:
            raise IngestionError("A catalog parse is already in progress")

        loop = asyncio.get_running_loop()
        events: asyncio.Queue = asyncio.Queue()

        def on_progress(percent: int, stats: ParseStats):
            # 100% is sent once, with the result, by _run
            if percent < 100:
                loop.call_soon_threadsafe(events.put_nowait, ParseEvent(percent=percent, stats=stats))

        self.is_processing = True
        self._task = asyncio.create_task(self._run(text, on_progress, events, progress_interval))
        return events

    async def _run(self, text, on_progress, events: asyncio.Queue, progress_interval: Optional[int]):
        try:
            result = await asyncio.to_thread(
                parse_catalog, text, on_progress, self.cache, progress_interval
            )
        except Exception as e:
            logger.error(f"Background catalog parse failed: {e}")
            events.put_nowait(ParseEvent(percent=0, stats=ParseStats(), done=True, error=e))
        else:
            events.put_nowait(ParseEvent(percent=100, stats=result.stats, done=True, result=result))
        finally:
            self.is_processing = False

    async def parse(
        self,
        text: str,
        listener: Optional[Callable[[ParseEvent], None]] = None,
        progress_interval: Optional[int] = None,
    ) -> ParseResult:
        """
        Parse in the background and wait for the result.

        Args:
            text: Raw CSV export
            listener: Called with every ParseEvent, final one included

        Raises:
            IngestionError: If the input holds no data
            Exception: Whatever else stopped the background parse
        """
        events = await self.start(text, progress_interval)

        while True:
            event = await events.get()
            if listener:
                listener(event)
            if event.done:
                if event.error is not None:
                    raise event.error
                return event.result
