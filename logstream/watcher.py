"""Growth watcher: polls one source and reads only the bytes appended since last tick."""

import asyncio
import logging
from enum import Enum
from typing import Callable

import aiofiles
import aiofiles.os

from logstream.models import Source, UpdateBatch
from logstream.parser import parse_line, split_lines

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 1.0


def complete_utf8_length(data: bytes) -> int:
    """Length of ``data`` without a trailing, still-incomplete UTF-8 sequence.

    The held-back bytes are read again on the next tick, once the writer
    has appended the rest of the character.
    """
    for back in range(1, min(4, len(data)) + 1):
        byte = data[-back]
        if byte & 0xC0 == 0x80:  # continuation byte
            continue
        if byte >= 0xF0:
            needed = 4
        elif byte >= 0xE0:
            needed = 3
        elif byte >= 0xC0:
            needed = 2
        else:
            needed = 1
        return len(data) - back if needed > back else len(data)
    return len(data)


class WatcherState(Enum):
    IDLE = "idle"
    READING = "reading"


class GrowthWatcher:
    """Owns one Source's read offset.

    A tick that arrives while a read is in flight is dropped, so the same
    appended range is never read twice and the offset only moves forward.
    The offset is advanced after the read and parse complete, and the batch
    is handed to ``on_batch`` in the same step.
    """

    def __init__(
        self,
        source: Source,
        on_batch: Callable[[UpdateBatch], None] | None = None,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
    ):
        self._source = source
        self._on_batch = on_batch
        self._poll_interval = poll_interval
        self._lock = asyncio.Lock()
        self._state = WatcherState.IDLE
        self._wake = asyncio.Event()
        self._loop: asyncio.AbstractEventLoop | None = None

    @property
    def source(self) -> Source:
        return self._source

    @property
    def state(self) -> WatcherState:
        return self._state

    async def tick(self) -> UpdateBatch | None:
        """Check for growth once. Returns the emitted batch, if any."""
        if self._lock.locked():
            logger.debug("Tick skipped for %s: read in flight", self._source.name)
            return None
        async with self._lock:
            return await self._consume_growth()

    async def _consume_growth(self) -> UpdateBatch | None:
        source = self._source
        try:
            stat = await aiofiles.os.stat(source.path)
        except FileNotFoundError:
            return None
        except OSError as e:
            logger.error("Error watching %s: %s", source.path, e)
            return None

        current_size = stat.st_size
        start = source.last_known_size
        if current_size <= start:
            return None

        self._state = WatcherState.READING
        try:
            async with aiofiles.open(source.path, "rb") as f:
                await f.seek(start)
                data = await f.read(current_size - start)
            data = data[:complete_utf8_length(data)]
            entries = tuple(parse_line(line) for line in split_lines(data.decode("utf-8", errors="replace")))
            source.last_known_size = start + len(data)
        except OSError as e:
            logger.error("Error reading %s at offset %d: %s", source.path, start, e)
            return None
        finally:
            self._state = WatcherState.IDLE

        if not entries:
            return None
        batch = UpdateBatch(source_name=source.name, entries=entries)
        logger.debug("%s: %d new entries (offset %d -> %d)",
                     source.name, len(entries), start, source.last_known_size)
        if self._on_batch is not None:
            self._on_batch(batch)
        return batch

    def wake(self):
        """Request an early tick. Safe to call from any thread."""
        if self._loop is not None and not self._loop.is_closed():
            self._loop.call_soon_threadsafe(self._wake.set)

    async def run(self):
        """Tick forever, sleeping ``poll_interval`` between ticks (or until woken)."""
        self._loop = asyncio.get_running_loop()
        logger.info("Watching %s (%s) every %.1fs", self._source.name, self._source.path, self._poll_interval)
        try:
            while True:
                try:
                    await self.tick()
                except Exception:
                    logger.exception("Unexpected error on tick for %s", self._source.name)
                try:
                    await asyncio.wait_for(self._wake.wait(), timeout=self._poll_interval)
                except asyncio.TimeoutError:
                    pass
                self._wake.clear()
        finally:
            self._loop = None
