"""Consumer-facing log manager: recent-entries cache plus on-disk history."""

from __future__ import annotations

import logging
import re
from collections import deque
from dataclasses import replace
from pathlib import Path

from .filters import apply_filter, matches
from .models import LogEntry, LogFilter
from .rotator import LogRotator

logger = logging.getLogger(__name__)

DEFAULT_CACHE_SIZE = 1000


class LogManager:
    """Aggregate a LogRotator with a bounded most-recent cache.

    The cache is FIFO: once full, the oldest entry is evicted on append.
    """

    def __init__(self, rotator: LogRotator, *, cache_size: int = DEFAULT_CACHE_SIZE) -> None:
        if cache_size < 1:
            raise ValueError("cache_size must be >= 1")
        self.rotator = rotator
        self.cache_size = cache_size
        self._cache: deque[LogEntry] = deque(maxlen=cache_size)

    @property
    def cached_entries(self) -> list[LogEntry]:
        return list(self._cache)

    async def initialize(self) -> None:
        """Prepare the stream and warm the cache from the newest files."""
        await self.rotator.initialize()
        recent = await self.rotator.read_logs(max_files=1)
        recent.sort(key=lambda e: e.timestamp)
        self._cache = deque(recent[-self.cache_size :], maxlen=self.cache_size)
        logger.debug("Loaded %d cached entries", len(self._cache))

    async def add_entry(self, entry: LogEntry) -> None:
        """Cache and persist an entry. Write failures propagate."""
        self._cache.append(entry)
        await self.rotator.write_log(entry)

    async def _history(self, flt: LogFilter | None = None) -> list[LogEntry]:
        """All retained entries in chronological order."""
        start = flt.start if flt is not None else None
        end = flt.end if flt is not None else None
        entries = await self.rotator.read_logs(start=start, end=end)
        entries.sort(key=lambda e: e.timestamp)
        return entries

    def _use_cache(self, flt: LogFilter) -> bool:
        return not flt.has_time_range and (flt.limit or 0) <= self.cache_size

    async def _source(self, flt: LogFilter) -> list[LogEntry]:
        if self._use_cache(flt):
            return list(self._cache)
        return await self._history(flt)

    async def get_logs(self, flt: LogFilter | None = None) -> list[LogEntry]:
        """Return matching entries oldest-first.

        Served from the cache when there is no time range and the limit fits
        in the cache; otherwise read from disk.
        """
        flt = flt or LogFilter()
        return apply_filter(await self._source(flt), flt)

    async def search(
        self,
        pattern: str,
        flt: LogFilter | None = None,
        *,
        case_sensitive: bool = False,
    ) -> list[LogEntry]:
        """Regex search over the rendered message or the logger name."""
        flt = flt or LogFilter()
        try:
            rx = re.compile(pattern, 0 if case_sensitive else re.IGNORECASE)
        except re.error as exc:
            raise ValueError(f"Invalid search pattern '{pattern}': {exc}") from exc

        candidates = apply_filter(await self._source(flt), replace(flt, limit=None))
        hits = [e for e in candidates if rx.search(e.render()) or rx.search(e.name)]
        if flt.limit is not None:
            hits = hits[-flt.limit :] if flt.limit else []
        return hits

    async def clear(self, flt: LogFilter | None = None) -> int:
        """Remove matching entries and rebuild the persisted stream.

        An empty filter clears everything. Surviving history is replayed
        into a fresh live file after the rotated files are removed. This is
        not atomic: a crash mid-clear can leave a partially rewritten stream.
        Returns the number of persisted entries removed.
        """
        flt = replace(flt or LogFilter(), limit=None)

        def doomed(entry: LogEntry) -> bool:
            return flt.is_empty or matches(entry, flt)

        self._cache = deque(
            (e for e in self._cache if not doomed(e)), maxlen=self.cache_size
        )

        history = await self._history()
        survivors = [e for e in history if not doomed(e)]

        await self.rotator.remove_rotated()
        await self.rotator.truncate()
        for entry in survivors:
            await self.rotator.write_log(entry)

        removed = len(history) - len(survivors)
        logger.info("Cleared %d entries (%d kept)", removed, len(survivors))
        return removed

    async def rotate(self) -> Path | None:
        """Force a rotation of the live file."""
        return await self.rotator.rotate()
