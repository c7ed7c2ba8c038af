"""Time-boxed cache in front of a calendar source."""

import logging
import time
from datetime import date
from typing import Callable

from openslots.core.intervals import BusyInterval
from openslots.ports.calendar_source import BusyIntervalSource

logger = logging.getLogger(__name__)


class CachedBusySource:
    """
    Caches fetch results per (date, calendar IDs) for ttl seconds.

    Implements BusyIntervalSource protocol. Failures are not cached.
    """

    def __init__(
        self,
        source: BusyIntervalSource,
        ttl: int = 300,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.source = source
        self.ttl = ttl
        self._clock = clock
        self._entries: dict[tuple[date, frozenset[str]], tuple[float, list[BusyInterval]]] = {}

    def fetch_busy_intervals(self, calendar_ids: list[str], target_date: date) -> list[BusyInterval]:
        key = (target_date, frozenset(calendar_ids))
        now = self._clock()

        entry = self._entries.get(key)
        if entry and now - entry[0] < self.ttl:
            logger.debug(f"Cache hit for {target_date}")
            return list(entry[1])

        busy = self.source.fetch_busy_intervals(calendar_ids, target_date)
        self._prune(now)
        self._entries[key] = (now, busy)
        return list(busy)

    def _prune(self, now: float) -> None:
        """Drop expired entries so the cache only holds live keys."""
        expired = [key for key, (stored, _) in self._entries.items() if now - stored >= self.ttl]
        for key in expired:
            del self._entries[key]

    def list_calendars(self) -> list[tuple[str, str]]:
        return self.source.list_calendars()

    def invalidate(self) -> None:
        """Drop every cached entry."""
        self._entries.clear()
