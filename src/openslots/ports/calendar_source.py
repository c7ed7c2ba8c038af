"""Calendar source interface."""

from datetime import date
from typing import Protocol

from openslots.core.intervals import BusyInterval


class BusyIntervalSource(Protocol):
    """Interface for fetching busy time from any calendar backend."""

    def fetch_busy_intervals(self, calendar_ids: list[str], target_date: date) -> list[BusyInterval]:
        """Fetch timed, non-cancelled busy intervals for a date.

        An empty calendar_ids list means the source's configured calendars.
        """
        ...

    def list_calendars(self) -> list[tuple[str, str]]:
        """List calendars as (id, summary) tuples."""
        ...
