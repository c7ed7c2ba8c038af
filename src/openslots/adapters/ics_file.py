"""ICS file adapter - busy time from exported calendar files."""

import logging
from datetime import date, datetime, time, timedelta
from pathlib import Path

from icalendar import Calendar

from openslots.core.errors import InvalidArgumentError
from openslots.core.intervals import BusyInterval, localize, resolve_timezone, shift

from .errors import IcsParseError

logger = logging.getLogger(__name__)


def parse_ics(content: bytes | str) -> Calendar:
    """Parse ICS content, raising IcsParseError on invalid input."""
    if isinstance(content, str):
        content = content.encode("utf-8")
    if not content.strip():
        raise IcsParseError("ICS content is empty")
    try:
        return Calendar.from_ical(content)
    except ValueError as e:
        raise IcsParseError("Invalid ICS format. Please check your calendar file content.") from e


class IcsFileAdapter:
    """
    Reads .ics files from disk.

    Implements BusyIntervalSource protocol. Each file is one calendar whose ID
    is the file stem. Recurring events are not expanded.
    """

    def __init__(self, paths: list[str], timezone: str = "America/Toronto"):
        self.paths = [Path(p).expanduser() for p in paths]
        self.timezone = timezone

    def _load(self, path: Path) -> Calendar:
        if path.suffix.lower() != ".ics":
            raise IcsParseError(f"Not an ICS file (.ics extension): {path}")
        try:
            content = path.read_bytes()
        except OSError as e:
            raise IcsParseError(f"Failed to read {path}: {e}") from e
        return parse_ics(content)

    def fetch_busy_intervals(self, calendar_ids: list[str], target_date: date) -> list[BusyInterval]:
        """Fetch busy intervals for a specific date."""
        tz = resolve_timezone(self.timezone)
        day_start = datetime.combine(target_date, time(0, 0), tzinfo=tz)
        day_end = datetime.combine(target_date + timedelta(days=1), time(0, 0), tzinfo=tz)

        busy = []
        for path in self.paths:
            if calendar_ids and path.stem not in calendar_ids:
                continue
            calendar = self._load(path)
            for interval in self._parse_events(calendar, path.stem):
                if interval.start < day_end and interval.end > day_start:
                    busy.append(interval)
        return busy

    def _parse_events(self, calendar: Calendar, calendar_id: str) -> list[BusyInterval]:
        """Parse timed, non-cancelled VEVENTs into BusyIntervals."""
        tz = resolve_timezone(self.timezone)
        events = []

        for component in calendar.walk("VEVENT"):
            summary = str(component.get("SUMMARY", "Untitled Event"))
            if str(component.get("STATUS", "")).upper() == "CANCELLED":
                continue

            dtstart = component.get("DTSTART")
            if dtstart is None or not isinstance(dtstart.dt, datetime):
                # All-day events have a plain date
                continue
            start = localize(dtstart.dt, tz)

            dtend = component.get("DTEND")
            duration = component.get("DURATION")
            if dtend is not None and isinstance(dtend.dt, datetime):
                end = localize(dtend.dt, tz)
            elif duration is not None:
                # Elapsed time, not wall time
                end = shift(start, duration.dt // timedelta(minutes=1))
            else:
                logger.debug(f"Skipping event without end: {summary}")
                continue

            try:
                events.append(
                    BusyInterval(
                        start=start,
                        end=end,
                        source_calendar_id=calendar_id,
                        label=summary,
                    )
                )
            except InvalidArgumentError as e:
                logger.debug(f"Skipping malformed event {summary}: {e}")

        return events

    def list_calendars(self) -> list[tuple[str, str]]:
        """List files as (id, calendar name) tuples."""
        calendars = []
        for path in self.paths:
            calendar = self._load(path)
            name = str(calendar.get("X-WR-CALNAME", path.stem))
            calendars.append((path.stem, name))
        return calendars
