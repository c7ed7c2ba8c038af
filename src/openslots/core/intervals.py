"""Interval arithmetic and timezone resolution.

Everything here is pure except host_timezone, which reads $TZ and
/etc/localtime.
"""

import os
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone, tzinfo
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .errors import InvalidArgumentError


def _zone_or_none(key: str) -> ZoneInfo | None:
    try:
        return ZoneInfo(key)
    except (ZoneInfoNotFoundError, ValueError):
        return None


def host_timezone(localtime: Path = Path("/etc/localtime")) -> tzinfo:
    """
    The host's zone with its full DST rules.

    Looks at $TZ, then the /etc/localtime link or file. A fixed offset taken
    from the current time is the last resort, and is only right for dates
    sharing today's UTC offset.
    """
    name = os.environ.get("TZ", "").lstrip(":")
    if name and (zone := _zone_or_none(name)):
        return zone

    if localtime.is_symlink():
        target = str(localtime.resolve())
        if "zoneinfo/" in target and (zone := _zone_or_none(target.split("zoneinfo/", 1)[1])):
            return zone
    if localtime.is_file():
        with localtime.open("rb") as f:
            return ZoneInfo.from_file(f, key="localtime")

    return datetime.now().astimezone().tzinfo


def resolve_timezone(tz: str | tzinfo | None) -> tzinfo:
    """Turn a zone name (or tzinfo) into a tzinfo. None means the host zone."""
    if tz is None or tz == "":
        return host_timezone()
    if isinstance(tz, tzinfo):
        return tz
    try:
        return ZoneInfo(tz)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise InvalidArgumentError(f"Unknown timezone: {tz!r}") from e


def localize(dt: datetime, tz: tzinfo) -> datetime:
    """Attach tz to a naive datetime, or convert an aware one to tz."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=tz)
    return dt.astimezone(tz)


def shift(dt: datetime, minutes: int) -> datetime:
    """Add minutes in absolute time, keeping dt's timezone for display."""
    if dt.tzinfo is None:
        return dt + timedelta(minutes=minutes)
    moved = dt.astimezone(timezone.utc) + timedelta(minutes=minutes)
    return moved.astimezone(dt.tzinfo)


def minutes_between(start: datetime, end: datetime) -> int:
    if start.tzinfo is None or end.tzinfo is None:
        return int((end - start).total_seconds() // 60)
    # Aware datetimes sharing a tzinfo subtract as wall time, so go through UTC.
    delta = end.astimezone(timezone.utc) - start.astimezone(timezone.utc)
    return int(delta.total_seconds() // 60)


@dataclass(frozen=True)
class Interval:
    """A half-open time range [start, end)."""

    start: datetime
    end: datetime

    def __post_init__(self):
        if self.start >= self.end:
            raise InvalidArgumentError(
                f"Interval start {self.start.isoformat()} is not before end {self.end.isoformat()}"
            )

    def duration_minutes(self) -> int:
        return minutes_between(self.start, self.end)

    def overlaps(self, other: "Interval") -> bool:
        """Check if this interval overlaps with another (touching is not overlap)."""
        return self.start < other.end and other.start < self.end

    def contains(self, dt: datetime) -> bool:
        return self.start <= dt < self.end

    def clip(self, window: "Interval") -> "Interval":
        """Clip to window bounds. Caller must ensure the two overlap."""
        return Interval(start=max(self.start, window.start), end=min(self.end, window.end))


@dataclass(frozen=True)
class BusyInterval(Interval):
    """A busy period contributed by one source calendar."""

    source_calendar_id: str = ""
    label: str = ""
    color: str = ""


@dataclass(frozen=True)
class WorkingWindow(Interval):
    """The part of a day within which availability is computed."""

    @property
    def day_start(self) -> datetime:
        return self.start

    @property
    def day_end(self) -> datetime:
        return self.end

    @property
    def tz(self) -> tzinfo:
        return self.start.tzinfo

    @classmethod
    def for_day(
        cls,
        day: date,
        start_hour: int = 9,
        end_hour: int = 17,
        tz: str | tzinfo | None = None,
    ) -> "WorkingWindow":
        """Anchor working hours to the local midnight of day."""
        if not 0 <= start_hour <= 23:
            raise InvalidArgumentError(f"Working start hour must be 0-23, got {start_hour}")
        if not 1 <= end_hour <= 24:
            raise InvalidArgumentError(f"Working end hour must be 1-24, got {end_hour}")
        if start_hour >= end_hour:
            raise InvalidArgumentError(
                f"Working hours are empty: start {start_hour} is not before end {end_hour}"
            )

        zone = resolve_timezone(tz)
        day_start = datetime.combine(day, time(start_hour, 0), tzinfo=zone)
        if end_hour == 24:
            day_end = datetime.combine(day + timedelta(days=1), time(0, 0), tzinfo=zone)
        else:
            day_end = datetime.combine(day, time(end_hour, 0), tzinfo=zone)
        return cls(start=day_start, end=day_end)


def compute_free_gaps(window: Interval, busy_intervals: list[Interval]) -> list[Interval]:
    """
    Compute the free gaps of window not covered by any busy interval.

    Pure function - no I/O.

    Busy intervals may be unsorted, overlapping, touching, or partly outside
    the window. Naive bounds are read in the window's timezone. Returned gaps
    are sorted, non-overlapping and expressed in the window's timezone.
    """
    tz = window.start.tzinfo

    clipped = []
    for busy in busy_intervals:
        busy_start = localize(busy.start, tz)
        busy_end = localize(busy.end, tz)
        if busy_start >= busy_end:
            raise InvalidArgumentError(
                f"Busy interval start {busy_start.isoformat()} is not before end {busy_end.isoformat()}"
            )
        if not (busy_start < window.end and busy_end > window.start):
            continue
        clipped.append((max(busy_start, window.start), min(busy_end, window.end)))

    if not clipped:
        return [Interval(start=window.start, end=window.end)]

    # Same start: shorter first, so the merge order is deterministic
    clipped.sort(key=lambda b: (b[0], b[1]))

    gaps = []
    cursor = window.start
    for busy_start, busy_end in clipped:
        if busy_start > cursor:
            gaps.append(Interval(start=cursor, end=busy_start))
        cursor = max(cursor, busy_end)

    if cursor < window.end:
        gaps.append(Interval(start=cursor, end=window.end))

    return gaps
