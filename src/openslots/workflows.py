"""Shared workflow layer between the CLI and library callers.

Fetches busy time per date, runs the slot engine, and renders text.
"""

import logging
from datetime import date

from .adapters.cached_source import CachedBusySource
from .adapters.composite_calendar import CompositeCalendarAdapter
from .adapters.errors import AuthenticationError, CalendarFetchError
from .config import Config
from .core.availability_text import render_availability_text
from .core.engine import SlotEngine
from .core.intervals import BusyInterval
from .core.selection import SelectionPolicy, selected_slots
from .core.slots import DayAvailability, DurationStrategy, parse_strategies
from .ports.calendar_source import BusyIntervalSource

logger = logging.getLogger(__name__)


def build_engine(config: Config) -> SlotEngine:
    """Build a SlotEngine from config."""
    start_hour, end_hour = config.work_hour_range()
    return SlotEngine(
        timezone=config.timezone,
        start_hour=start_hour,
        end_hour=end_hour,
        default_selected=config.default_selected,
        selection_policy=SelectionPolicy.PRESERVE if config.preserve_selection else SelectionPolicy.RESET,
    )


def build_source(config: Config) -> BusyIntervalSource:
    """All configured calendar sources behind a time-boxed cache."""
    return CachedBusySource(CompositeCalendarAdapter.from_config(config), ttl=config.cache_ttl)


def default_strategies(config: Config) -> list[DurationStrategy]:
    return parse_strategies(config.durations, config.custom_duration)


def collect_busy_intervals(
    source: BusyIntervalSource,
    dates: list[date],
    calendar_ids: list[str] | None = None,
) -> dict[date, list[BusyInterval]]:
    """
    Fetch busy intervals date by date.

    A failed fetch is logged and that date is treated as entirely free, so
    one bad date never aborts the batch.
    """
    busy_by_date = {}
    for target in dates:
        try:
            busy_by_date[target] = source.fetch_busy_intervals(calendar_ids or [], target)
        except (AuthenticationError, CalendarFetchError) as e:
            logger.warning(f"Error fetching events for {target.isoformat()}: {e}")
            busy_by_date[target] = []
    return busy_by_date


def compute_availability(
    config: Config,
    dates: list[date],
    strategies: list[DurationStrategy] | None = None,
    source: BusyIntervalSource | None = None,
    calendar_ids: list[str] | None = None,
    previous: list[DayAvailability] | None = None,
) -> list[DayAvailability]:
    """Fetch busy time for dates and compute their availability."""
    engine = build_engine(config)
    strategies = strategies or default_strategies(config)
    source = source or build_source(config)

    busy_by_date = collect_busy_intervals(source, dates, calendar_ids)
    availability = engine.compute_days(busy_by_date, strategies, previous=previous)

    total_busy = sum(len(b) for b in busy_by_date.values())
    total_slots = sum(len(d.slots) for d in availability)
    logger.info(f"Found {total_busy} events and generated {total_slots} available slots")
    return availability


def availability_text(availability: list[DayAvailability], today: date | None = None) -> str:
    """Render the selected slots as copy-pasteable text."""
    return render_availability_text(selected_slots(availability), today=today)
