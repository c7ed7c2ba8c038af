"""Functional core - pure slot computation with no I/O."""

from .errors import InvalidArgumentError, InvalidDurationError
from .intervals import BusyInterval, Interval, WorkingWindow, compute_free_gaps
from .slots import (
    DayAvailability,
    DurationStrategy,
    Slot,
    StrategyKind,
    aggregate,
    compute_custom_duration,
    merge_adjacent,
    parse_strategies,
    subdivide,
)
from .selection import (
    SelectionPolicy,
    deselect_all,
    restore_selection,
    select_all,
    selected_slots,
    toggle_day,
    toggle_selection,
)
from .engine import SlotEngine
from .availability_text import compose_email_body, render_availability_text

__all__ = [
    # Errors
    "InvalidArgumentError",
    "InvalidDurationError",
    # Intervals
    "BusyInterval",
    "Interval",
    "WorkingWindow",
    "compute_free_gaps",
    # Slots
    "DayAvailability",
    "DurationStrategy",
    "Slot",
    "StrategyKind",
    "aggregate",
    "compute_custom_duration",
    "merge_adjacent",
    "parse_strategies",
    "subdivide",
    # Selection
    "SelectionPolicy",
    "deselect_all",
    "restore_selection",
    "select_all",
    "selected_slots",
    "toggle_day",
    "toggle_selection",
    # Engine
    "SlotEngine",
    # Text
    "compose_email_body",
    "render_availability_text",
]
