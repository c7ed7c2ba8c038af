"""Configured front door to the slot computation."""

from dataclasses import dataclass, field
from datetime import date, tzinfo

from .errors import InvalidArgumentError
from .intervals import BusyInterval, WorkingWindow, resolve_timezone
from .selection import SelectionPolicy, restore_selection
from .slots import DayAvailability, DurationStrategy, aggregate


@dataclass
class SlotEngine:
    """
    Slot computation bound to a timezone and working hours.

    Holds no state between calls beyond its settings. Pure - no I/O.
    """

    timezone: str | tzinfo | None = None
    start_hour: int = 9
    end_hour: int = 17
    default_selected: bool = True
    selection_policy: SelectionPolicy = SelectionPolicy.RESET
    _tz: tzinfo = field(init=False, repr=False)

    def __post_init__(self):
        self._tz = resolve_timezone(self.timezone)
        # Fail on bad hours at construction, not on first use
        WorkingWindow.for_day(date(2000, 1, 3), self.start_hour, self.end_hour, self._tz)

    @property
    def tz(self) -> tzinfo:
        return self._tz

    def window(self, day: date) -> WorkingWindow:
        return WorkingWindow.for_day(day, self.start_hour, self.end_hour, self._tz)

    def compute_day(
        self,
        day: date,
        strategies: list[DurationStrategy],
        busy_intervals: list[BusyInterval],
    ) -> DayAvailability:
        return aggregate(
            day,
            strategies,
            busy_intervals,
            self.window(day),
            selected=self.default_selected,
        )

    def compute_days(
        self,
        busy_by_date: dict[date, list[BusyInterval]],
        strategies: list[DurationStrategy],
        previous: list[DayAvailability] | None = None,
    ) -> list[DayAvailability]:
        """
        Compute availability for several dates, in date order.

        With the PRESERVE policy, flags of slots whose IDs also appear in
        previous are carried over. With RESET every slot gets the default.
        """
        if not busy_by_date:
            raise InvalidArgumentError("At least one date is required")

        availability = [
            self.compute_day(day, strategies, busy_by_date[day])
            for day in sorted(busy_by_date)
        ]

        if previous and self.selection_policy is SelectionPolicy.PRESERVE:
            restore_selection(availability, previous)

        return availability
