"""Pure slot computation - subdivision, merging and aggregation. No I/O."""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum

from .errors import InvalidArgumentError, InvalidDurationError
from .intervals import Interval, compute_free_gaps, minutes_between, shift

CUSTOM_MIN_MINUTES = 5
CUSTOM_MAX_MINUTES = 120
GROUPED_BASE_MINUTES = 30
DEFAULT_CUSTOM_MINUTES = 15


class StrategyKind(Enum):
    """How free gaps are cut into slots."""

    GROUPED = "grouped"
    FIXED = "fixed"
    CUSTOM = "custom"


# Concatenation order when several strategies run for the same date
_KIND_ORDER = {
    StrategyKind.GROUPED: 0,
    StrategyKind.FIXED: 1,
    StrategyKind.CUSTOM: 2,
}


@dataclass(frozen=True)
class DurationStrategy:
    """A duration strategy: fixed minutes, custom minutes, or grouped."""

    kind: StrategyKind
    minutes: int

    @classmethod
    def fixed(cls, minutes: int) -> "DurationStrategy":
        if minutes <= 0:
            raise InvalidArgumentError(f"Slot duration must be positive, got {minutes}")
        return cls(StrategyKind.FIXED, minutes)

    @classmethod
    def custom(cls, minutes: int) -> "DurationStrategy":
        if not CUSTOM_MIN_MINUTES <= minutes <= CUSTOM_MAX_MINUTES:
            raise InvalidDurationError(
                f"Custom duration must be between {CUSTOM_MIN_MINUTES} and "
                f"{CUSTOM_MAX_MINUTES} minutes, got {minutes}"
            )
        return cls(StrategyKind.CUSTOM, minutes)

    @classmethod
    def grouped(cls) -> "DurationStrategy":
        return cls(StrategyKind.GROUPED, GROUPED_BASE_MINUTES)

    @property
    def tag(self) -> str:
        """Prefix used in slot IDs."""
        if self.kind is StrategyKind.FIXED:
            return f"fixed{self.minutes}"
        return self.kind.value

    def label(self) -> str:
        match self.kind:
            case StrategyKind.FIXED:
                return f"{self.minutes} min"
            case StrategyKind.CUSTOM:
                return f"Custom ({self.minutes} min)"
            case StrategyKind.GROUPED:
                return "Grouped"


def parse_strategy(value: str, custom_minutes: int = DEFAULT_CUSTOM_MINUTES) -> list[DurationStrategy]:
    """
    Parse one strategy string.

    Accepts a number of minutes ("15", "30", "60"), "both" (30 and 60),
    "grouped", "custom" (uses custom_minutes) or "custom:N".
    """
    text = value.strip().lower()
    if text == "grouped":
        return [DurationStrategy.grouped()]
    if text == "both":
        return [DurationStrategy.fixed(30), DurationStrategy.fixed(60)]
    if text == "custom":
        return [DurationStrategy.custom(custom_minutes)]
    if text.startswith("custom:"):
        minutes_text = text.partition(":")[2]
        try:
            minutes = int(minutes_text)
        except ValueError:
            raise InvalidDurationError(f"Invalid custom duration: {minutes_text!r}") from None
        return [DurationStrategy.custom(minutes)]
    try:
        minutes = int(text)
    except ValueError:
        raise InvalidArgumentError(f"Unknown duration strategy: {value!r}") from None
    return [DurationStrategy.fixed(minutes)]


def parse_strategies(
    values: list[str],
    custom_minutes: int = DEFAULT_CUSTOM_MINUTES,
) -> list[DurationStrategy]:
    """Parse several strategy strings, dropping repeats."""
    strategies: list[DurationStrategy] = []
    for value in values:
        for strategy in parse_strategy(value, custom_minutes):
            if strategy not in strategies:
                strategies.append(strategy)
    return strategies


def format_clock(dt: datetime) -> str:
    """Format a time like 9:00 AM."""
    return dt.strftime("%I:%M %p").lstrip("0")


def is_ambiguous(dt: datetime) -> bool:
    """True when dt's wall time occurs twice, as in a fall-back hour."""
    if dt.tzinfo is None:
        return False
    return dt.replace(fold=1 - dt.fold).utcoffset() != dt.utcoffset()


def slot_id(strategy: DurationStrategy, day: date, start: datetime, minutes: int) -> str:
    """
    Deterministic slot ID from (strategy, date, local start, length).

    A start in a repeated hour carries its UTC offset (01:00-0400 vs
    01:00-0500) so both occurrences keep distinct IDs.
    """
    clock = start.strftime("%H:%M%z" if is_ambiguous(start) else "%H:%M")
    return f"{strategy.tag}-{day.isoformat()}-{clock}-{minutes}"


@dataclass
class Slot:
    """A bookable free interval with a selection flag."""

    start: datetime
    end: datetime
    display_start: str
    display_end: str
    id: str
    selected: bool = True
    strategy: DurationStrategy | None = None

    def duration_minutes(self) -> int:
        return minutes_between(self.start, self.end)

    def format(self) -> str:
        return f"{self.display_start} - {self.display_end}"

    def overlaps(self, other: Interval) -> bool:
        return self.start < other.end and other.start < self.end


@dataclass
class DayAvailability:
    """All slots computed for one date, sorted by start."""

    date: date
    slots: list[Slot] = field(default_factory=list)

    def selected(self) -> list[Slot]:
        return [s for s in self.slots if s.selected]

    def slots_for(self, strategy: DurationStrategy) -> list[Slot]:
        return [s for s in self.slots if s.strategy == strategy]


def _make_slot(
    start: datetime,
    end: datetime,
    day: date,
    strategy: DurationStrategy,
    selected: bool,
) -> Slot:
    minutes = minutes_between(start, end)
    return Slot(
        start=start,
        end=end,
        display_start=format_clock(start),
        display_end=format_clock(end),
        id=slot_id(strategy, day, start, minutes),
        selected=selected,
        strategy=strategy,
    )


def subdivide(
    gaps: list[Interval],
    duration_minutes: int,
    *,
    day: date | None = None,
    strategy: DurationStrategy | None = None,
    selected: bool = True,
) -> list[Slot]:
    """
    Cut each free gap into back-to-back slots of duration_minutes.

    Pure function - no I/O.

    Slots start at the gap start. A trailing remainder shorter than the
    duration produces no slot. When day is not given, each gap's own start
    date is used for the slot IDs.
    """
    if duration_minutes <= 0:
        raise InvalidArgumentError(f"Slot duration must be positive, got {duration_minutes}")
    strategy = strategy or DurationStrategy.fixed(duration_minutes)

    slots = []
    for gap in gaps:
        slot_day = day or gap.start.date()
        current = gap.start
        while True:
            slot_end = shift(current, duration_minutes)
            if slot_end > gap.end:
                break
            slots.append(_make_slot(current, slot_end, slot_day, strategy, selected))
            current = slot_end

    return slots


def merge_adjacent(
    base_slots: list[Slot],
    *,
    day: date | None = None,
    selected: bool = True,
) -> list[Slot]:
    """
    Merge runs of back-to-back slots into one slot per run.

    Pure function - no I/O.

    A slot joins the current run when its start equals the run's end. An
    isolated slot comes back as a grouped slot of the same span.
    """
    strategy = DurationStrategy.grouped()
    ordered = sorted(base_slots, key=lambda s: s.start)

    merged = []
    run: list[Slot] = []

    def close_run():
        run_day = day or run[0].start.date()
        merged.append(_make_slot(run[0].start, run[-1].end, run_day, strategy, selected))

    for slot in ordered:
        if run and slot.start != run[-1].end:
            close_run()
            run = []
        run.append(slot)

    if run:
        close_run()

    return merged


def compute_custom_duration(
    gaps: list[Interval],
    custom_minutes: int,
    *,
    day: date | None = None,
    selected: bool = True,
) -> list[Slot]:
    """Subdivide with a user-supplied duration in [5, 120] minutes."""
    strategy = DurationStrategy.custom(custom_minutes)
    return subdivide(gaps, custom_minutes, day=day, strategy=strategy, selected=selected)


def slots_for_strategy(
    gaps: list[Interval],
    strategy: DurationStrategy,
    *,
    day: date | None = None,
    selected: bool = True,
) -> list[Slot]:
    """Dispatch to the operation that implements strategy."""
    match strategy.kind:
        case StrategyKind.GROUPED:
            base = subdivide(gaps, GROUPED_BASE_MINUTES, day=day, selected=selected)
            return merge_adjacent(base, day=day, selected=selected)
        case StrategyKind.CUSTOM:
            return compute_custom_duration(gaps, strategy.minutes, day=day, selected=selected)
        case StrategyKind.FIXED:
            return subdivide(gaps, strategy.minutes, day=day, strategy=strategy, selected=selected)


def order_strategies(strategies: list[DurationStrategy]) -> list[DurationStrategy]:
    """Drop repeated strategies and order them grouped, fixed, custom."""
    unique: list[DurationStrategy] = []
    for strategy in strategies:
        if strategy not in unique:
            unique.append(strategy)
    return sorted(unique, key=lambda s: _KIND_ORDER[s.kind])


def aggregate(
    day: date,
    strategies: list[DurationStrategy],
    busy_intervals: list[Interval],
    window: Interval,
    *,
    selected: bool = True,
) -> DayAvailability:
    """
    Compute one day's availability for every requested strategy.

    Pure function - no I/O.

    Gaps are computed once. Each strategy's slots are concatenated (grouped,
    then fixed, then custom) and stably sorted by start, so slots starting at
    the same instant keep that order. Overlap between strategies is expected.
    An empty busy_intervals list means the whole window is free.
    """
    if not strategies:
        raise InvalidArgumentError("At least one duration strategy is required")

    gaps = compute_free_gaps(window, busy_intervals)

    slots: list[Slot] = []
    for strategy in order_strategies(strategies):
        slots.extend(slots_for_strategy(gaps, strategy, day=day, selected=selected))

    slots.sort(key=lambda s: s.start)
    return DayAvailability(date=day, slots=slots)
