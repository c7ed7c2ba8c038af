"""Tests for slot subdivision, merging and aggregation."""

from datetime import date, datetime, time
from zoneinfo import ZoneInfo

import pytest

from openslots.core.errors import InvalidArgumentError, InvalidDurationError
from openslots.core.intervals import BusyInterval, Interval, WorkingWindow, compute_free_gaps
from openslots.core.slots import (
    DurationStrategy,
    StrategyKind,
    aggregate,
    compute_custom_duration,
    format_clock,
    merge_adjacent,
    parse_strategies,
    slots_for_strategy,
    subdivide,
)

TZ = ZoneInfo("America/Toronto")


@pytest.fixture
def today():
    return date(2025, 1, 15)


@pytest.fixture
def at(today):
    def _at(hour: int, minute: int = 0) -> datetime:
        return datetime.combine(today, time(hour, minute), tzinfo=TZ)
    return _at


@pytest.fixture
def busy(at):
    def _busy(start: tuple[int, int], end: tuple[int, int], calendar: str = "work") -> BusyInterval:
        return BusyInterval(start=at(*start), end=at(*end), source_calendar_id=calendar)
    return _busy


@pytest.fixture
def window(today):
    return WorkingWindow.for_day(today, 9, 17, TZ)


def times(slots):
    return [(s.start.strftime("%H:%M"), s.end.strftime("%H:%M")) for s in slots]


class TestDurationStrategy:
    def test_tags(self):
        assert DurationStrategy.fixed(15).tag == "fixed15"
        assert DurationStrategy.fixed(60).tag == "fixed60"
        assert DurationStrategy.custom(45).tag == "custom"
        assert DurationStrategy.grouped().tag == "grouped"

    def test_grouped_uses_half_hour_grid(self):
        assert DurationStrategy.grouped().minutes == 30

    def test_fixed_rejects_non_positive(self):
        with pytest.raises(InvalidArgumentError):
            DurationStrategy.fixed(0)

    @pytest.mark.parametrize("minutes", [0, 4, 121, -5])
    def test_custom_out_of_range(self, minutes):
        with pytest.raises(InvalidDurationError):
            DurationStrategy.custom(minutes)

    @pytest.mark.parametrize("minutes", [5, 45, 120])
    def test_custom_in_range(self, minutes):
        assert DurationStrategy.custom(minutes).minutes == minutes

    def test_labels(self):
        assert DurationStrategy.fixed(30).label() == "30 min"
        assert DurationStrategy.custom(45).label() == "Custom (45 min)"
        assert DurationStrategy.grouped().label() == "Grouped"


class TestParseStrategies:
    def test_fixed_values(self):
        assert parse_strategies(["15", "60"]) == [DurationStrategy.fixed(15), DurationStrategy.fixed(60)]

    def test_both_means_30_and_60(self):
        assert parse_strategies(["both"]) == [DurationStrategy.fixed(30), DurationStrategy.fixed(60)]

    def test_custom_uses_default_minutes(self):
        assert parse_strategies(["custom"], custom_minutes=25) == [DurationStrategy.custom(25)]

    def test_custom_with_minutes(self):
        assert parse_strategies(["custom:45"]) == [DurationStrategy.custom(45)]

    def test_grouped(self):
        assert parse_strategies(["Grouped"]) == [DurationStrategy.grouped()]

    def test_repeats_dropped(self):
        assert parse_strategies(["30", "both"]) == [DurationStrategy.fixed(30), DurationStrategy.fixed(60)]

    def test_unknown_value(self):
        with pytest.raises(InvalidArgumentError):
            parse_strategies(["fortnight"])

    def test_bad_custom_minutes(self):
        with pytest.raises(InvalidDurationError):
            parse_strategies(["custom:lots"])

    def test_custom_out_of_range(self):
        with pytest.raises(InvalidDurationError):
            parse_strategies(["custom:200"])


class TestFormatClock:
    def test_morning(self, at):
        assert format_clock(at(9)) == "9:00 AM"

    def test_afternoon(self, at):
        assert format_clock(at(16, 45)) == "4:45 PM"

    def test_noon(self, at):
        assert format_clock(at(12, 30)) == "12:30 PM"


class TestSubdivide:
    def test_example_adjacent_busy_30_minutes(self, window, busy, today):
        gaps = compute_free_gaps(window, [busy((9, 30), (10, 0)), busy((10, 0), (11, 0), "personal")])
        slots = subdivide(gaps, 30, day=today)

        assert len(slots) == 13
        assert times(slots)[0] == ("09:00", "09:30")
        assert times(slots)[1] == ("11:00", "11:30")
        assert times(slots)[-1] == ("16:30", "17:00")

    def test_empty_day_60_minutes(self, window, today):
        slots = subdivide(compute_free_gaps(window, []), 60, day=today)
        assert times(slots) == [(f"{h:02d}:00", f"{h + 1:02d}:00") for h in range(9, 17)]

    @pytest.mark.parametrize("duration", [15, 25, 30, 45, 60, 90])
    def test_full_window_coverage(self, window, today, duration):
        slots = subdivide(compute_free_gaps(window, []), duration, day=today)
        assert len(slots) == 480 // duration
        assert slots[0].start == window.start
        for prev, nxt in zip(slots, slots[1:]):
            assert prev.end == nxt.start

    def test_short_trailing_gap(self, window, busy, today):
        gaps = compute_free_gaps(window, [busy((9, 0), (16, 45))])
        assert subdivide(gaps, 30, day=today) == []

        slots = subdivide(gaps, 15, day=today)
        assert len(slots) == 1
        assert slots[0].display_start == "4:45 PM"
        assert slots[0].display_end == "5:00 PM"

    def test_no_partial_trailing_slot(self, at, today):
        gap = Interval(start=at(10), end=at(10, 50))
        slots = subdivide([gap], 30, day=today)
        assert times(slots) == [("10:00", "10:30")]

    def test_slot_ids(self, at, today):
        slots = subdivide([Interval(start=at(9), end=at(10))], 30, day=today)
        assert [s.id for s in slots] == ["fixed30-2025-01-15-09:00-30", "fixed30-2025-01-15-09:30-30"]

    def test_default_selected(self, at, today):
        slots = subdivide([Interval(start=at(9), end=at(10))], 30, day=today)
        assert all(s.selected for s in slots)

    def test_selected_false(self, at, today):
        slots = subdivide([Interval(start=at(9), end=at(10))], 30, day=today, selected=False)
        assert not any(s.selected for s in slots)

    def test_day_defaults_to_gap_date(self, at):
        slots = subdivide([Interval(start=at(9), end=at(9, 30))], 30)
        assert slots[0].id == "fixed30-2025-01-15-09:00-30"

    def test_rejects_non_positive_duration(self, at):
        with pytest.raises(InvalidArgumentError):
            subdivide([Interval(start=at(9), end=at(10))], 0)

    def test_slot_lengths_are_exact(self, window, busy, today):
        gaps = compute_free_gaps(window, [busy((10, 10), (11, 5)), busy((13, 0), (14, 20))])
        for slot in subdivide(gaps, 25, day=today):
            assert slot.duration_minutes() == 25

    def test_dst_gap_uses_absolute_minutes(self):
        day = date(2025, 3, 9)
        window = WorkingWindow.for_day(day, 0, 5, TZ)
        slots = subdivide(compute_free_gaps(window, []), 60, day=day)

        assert len(slots) == 4
        assert [s.display_start for s in slots] == ["12:00 AM", "1:00 AM", "3:00 AM", "4:00 AM"]
        assert all(s.duration_minutes() == 60 for s in slots)

    def test_fall_back_hour_slots_keep_distinct_ids(self):
        # 01:00-02:00 happens twice on 2026-11-01 in Toronto
        day = date(2026, 11, 1)
        window = WorkingWindow.for_day(day, 0, 4, TZ)
        slots = subdivide(compute_free_gaps(window, []), 30, day=day)

        ids = [s.id for s in slots]
        assert len(slots) == 10
        assert len(set(ids)) == 10
        assert "fixed30-2026-11-01-01:00-0400-30" in ids
        assert "fixed30-2026-11-01-01:00-0500-30" in ids
        assert "fixed30-2026-11-01-00:30-30" in ids


class TestMergeAdjacent:
    def test_contiguous_block_becomes_one_slot(self, at, today):
        base = subdivide([Interval(start=at(9), end=at(12))], 30, day=today)
        merged = merge_adjacent(base, day=today)

        assert len(merged) == 1
        assert times(merged) == [("09:00", "12:00")]
        assert merged[0].duration_minutes() == 180
        assert merged[0].id == "grouped-2025-01-15-09:00-180"

    def test_isolated_half_hour_not_merged(self, window, busy, today):
        gaps = compute_free_gaps(window, [busy((9, 0), (10, 0)), busy((10, 30), (11, 30))])
        merged = slots_for_strategy(gaps, DurationStrategy.grouped(), day=today)

        assert times(merged) == [("10:00", "10:30"), ("11:30", "17:00")]
        assert merged[0].id == "grouped-2025-01-15-10:00-30"

    def test_single_slot_is_noop(self, at, today):
        base = subdivide([Interval(start=at(14), end=at(14, 30))], 30, day=today)
        merged = merge_adjacent(base, day=today)
        assert times(merged) == times(base)
        assert merged[0].strategy == DurationStrategy.grouped()

    def test_empty_input(self):
        assert merge_adjacent([]) == []

    def test_unsorted_input_is_ordered(self, at, today):
        base = subdivide([Interval(start=at(9), end=at(10)), Interval(start=at(13), end=at(14))], 30, day=today)
        merged = merge_adjacent(list(reversed(base)), day=today)
        assert times(merged) == [("09:00", "10:00"), ("13:00", "14:00")]

    def test_gap_between_base_slots_splits_runs(self, window, busy, today):
        # The base grid restarts at 10:20 and drops the last 10 minutes
        gaps = compute_free_gaps(window, [busy((10, 0), (10, 20))])
        merged = slots_for_strategy(gaps, DurationStrategy.grouped(), day=today)
        assert times(merged) == [("09:00", "10:00"), ("10:20", "16:50")]


class TestComputeCustomDuration:
    def test_subdivides_with_custom_minutes(self, at, today):
        slots = compute_custom_duration([Interval(start=at(9), end=at(10, 40))], 45, day=today)
        assert times(slots) == [("09:00", "09:45"), ("09:45", "10:30")]
        assert slots[0].id == "custom-2025-01-15-09:00-45"

    @pytest.mark.parametrize("minutes", [0, 3, 150])
    def test_rejects_out_of_range(self, at, minutes):
        with pytest.raises(InvalidDurationError):
            compute_custom_duration([Interval(start=at(9), end=at(10))], minutes)


class TestAggregate:
    def test_single_strategy(self, window, busy, today):
        day = aggregate(today, [DurationStrategy.fixed(60)], [busy((12, 0), (13, 0))], window)
        assert day.date == today
        assert times(day.slots) == [
            ("09:00", "10:00"),
            ("10:00", "11:00"),
            ("11:00", "12:00"),
            ("13:00", "14:00"),
            ("14:00", "15:00"),
            ("15:00", "16:00"),
            ("16:00", "17:00"),
        ]

    def test_concatenates_and_sorts_strategies(self, window, today):
        day = aggregate(today, [DurationStrategy.fixed(30), DurationStrategy.fixed(60)], [], window)
        assert len(day.slots) == 16 + 8
        starts = [s.start for s in day.slots]
        assert starts == sorted(starts)

    def test_same_start_order_grouped_fixed_custom(self, window, today):
        strategies = [DurationStrategy.custom(30), DurationStrategy.fixed(30), DurationStrategy.grouped()]
        day = aggregate(today, strategies, [], window)
        first_tags = [s.strategy.tag for s in day.slots[:3]]
        assert first_tags == ["grouped", "fixed30", "custom"]

    def test_ids_are_unique_per_day(self, window, today):
        strategies = [
            DurationStrategy.fixed(30),
            DurationStrategy.fixed(30),
            DurationStrategy.custom(30),
            DurationStrategy.grouped(),
        ]
        day = aggregate(today, strategies, [], window)
        ids = [s.id for s in day.slots]
        assert len(ids) == len(set(ids))

    def test_idempotent_ids(self, window, busy, today):
        intervals = [busy((10, 0), (11, 0)), busy((14, 15), (15, 0))]
        strategies = [DurationStrategy.fixed(30), DurationStrategy.grouped(), DurationStrategy.custom(20)]
        first = aggregate(today, strategies, intervals, window)
        second = aggregate(today, strategies, intervals, window)
        assert [s.id for s in first.slots] == [s.id for s in second.slots]

    def test_no_slot_overlaps_busy(self, window, busy, today):
        intervals = [busy((9, 10), (9, 50)), busy((11, 0), (12, 15)), busy((12, 0), (13, 0)), busy((16, 40), (18, 0))]
        strategies = [DurationStrategy.fixed(15), DurationStrategy.fixed(60), DurationStrategy.grouped()]
        day = aggregate(today, strategies, intervals, window)
        assert day.slots
        for slot in day.slots:
            for b in intervals:
                clipped = b.clip(window)
                assert slot.end <= clipped.start or slot.start >= clipped.end

    def test_empty_busy_means_day_is_free(self, window, today):
        day = aggregate(today, [DurationStrategy.grouped()], [], window)
        assert times(day.slots) == [("09:00", "17:00")]

    def test_requires_a_strategy(self, window, today):
        with pytest.raises(InvalidArgumentError):
            aggregate(today, [], [], window)

    def test_slots_for(self, window, today):
        day = aggregate(today, [DurationStrategy.fixed(60), DurationStrategy.grouped()], [], window)
        assert len(day.slots_for(DurationStrategy.fixed(60))) == 8
        assert len(day.slots_for(DurationStrategy.grouped())) == 1

    def test_strategy_kind_recorded(self, window, today):
        day = aggregate(today, [DurationStrategy.custom(40)], [], window)
        assert all(s.strategy.kind is StrategyKind.CUSTOM for s in day.slots)
