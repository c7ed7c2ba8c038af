"""Selection state over computed availability - no I/O dependencies.

Mutators flip flags on the existing Slot objects and return the same list,
so callers can chain them or keep using their own reference.
"""

from datetime import date
from enum import Enum
from typing import Iterator

from .slots import DayAvailability, Slot


class SelectionPolicy(Enum):
    """What happens to user selections when availability is recomputed."""

    RESET = "reset"
    PRESERVE = "preserve"


def iter_slots(availability: list[DayAvailability]) -> Iterator[Slot]:
    for day in availability:
        yield from day.slots


def find_slot(availability: list[DayAvailability], slot_id: str) -> Slot | None:
    for slot in iter_slots(availability):
        if slot.id == slot_id:
            return slot
    return None


def toggle_selection(availability: list[DayAvailability], slot_id: str) -> list[DayAvailability]:
    """Flip one slot's flag. Unknown IDs are ignored."""
    slot = find_slot(availability, slot_id)
    if slot is not None:
        slot.selected = not slot.selected
    return availability


def toggle_day(availability: list[DayAvailability], target_date: date) -> list[DayAvailability]:
    """Deselect a fully selected day, otherwise select all of it."""
    for day in availability:
        if day.date != target_date:
            continue
        all_selected = all(s.selected for s in day.slots)
        for slot in day.slots:
            slot.selected = not all_selected
    return availability


def select_all(availability: list[DayAvailability]) -> list[DayAvailability]:
    for slot in iter_slots(availability):
        slot.selected = True
    return availability


def deselect_all(availability: list[DayAvailability]) -> list[DayAvailability]:
    for slot in iter_slots(availability):
        slot.selected = False
    return availability


def selected_slots(availability: list[DayAvailability]) -> list[DayAvailability]:
    """
    Project to selected slots per date.

    Dates left with no selected slot are omitted. The returned days are new
    objects; the slots are shared with the input.
    """
    projected = []
    for day in availability:
        chosen = day.selected()
        if chosen:
            projected.append(DayAvailability(date=day.date, slots=chosen))
    return projected


def restore_selection(
    availability: list[DayAvailability],
    previous: list[DayAvailability],
) -> list[DayAvailability]:
    """Copy flags from previous slots with the same ID onto availability."""
    flags = {slot.id: slot.selected for slot in iter_slots(previous)}
    for slot in iter_slots(availability):
        if slot.id in flags:
            slot.selected = flags[slot.id]
    return availability
