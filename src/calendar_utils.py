"""Pure helpers the UI layer uses to read and edit a logical state.

None of these mutate their input; edits return a new LogicalState.
"""

import calendar
from datetime import date, datetime, timezone
from typing import List, NamedTuple

from exceptions import LastPersonError, PersonNotFoundError
from slot_vocabulary import DaySlot
from state_model import LogicalState, Person, SlotKey


class SlotSummary(NamedTuple):
    slot: DaySlot
    names: List[str]
    everyone: bool


def month_days(base_month: datetime) -> List[date]:
    """Every date of the (UTC) month base_month falls in."""
    year, month = base_month.year, base_month.month
    _, days = calendar.monthrange(year, month)
    return [date(year, month, day) for day in range(1, days + 1)]


def leading_blanks(base_month: datetime) -> int:
    """Empty cells before the 1st in a Sunday-first week grid."""
    return (date(base_month.year, base_month.month, 1).weekday() + 1) % 7


def format_date_key(day: date) -> str:
    return day.isoformat()


def _person(state: LogicalState, person_index: int) -> Person:
    if not 0 <= person_index < len(state.people):
        raise PersonNotFoundError(f"Person {person_index} not found.")
    return state.people[person_index]


def is_day_available(state: LogicalState, person_index: int, day: date) -> bool:
    """True if the person picked any slot on day."""
    return any(key.date == day for key in _person(state, person_index).available_time)


def has_day_slot(state: LogicalState, person_index: int, day: date, slot: DaySlot) -> bool:
    return SlotKey(day, DaySlot(slot)) in _person(state, person_index).available_time


def toggle_day_slot(state: LogicalState, person_index: int, day: date, slot: DaySlot) -> LogicalState:
    """Select the slot if it is free for the person, clear it otherwise."""
    person = _person(state, person_index)
    key = SlotKey(day, DaySlot(slot))
    people = list(state.people)
    people[person_index] = Person(person.name, person.available_time ^ {key})
    return state.with_people(people)


def add_person(state: LogicalState, name: str) -> LogicalState:
    """Append a person with no availability. Blank and duplicate names are ignored."""
    name = name.strip()
    if not name or any(p.name == name for p in state.people):
        return state
    return state.with_people(state.people + (Person(name),))


def remove_person(state: LogicalState, person_index: int) -> LogicalState:
    _person(state, person_index)
    if len(state.people) <= 1:
        raise LastPersonError("Cannot remove the only person.")
    return state.with_people(p for i, p in enumerate(state.people) if i != person_index)


def shift_month(state: LogicalState, delta: int) -> LogicalState:
    """Move the shown month by delta months. Selections are kept."""
    index = state.base_month.year * 12 + state.base_month.month - 1 + delta
    year, month = divmod(index, 12)
    return LogicalState(datetime(year, month + 1, 1, tzinfo=timezone.utc), state.people)


def set_month(state: LogicalState, value: str) -> LogicalState:
    """Show the month given as "YYYY-MM". Unparseable values leave state unchanged."""
    try:
        year, month = (int(part) for part in value.split("-"))
        base_month = datetime(year, month, 1, tzinfo=timezone.utc)
    except (ValueError, OverflowError):
        return state
    return LogicalState(base_month, state.people)


def day_summary(state: LogicalState, day: date) -> List[SlotSummary]:
    """Who is free in each slot of day, and whether that is everyone."""
    summary = []
    for slot in DaySlot:
        key = SlotKey(day, slot)
        names = [p.name for p in state.people if key in p.available_time]
        everyone = bool(state.people) and len(names) == len(state.people)
        summary.append(SlotSummary(slot, names, everyone))
    return summary


def common_slots(state: LogicalState, day: date) -> List[DaySlot]:
    """Slots of day in which every person is available."""
    return [s.slot for s in day_summary(state, day) if s.everyone]
