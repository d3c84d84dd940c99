"""Tests for the calendar helpers used by the UI layer."""

from datetime import date, datetime, timezone

import pytest

from calendar_utils import (
    add_person,
    common_slots,
    day_summary,
    has_day_slot,
    is_day_available,
    leading_blanks,
    month_days,
    remove_person,
    set_month,
    shift_month,
    toggle_day_slot,
)
from exceptions import LastPersonError, PersonNotFoundError
from slot_vocabulary import DaySlot
from state_model import LogicalState, Person, SlotKey

MARCH = datetime(2025, 3, 1, tzinfo=timezone.utc)
DAY = date(2025, 3, 15)


def make_state():
    return LogicalState(MARCH, [
        Person("Alice", {SlotKey(DAY, DaySlot.AM), SlotKey(DAY, DaySlot.PM)}),
        Person("Bob", {SlotKey(DAY, DaySlot.PM)}),
    ])


class TestMonthGrid:
    def test_month_days(self):
        days = month_days(MARCH)
        assert len(days) == 31
        assert days[0] == date(2025, 3, 1)
        assert days[-1] == date(2025, 3, 31)

    def test_leap_february(self):
        assert len(month_days(datetime(2024, 2, 1, tzinfo=timezone.utc))) == 29
        assert len(month_days(datetime(2025, 2, 1, tzinfo=timezone.utc))) == 28

    def test_leading_blanks(self):
        assert leading_blanks(MARCH) == 6  # Saturday
        assert leading_blanks(datetime(2025, 6, 1, tzinfo=timezone.utc)) == 0  # Sunday


class TestSlots:
    def test_lookup(self):
        state = make_state()
        assert has_day_slot(state, 0, DAY, DaySlot.AM)
        assert not has_day_slot(state, 1, DAY, DaySlot.AM)
        assert is_day_available(state, 1, DAY)
        assert not is_day_available(state, 1, date(2025, 3, 16))

    def test_toggle_on_and_off(self):
        state = make_state()
        on = toggle_day_slot(state, 1, DAY, DaySlot.AM)
        assert has_day_slot(on, 1, DAY, DaySlot.AM)
        off = toggle_day_slot(on, 1, DAY, DaySlot.AM)
        assert off == state

    def test_toggle_does_not_touch_input(self):
        state = make_state()
        toggle_day_slot(state, 0, DAY, DaySlot.AM)
        assert has_day_slot(state, 0, DAY, DaySlot.AM)

    def test_unknown_person(self):
        with pytest.raises(PersonNotFoundError):
            toggle_day_slot(make_state(), 2, DAY, DaySlot.AM)
        with pytest.raises(PersonNotFoundError):
            has_day_slot(make_state(), -1, DAY, DaySlot.AM)


class TestPeople:
    def test_add(self):
        state = add_person(make_state(), "  Carol ")
        assert [p.name for p in state.people] == ["Alice", "Bob", "Carol"]
        assert state.total == 3

    @pytest.mark.parametrize("name", ["", "   ", "Alice"])
    def test_add_ignores_blank_and_duplicate(self, name):
        state = make_state()
        assert add_person(state, name) is state

    def test_remove_keeps_order(self):
        state = add_person(make_state(), "Carol")
        assert [p.name for p in remove_person(state, 1).people] == ["Alice", "Carol"]

    def test_remove_last_person(self):
        state = remove_person(make_state(), 0)
        with pytest.raises(LastPersonError):
            remove_person(state, 0)

    def test_remove_unknown_person(self):
        with pytest.raises(PersonNotFoundError):
            remove_person(make_state(), 5)


class TestMonthNavigation:
    @pytest.mark.parametrize("start, delta, expected", [
        (datetime(2025, 12, 1, tzinfo=timezone.utc), 1, datetime(2026, 1, 1, tzinfo=timezone.utc)),
        (datetime(2025, 1, 1, tzinfo=timezone.utc), -1, datetime(2024, 12, 1, tzinfo=timezone.utc)),
        (MARCH, 14, datetime(2026, 5, 1, tzinfo=timezone.utc)),
        (MARCH, 0, MARCH),
    ])
    def test_shift_month(self, start, delta, expected):
        state = LogicalState(start, make_state().people)
        shifted = shift_month(state, delta)
        assert shifted.base_month == expected
        assert shifted.people == state.people

    def test_set_month(self):
        assert set_month(make_state(), "2026-02").base_month == datetime(2026, 2, 1, tzinfo=timezone.utc)

    @pytest.mark.parametrize("value", ["", "nope", "2026-13", "2026-02-01"])
    def test_set_month_ignores_bad_values(self, value):
        state = make_state()
        assert set_month(state, value) is state


class TestOverall:
    def test_day_summary(self):
        summary = day_summary(make_state(), DAY)
        assert [(s.slot, s.names, s.everyone) for s in summary] == [
            (DaySlot.AM, ["Alice"], False),
            (DaySlot.PM, ["Alice", "Bob"], True),
        ]

    def test_common_slots(self):
        assert common_slots(make_state(), DAY) == [DaySlot.PM]
        assert common_slots(make_state(), date(2025, 3, 16)) == []

    def test_nobody_is_not_everyone(self):
        assert common_slots(LogicalState(MARCH), DAY) == []


class TestMonthLimits:
    @pytest.mark.parametrize("value", ["99999999999999999999-01", "10000-01", "0000-01"])
    def test_set_month_out_of_range(self, value):
        state = make_state()
        assert set_month(state, value) is state

    @pytest.mark.parametrize("delta", [10 ** 6, -(10 ** 30)])
    def test_shift_month_out_of_range(self, delta):
        with pytest.raises((ValueError, OverflowError)):
            shift_month(make_state(), delta)
