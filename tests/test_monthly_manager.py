import pytest
from datetime import date
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from shift_roster.monthly_manager import (
    clear_shift_in_monthly_data,
    get_month_completion_percentage,
    get_month_key,
    get_next_shift_type,
    get_shift_from_monthly_data,
    get_today_shift_30,
    get_tomorrow_shift_30,
    is_month_complete,
    merge_monthly_data,
    set_shift_in_monthly_data,
)
from shift_roster.shift_types import SHIFT_ORDER, ShiftType


@pytest.fixture
def monthly_data():
    return {
        "2026-01": {1: ShiftType.MORNING, 2: ShiftType.EVENING, 15: ShiftType.SICK},
        "2026-02": {1: ShiftType.NIGHT},
    }


def test_month_key():
    assert get_month_key("2026-01-15") == "2026-01"
    assert get_month_key(date(2025, 12, 31)) == "2025-12"


def test_lookup_returns_stored_shift(monthly_data):
    assert get_shift_from_monthly_data("2026-01-15", monthly_data) == ShiftType.SICK
    assert get_shift_from_monthly_data(date(2026, 2, 1), monthly_data) == ShiftType.NIGHT


def test_lookup_returns_none_for_missing_day_or_month(monthly_data):
    assert get_shift_from_monthly_data("2026-01-03", monthly_data) is None
    assert get_shift_from_monthly_data("2026-03-01", monthly_data) is None
    assert get_shift_from_monthly_data("2026-03-01", {}) is None


def test_set_only_changes_one_cell(monthly_data):
    updated = set_shift_in_monthly_data("2026-01-02", ShiftType.NIGHT, monthly_data)

    assert updated["2026-01"][2] == ShiftType.NIGHT
    assert updated["2026-01"][1] == ShiftType.MORNING
    assert updated["2026-01"][15] == ShiftType.SICK
    assert updated["2026-02"] == {1: ShiftType.NIGHT}
    # Input untouched
    assert monthly_data["2026-01"][2] == ShiftType.EVENING


def test_set_creates_new_month(monthly_data):
    updated = set_shift_in_monthly_data("2026-03-10", ShiftType.ANNUAL, monthly_data)
    assert updated["2026-03"] == {10: ShiftType.ANNUAL}
    assert "2026-03" not in monthly_data


def test_clear_removes_cell_and_empty_month(monthly_data):
    updated = clear_shift_in_monthly_data("2026-02-01", monthly_data)
    assert "2026-02" not in updated
    assert "2026-02" in monthly_data

    unchanged = clear_shift_in_monthly_data("2026-01-20", monthly_data)
    assert unchanged == monthly_data


def test_merge_overwrites_days_and_keeps_the_rest(monthly_data):
    incoming = {"2026-01": {2: ShiftType.OFF, 3: ShiftType.OFF}, "2026-04": {1: ShiftType.MORNING}}
    merged = merge_monthly_data(monthly_data, incoming)

    assert merged["2026-01"] == {
        1: ShiftType.MORNING,
        2: ShiftType.OFF,
        3: ShiftType.OFF,
        15: ShiftType.SICK,
    }
    assert merged["2026-02"] == {1: ShiftType.NIGHT}
    assert merged["2026-04"] == {1: ShiftType.MORNING}
    assert monthly_data["2026-01"][2] == ShiftType.EVENING


def test_month_completion():
    february = {"2026-02": {day: ShiftType.OFF for day in range(1, 8)}}
    assert get_month_completion_percentage(2026, 2, february) == 25
    assert not is_month_complete(2026, 2, february)

    january = {"2026-01": {1: ShiftType.OFF}}
    assert get_month_completion_percentage(2026, 1, january) == 3
    half = {"2026-01": {day: ShiftType.OFF for day in range(1, 17)}}
    assert get_month_completion_percentage(2026, 1, half) == 52

    full = {"2026-02": {day: ShiftType.MORNING for day in range(1, 29)}}
    assert is_month_complete(2026, 2, full)
    assert get_month_completion_percentage(2026, 2, full) == 100


def test_month_completion_without_data():
    assert get_month_completion_percentage(2026, 5, {}) == 0
    assert not is_month_complete(2026, 5, {})


def test_next_shift_type_cycles_through_all_types():
    assert get_next_shift_type(None) == ShiftType.MORNING
    assert get_next_shift_type(ShiftType.MORNING) == ShiftType.EVENING
    assert get_next_shift_type(ShiftType.EXCUSE) == ShiftType.MORNING

    seen = []
    current = None
    for _ in range(len(SHIFT_ORDER)):
        current = get_next_shift_type(current)
        seen.append(current)
    assert seen == SHIFT_ORDER


def test_today_and_tomorrow(monthly_data):
    assert get_today_shift_30(monthly_data, today=date(2026, 1, 1)) == ShiftType.MORNING
    assert get_tomorrow_shift_30(monthly_data, today=date(2026, 1, 1)) == ShiftType.EVENING
    assert get_tomorrow_shift_30(monthly_data, today=date(2026, 1, 31)) == ShiftType.NIGHT
    assert get_today_shift_30({}) is None
