import pytest
import sys
from pathlib import Path
from datetime import date, datetime, timezone

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from shift_roster.calendar_export import (
    ERROR_WRITE_FAILED,
    create_shift_event,
    export_shifts_to_calendar,
    get_event_times,
    _fold_ical_line,
)
from shift_roster.cycle_calculator import calculate_shift_for_date
from shift_roster.shift_types import ShiftType

STAMP = datetime(2026, 1, 1, 9, 30, tzinfo=timezone.utc)


def team_60d(day):
    return calculate_shift_for_date(day, date(2025, 12, 31))


def test_event_times_for_day_shifts():
    assert get_event_times("2026-01-02", ShiftType.MORNING) == (
        datetime(2026, 1, 2, 6, 0), datetime(2026, 1, 2, 14, 0)
    )
    assert get_event_times("2026-01-02", ShiftType.NORMAL) == (
        datetime(2026, 1, 2, 9, 0), datetime(2026, 1, 2, 18, 0)
    )


def test_night_shift_ends_next_morning():
    start, end = get_event_times(date(2026, 1, 31), ShiftType.NIGHT)
    assert start == datetime(2026, 1, 31, 22, 0)
    assert end == datetime(2026, 2, 1, 6, 0)


@pytest.mark.parametrize("shift", [ShiftType.OFF, ShiftType.ANNUAL, ShiftType.SICK, ShiftType.EXCUSE])
def test_shifts_without_hours_have_no_event(shift):
    assert get_event_times("2026-01-02", shift) is None
    assert create_shift_event("2026-01-02", shift, STAMP) is None


def test_shift_event_lines():
    lines = create_shift_event(date(2026, 1, 4), ShiftType.NIGHT, STAMP)

    assert lines[0] == "BEGIN:VEVENT"
    assert lines[-1] == "END:VEVENT"
    assert "UID:2026-01-04-night@shift-roster" in lines
    assert "DTSTAMP:20260101T093000Z" in lines
    assert "DTSTART;TZID=Europe/Istanbul:20260104T220000" in lines
    assert "DTEND;TZID=Europe/Istanbul:20260105T060000" in lines
    assert "SUMMARY:Gece Vardiyası" in lines
    assert "TRIGGER:-PT60M" in lines


def test_export_range_skips_days_without_events():
    result = export_shifts_to_calendar("2025-12-31", 8, team_60d, dtstamp=STAMP)

    assert result.success
    assert result.error is None
    assert result.count == 6
    assert result.content.count("BEGIN:VEVENT") == 6
    assert result.content.startswith("BEGIN:VCALENDAR\r\n")
    assert result.content.endswith("END:VCALENDAR\r\n")
    assert "X-WR-CALNAME:TGS Vardiya" in result.content
    assert "TZID:Europe/Istanbul" in result.content


def test_export_skips_unresolved_days():
    result = export_shifts_to_calendar("2026-01-01", 5, lambda day: None, dtstamp=STAMP)
    assert result.success
    assert result.count == 0
    assert "BEGIN:VEVENT" not in result.content


def test_export_writes_file(tmp_path):
    output = tmp_path / "shifts.ics"
    result = export_shifts_to_calendar("2026-01-01", 3, team_60d, output_path=str(output), dtstamp=STAMP)

    assert result.success
    assert result.count == 3
    assert output.read_bytes().decode("utf-8") == result.content


def test_export_write_failure_reports_error(tmp_path):
    output = tmp_path / "missing" / "shifts.ics"
    result = export_shifts_to_calendar("2026-01-01", 3, team_60d, output_path=str(output), dtstamp=STAMP)

    assert not result.success
    assert result.count == 0
    assert result.error == ERROR_WRITE_FAILED


def test_long_lines_are_folded():
    line = "DESCRIPTION:" + "Çalışma " * 30
    folded = _fold_ical_line(line)

    physical = folded.split("\r\n")
    assert len(physical) > 1
    assert all(len(part.encode("utf-8")) <= 75 for part in physical)
    assert all(part.startswith(" ") for part in physical[1:])
    assert "".join(part[1:] if i else part for i, part in enumerate(physical)) == line


def test_short_lines_are_untouched():
    assert _fold_ical_line("VERSION:2.0") == "VERSION:2.0"
