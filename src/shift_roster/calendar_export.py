"""
Calendar Export

Turns resolved shifts into an iCalendar (RFC 5545) document that any
calendar application can import. Only shifts with working hours become
events; off days and leave are skipped.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Tuple

from .shift_types import SHIFT_DISPLAY, SHIFT_TIMES, DateLike, ShiftType, to_date

logger = logging.getLogger(__name__)

CALENDAR_NAME = "TGS Vardiya"
CALENDAR_COLOR = "#3B82F6"
TIMEZONE_ID = "Europe/Istanbul"
ALARM_MINUTES_BEFORE = 60

ERROR_WRITE_FAILED = "Takvim dosyası yazılamadı"


@dataclass
class ExportResult:
    success: bool
    count: int
    content: str = ""
    error: Optional[str] = None


def _escape_text(value: str) -> str:
    return (
        value.replace("\\", "\\\\")
        .replace("\r\n", "\n")
        .replace("\r", "\n")
        .replace("\n", "\\n")
        .replace(",", "\\,")
        .replace(";", "\\;")
    )


def _format_local(dt: datetime) -> str:
    return dt.strftime("%Y%m%dT%H%M%S")


def _format_dtstamp(dt: datetime) -> str:
    utc = dt.astimezone(timezone.utc).replace(microsecond=0)
    return utc.strftime("%Y%m%dT%H%M%SZ")


def _fold_ical_line(line: str) -> str:
    first_limit = 75
    next_limit = 74  # continuation lines start with a single space

    segments: List[str] = []
    current = ""
    current_limit = first_limit
    for ch in line:
        if current and len((current + ch).encode("utf-8")) > current_limit:
            segments.append(current)
            current = ch
            current_limit = next_limit
        else:
            current += ch
    if current:
        segments.append(current)

    if not segments:
        return line
    return "\r\n ".join(segments)


def _fold_lines(lines: Iterable[str]) -> str:
    return "\r\n".join(_fold_ical_line(line) for line in lines) + "\r\n"


def _parse_hhmm(value: str) -> time:
    hour, minute = (int(part) for part in value.split(":"))
    return time(hour, minute)


def get_event_times(day: DateLike, shift: ShiftType) -> Optional[Tuple[datetime, datetime]]:
    """Local start/end of a shift on a day, or None for shifts without hours"""
    times = SHIFT_TIMES[shift]
    if times is None:
        return None

    day = to_date(day)
    start = datetime.combine(day, _parse_hhmm(times.start))
    end = datetime.combine(day, _parse_hhmm(times.end))

    # Night shift ends the next morning
    if times.crosses_midnight:
        end += timedelta(days=1)

    return start, end


def create_shift_event(day: DateLike, shift: ShiftType, dtstamp: datetime) -> Optional[List[str]]:
    """Build the VEVENT lines for one shift, None when the shift has no hours"""
    event_times = get_event_times(day, shift)
    if event_times is None:
        return None

    day = to_date(day)
    start, end = event_times
    label = SHIFT_DISPLAY[shift].label
    notes = f"{CALENDAR_NAME} - {label}\n{day.strftime('%d.%m.%Y')}"

    return [
        "BEGIN:VEVENT",
        f"UID:{day.isoformat()}-{shift.value}@shift-roster",
        f"DTSTAMP:{_format_dtstamp(dtstamp)}",
        f"DTSTART;TZID={TIMEZONE_ID}:{_format_local(start)}",
        f"DTEND;TZID={TIMEZONE_ID}:{_format_local(end)}",
        f"SUMMARY:{_escape_text(f'{label} Vardiyası')}",
        f"DESCRIPTION:{_escape_text(notes)}",
        "BEGIN:VALARM",
        "ACTION:DISPLAY",
        f"TRIGGER:-PT{ALARM_MINUTES_BEFORE}M",
        f"DESCRIPTION:{_escape_text(label)}",
        "END:VALARM",
        "END:VEVENT",
    ]


def _calendar_header(cal_name: str) -> List[str]:
    return [
        "BEGIN:VCALENDAR",
        "VERSION:2.0",
        "PRODID:-//ShiftRoster//TR",
        "CALSCALE:GREGORIAN",
        "METHOD:PUBLISH",
        f"X-WR-CALNAME:{_escape_text(cal_name)}",
        f"X-APPLE-CALENDAR-COLOR:{CALENDAR_COLOR}",
        # Turkey has stayed on UTC+3 all year since 2016
        "BEGIN:VTIMEZONE",
        f"TZID:{TIMEZONE_ID}",
        "BEGIN:STANDARD",
        "DTSTART:19700101T000000",
        "TZOFFSETFROM:+0300",
        "TZOFFSETTO:+0300",
        "TZNAME:+03",
        "END:STANDARD",
        "END:VTIMEZONE",
    ]


def export_shifts_to_calendar(
    start_date: DateLike,
    days: int,
    get_shift_for_date: Callable[[date], Optional[ShiftType]],
    output_path: Optional[str] = None,
    cal_name: str = CALENDAR_NAME,
    dtstamp: Optional[datetime] = None,
) -> ExportResult:
    """
    Export the shifts of a date range as an iCalendar document.

    Args:
        start_date: First day of the range
        days: Number of days to export
        get_shift_for_date: Resolves the effective shift of a day (may return None)
        output_path: When given, the document is also written to this file
        cal_name: Calendar name shown by the importing application
        dtstamp: Creation timestamp; defaults to now

    Returns:
        ExportResult with the number of events and the document text
    """
    start = to_date(start_date)
    stamp = dtstamp or datetime.now(timezone.utc)

    lines = _calendar_header(cal_name)
    exported_count = 0
    for offset in range(days):
        current = start + timedelta(days=offset)
        shift = get_shift_for_date(current)
        if shift is None:
            continue
        event = create_shift_event(current, shift, stamp)
        if event:
            lines.extend(event)
            exported_count += 1
    lines.append("END:VCALENDAR")
    content = _fold_lines(lines)

    if output_path is not None and not write_ics(output_path, content):
        return ExportResult(success=False, count=0, content=content, error=ERROR_WRITE_FAILED)

    logger.info(f"Exported {exported_count} shift events starting {start.isoformat()}")
    return ExportResult(success=True, count=exported_count, content=content)


def write_ics(output_path: str, content: str) -> bool:
    """Write an iCalendar document; failures are logged and reported as False"""
    try:
        with open(Path(output_path), "w", encoding="utf-8", newline="") as f:
            f.write(content)
        return True
    except OSError as e:
        logger.error(f"Error writing calendar file {output_path}: {e}", exc_info=True)
        return False
