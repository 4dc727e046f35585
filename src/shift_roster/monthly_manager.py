"""
Monthly Shift Manager for the %30 System

Lookup and immutable update helpers over the sparse month -> day -> shift
mapping that holds a manually entered roster.
"""

import calendar
import math
from datetime import date, timedelta
from typing import Optional

from .shift_types import SHIFT_ORDER, DateLike, MonthlyShiftData, ShiftType, to_date


def get_month_key(value: DateLike) -> str:
    """Get the "YYYY-MM" month key of a date"""
    return to_date(value).strftime("%Y-%m")


def _month_key(year: int, month: int) -> str:
    return f"{year}-{month:02d}"


def get_shift_from_monthly_data(target_date: DateLike,
                                monthly_data: MonthlyShiftData) -> Optional[ShiftType]:
    """Get the stored shift for a date, or None when nothing was entered"""
    day = to_date(target_date)
    return monthly_data.get(get_month_key(day), {}).get(day.day)


def set_shift_in_monthly_data(target_date: DateLike, shift: ShiftType,
                              monthly_data: MonthlyShiftData) -> MonthlyShiftData:
    """Return new monthly data with a single (month, day) cell replaced"""
    day = to_date(target_date)
    month_key = get_month_key(day)
    updated = dict(monthly_data)
    updated[month_key] = {**monthly_data.get(month_key, {}), day.day: shift}
    return updated


def clear_shift_in_monthly_data(target_date: DateLike,
                                monthly_data: MonthlyShiftData) -> MonthlyShiftData:
    """Return new monthly data with a single (month, day) cell removed"""
    day = to_date(target_date)
    month_key = get_month_key(day)
    if day.day not in monthly_data.get(month_key, {}):
        return dict(monthly_data)
    updated = dict(monthly_data)
    month_data = {d: s for d, s in monthly_data[month_key].items() if d != day.day}
    if month_data:
        updated[month_key] = month_data
    else:
        del updated[month_key]
    return updated


def merge_monthly_data(base: MonthlyShiftData, incoming: MonthlyShiftData) -> MonthlyShiftData:
    """Deep merge incoming into base: per-day overwrite, other days preserved"""
    merged = dict(base)
    for month_key, days in incoming.items():
        merged[month_key] = {**base.get(month_key, {}), **days}
    return merged


def is_month_complete(year: int, month: int, monthly_data: MonthlyShiftData) -> bool:
    """Check if every day of the month has an entry"""
    days_in_month = calendar.monthrange(year, month)[1]
    month_data = monthly_data.get(_month_key(year, month))
    if not month_data:
        return False
    return all(day in month_data for day in range(1, days_in_month + 1))


def get_month_completion_percentage(year: int, month: int, monthly_data: MonthlyShiftData) -> int:
    """Get the rounded percentage of days in the month that have an entry"""
    days_in_month = calendar.monthrange(year, month)[1]
    month_data = monthly_data.get(_month_key(year, month))
    if not month_data:
        return 0
    filled_days = sum(1 for day in range(1, days_in_month + 1) if day in month_data)
    return math.floor(filled_days * 100 / days_in_month + 0.5)


def get_next_shift_type(current: Optional[ShiftType]) -> ShiftType:
    """Cycle to the next shift type (tap-to-change entry)"""
    if current is None:
        return SHIFT_ORDER[0]
    index = SHIFT_ORDER.index(current)
    return SHIFT_ORDER[(index + 1) % len(SHIFT_ORDER)]


def get_today_shift_30(monthly_data: MonthlyShiftData, today: Optional[date] = None) -> Optional[ShiftType]:
    today = today or date.today()
    return get_shift_from_monthly_data(today, monthly_data)


def get_tomorrow_shift_30(monthly_data: MonthlyShiftData, today: Optional[date] = None) -> Optional[ShiftType]:
    today = today or date.today()
    return get_shift_from_monthly_data(today + timedelta(days=1), monthly_data)
