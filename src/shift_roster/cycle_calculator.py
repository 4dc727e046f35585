"""
Cycle Shift Calculator for the %60 System

Resolves the automatic 8-day rotation for any calendar date relative to a
team's cycle start date (the date of its first morning shift).
"""

import calendar
from datetime import date, timedelta
from typing import Dict, List, Optional, Tuple

from .shift_types import CYCLE_LENGTH, CYCLE_PATTERN, DateLike, ShiftType, to_date


def get_cycle_position(target_date: DateLike, cycle_start_date: DateLike) -> int:
    """Position of target_date inside the rotation, always in [0, CYCLE_LENGTH)"""
    days_diff = (to_date(target_date) - to_date(cycle_start_date)).days
    # Dates before the cycle start give a negative difference
    return ((days_diff % CYCLE_LENGTH) + CYCLE_LENGTH) % CYCLE_LENGTH


def calculate_shift_for_date(target_date: DateLike, cycle_start_date: DateLike) -> ShiftType:
    """Calculate the shift type for any given date based on cycle start"""
    return CYCLE_PATTERN[get_cycle_position(target_date, cycle_start_date)]


def generate_month_shifts(year: int, month: int, cycle_start_date: DateLike) -> Dict[int, ShiftType]:
    """Generate shifts for an entire month, keyed by day of month"""
    days_in_month = calendar.monthrange(year, month)[1]
    start = to_date(cycle_start_date)
    return {
        day: calculate_shift_for_date(date(year, month, day), start)
        for day in range(1, days_in_month + 1)
    }


def get_today_shift(cycle_start_date: DateLike, today: Optional[date] = None) -> ShiftType:
    today = today or date.today()
    return calculate_shift_for_date(today, cycle_start_date)


def get_tomorrow_shift(cycle_start_date: DateLike, today: Optional[date] = None) -> ShiftType:
    today = today or date.today()
    return calculate_shift_for_date(today + timedelta(days=1), cycle_start_date)


def get_upcoming_shifts(cycle_start_date: DateLike, days: int = 7,
                        today: Optional[date] = None) -> List[Tuple[date, ShiftType]]:
    """
    Get shifts for the next N days, starting with today.

    Args:
        cycle_start_date: First morning shift of the team
        days: Number of days to resolve
        today: Reference date; read from the clock once when omitted

    Returns:
        Ordered list of (date, shift) pairs
    """
    today = today or date.today()
    start = to_date(cycle_start_date)
    upcoming = []
    for offset in range(days):
        current = today + timedelta(days=offset)
        upcoming.append((current, calculate_shift_for_date(current, start)))
    return upcoming
