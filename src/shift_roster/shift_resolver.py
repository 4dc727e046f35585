"""
Effective Shift Resolver

Combines manual overrides with whichever scheduling regime is active.
Every function here is a pure function of its arguments; persistence is
the caller's concern.
"""

import logging
from datetime import date, timedelta
from typing import List, Optional, Tuple

from .cycle_calculator import calculate_shift_for_date
from .monthly_manager import get_shift_from_monthly_data
from .shift_types import DateLike, ActiveSchedule, ShiftOverrides, ShiftType, to_date
from .team_matcher import get_teams_with_shift

logger = logging.getLogger(__name__)


def resolve_effective_shift(target_date: DateLike, active_schedule: Optional[ActiveSchedule],
                            overrides: ShiftOverrides) -> Optional[ShiftType]:
    """
    Resolve the shift that applies on target_date.

    Precedence:
        1. A manual override for the date
        2. The %60 rotation when the automatic regime is active
        3. The entered roster when the manual regime is active (may be None)
        4. None when no schedule is configured
    """
    day = to_date(target_date)

    override = overrides.get(day.isoformat())
    if override is not None:
        return override

    if active_schedule is None:
        return None

    if active_schedule.is_automatic:
        if active_schedule.cycle_start_date is None:
            logger.warning("Automatic schedule has no cycle start date")
            return None
        return calculate_shift_for_date(day, active_schedule.cycle_start_date)

    if active_schedule.is_manual:
        return get_shift_from_monthly_data(day, active_schedule.monthly_data)

    return None


def resolve_shift_range(start_date: DateLike, days: int, active_schedule: Optional[ActiveSchedule],
                        overrides: ShiftOverrides) -> List[Tuple[date, Optional[ShiftType]]]:
    """Resolve consecutive days starting at start_date"""
    start = to_date(start_date)
    result = []
    for offset in range(days):
        current = start + timedelta(days=offset)
        result.append((current, resolve_effective_shift(current, active_schedule, overrides)))
    return result


def get_matching_teams_for_date(target_date: DateLike, active_schedule: Optional[ActiveSchedule],
                                overrides: ShiftOverrides) -> List[str]:
    """%60 teams sharing the manual-regime user's shift on target_date"""
    if active_schedule is None or not active_schedule.is_manual:
        return []
    shift = resolve_effective_shift(target_date, active_schedule, overrides)
    if shift is None:
        return []
    return get_teams_with_shift(target_date, shift)
