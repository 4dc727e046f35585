"""
Team Matcher

Tells a %30 worker which %60 teams are working the same shift on a given
day. Purely informational, no side effects.
"""

from typing import Dict, List, Mapping

from .cycle_calculator import calculate_shift_for_date
from .shift_types import TEAM_60_CYCLE_STARTS, DateLike, ShiftType, to_date


def get_teams_with_shift(target_date: DateLike, target_shift: ShiftType,
                         team_cycle_starts: Mapping[str, DateLike] = TEAM_60_CYCLE_STARTS) -> List[str]:
    """Get all %60 teams working target_shift on target_date, in configuration order"""
    day = to_date(target_date)
    return [
        team for team, cycle_start in team_cycle_starts.items()
        if calculate_shift_for_date(day, cycle_start) == target_shift
    ]


def get_all_team_shifts(target_date: DateLike,
                        team_cycle_starts: Mapping[str, DateLike] = TEAM_60_CYCLE_STARTS) -> Dict[str, ShiftType]:
    """Get every %60 team's shift on target_date"""
    day = to_date(target_date)
    return {
        team: calculate_shift_for_date(day, cycle_start)
        for team, cycle_start in team_cycle_starts.items()
    }


def format_matching_teams(teams: List[str]) -> str:
    """Format matching teams for display, e.g. "60A, 60C ile birlikte" """
    if not teams:
        return ""
    return f"{', '.join(teams)} ile birlikte"
