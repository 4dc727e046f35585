"""
Shift Types and Static Lookups for the Shift Roster

Defines the closed set of shift types, the two scheduling regimes, the
%60 rotation pattern with its predefined team anchors, and the display
and working-time metadata keyed by shift type.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Dict, Optional, Tuple, Union


class ShiftType(Enum):
    MORNING = "morning"
    EVENING = "evening"
    NIGHT = "night"
    OFF = "off"
    ANNUAL = "annual"
    TRAINING = "training"
    NORMAL = "normal"
    SICK = "sick"
    EXCUSE = "excuse"


class ShiftSystem(Enum):
    """Scheduling regime the user works under"""
    SYSTEM_60 = "system60"  # automatic 8-day rotation
    SYSTEM_30 = "system30"  # manually entered monthly roster


DateLike = Union[date, datetime, str]

# {"2026-01": {1: ShiftType.MORNING, 2: ShiftType.EVENING, ...}}
MonthlyShiftData = Dict[str, Dict[int, ShiftType]]

# {"2026-01-15": ShiftType.SICK}
ShiftOverrides = Dict[str, ShiftType]


CYCLE_PATTERN: Tuple[ShiftType, ...] = (
    ShiftType.MORNING, ShiftType.MORNING,
    ShiftType.EVENING, ShiftType.EVENING,
    ShiftType.NIGHT, ShiftType.NIGHT,
    ShiftType.OFF, ShiftType.OFF,
)

CYCLE_LENGTH = len(CYCLE_PATTERN)

TEAMS_60 = ("60A", "60B", "60C", "60D")
TEAMS_30 = ("30A", "30B", "30C", "30D")

# First morning shift of each %60 team
TEAM_60_CYCLE_STARTS: Dict[str, date] = {
    "60A": date(2026, 1, 6),
    "60B": date(2026, 1, 4),
    "60C": date(2026, 1, 2),
    "60D": date(2025, 12, 31),
}

SHIFT_ORDER = list(ShiftType)


@dataclass(frozen=True)
class ShiftDisplayInfo:
    """Display metadata for a shift type"""
    shift_type: ShiftType
    label: str
    label_short: str
    color: str
    text_color: str
    icon: str


@dataclass(frozen=True)
class ShiftTime:
    """Working hours of a shift, as HH:MM strings"""
    start: str
    end: str

    @property
    def crosses_midnight(self) -> bool:
        return self.end <= self.start

    @property
    def hours(self) -> int:
        start_hour = int(self.start.split(":")[0])
        end_hour = int(self.end.split(":")[0])
        hours = end_hour - start_hour
        if hours < 0:
            hours += 24
        return hours


SHIFT_DISPLAY: Dict[ShiftType, ShiftDisplayInfo] = {
    ShiftType.MORNING: ShiftDisplayInfo(ShiftType.MORNING, "Sabah", "S", "#22c55e", "#ffffff", "sun"),
    ShiftType.EVENING: ShiftDisplayInfo(ShiftType.EVENING, "Akşam", "A", "#f59e0b", "#ffffff", "sunset"),
    ShiftType.NIGHT: ShiftDisplayInfo(ShiftType.NIGHT, "Gece", "G", "#3b82f6", "#ffffff", "moon"),
    ShiftType.OFF: ShiftDisplayInfo(ShiftType.OFF, "İzin", "İ", "#ef4444", "#ffffff", "sleep"),
    ShiftType.ANNUAL: ShiftDisplayInfo(ShiftType.ANNUAL, "Yıllık İzin", "Y", "#8b5cf6", "#ffffff", "calendar"),
    ShiftType.TRAINING: ShiftDisplayInfo(ShiftType.TRAINING, "Eğitim", "E", "#06b6d4", "#ffffff", "book"),
    ShiftType.NORMAL: ShiftDisplayInfo(ShiftType.NORMAL, "Normal", "N", "#64748b", "#ffffff", "briefcase"),
    ShiftType.SICK: ShiftDisplayInfo(ShiftType.SICK, "Raporlu", "R", "#ec4899", "#ffffff", "heart"),
    ShiftType.EXCUSE: ShiftDisplayInfo(ShiftType.EXCUSE, "Mazeret", "M", "#f97316", "#ffffff", "alert"),
}

SHIFT_TIMES: Dict[ShiftType, Optional[ShiftTime]] = {
    ShiftType.MORNING: ShiftTime("06:00", "14:00"),
    ShiftType.EVENING: ShiftTime("14:00", "22:00"),
    ShiftType.NIGHT: ShiftTime("22:00", "06:00"),
    ShiftType.OFF: None,
    ShiftType.ANNUAL: None,
    ShiftType.TRAINING: ShiftTime("09:00", "17:00"),
    ShiftType.NORMAL: ShiftTime("09:00", "18:00"),
    ShiftType.SICK: None,
    ShiftType.EXCUSE: None,
}


def is_working_shift(shift: ShiftType) -> bool:
    """True when the shift has working hours attached"""
    return SHIFT_TIMES[shift] is not None


def to_date(value: DateLike) -> date:
    """Normalize a date, datetime or ISO string to a calendar date"""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(value.strip()[:10])


@dataclass
class ActiveSchedule:
    """The effective scheduling configuration of the current user"""
    system: ShiftSystem
    team: Optional[str] = None
    cycle_start_date: Optional[date] = None  # SYSTEM_60 only
    monthly_data: MonthlyShiftData = field(default_factory=dict)  # SYSTEM_30 only

    @property
    def is_automatic(self) -> bool:
        return self.system == ShiftSystem.SYSTEM_60

    @property
    def is_manual(self) -> bool:
        return self.system == ShiftSystem.SYSTEM_30
