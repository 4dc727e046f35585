"""
Data Manager for the Shift Roster

Handles JSON persistence of the user's roster state: preferences, the
active scheduling regime, the %30 monthly roster, manual overrides and
shift usage statistics. The resolver never writes here; callers persist
the results of their edits through this class.
"""

import json
import logging
from dataclasses import dataclass
from datetime import date, datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from .monthly_manager import (
    clear_shift_in_monthly_data,
    merge_monthly_data,
    set_shift_in_monthly_data,
)
from .shift_resolver import resolve_effective_shift
from .shift_types import (
    TEAM_60_CYCLE_STARTS,
    TEAMS_30,
    TEAMS_60,
    ActiveSchedule,
    DateLike,
    MonthlyShiftData,
    ShiftOverrides,
    ShiftSystem,
    ShiftType,
    to_date,
)

APP_VERSION = "1.0.0"
VALID_THEMES = ("light", "dark")


class DataManagerError(Exception):
    """Base exception for DataManager operations"""
    pass


class DataFileCorruptedError(DataManagerError):
    """Raised when the data file is corrupted"""
    pass


class DataFileNotFoundError(DataManagerError):
    """Raised when the data file is not found"""
    pass


class DataSaveError(DataManagerError):
    """Raised when saving data fails"""
    pass


class DataValidationError(DataManagerError):
    """Raised when data validation fails"""
    pass


@dataclass
class UserPreferences:
    """User preferences and settings"""
    onboarding_complete: bool = False
    language: str = "tr"
    first_day_of_week: int = 1  # 0 = Sunday, 1 = Monday
    theme: str = "light"
    sicil_no: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "onboardingComplete": self.onboarding_complete,
            "language": self.language,
            "firstDayOfWeek": self.first_day_of_week,
            "theme": self.theme,
            "sicilNo": self.sicil_no
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'UserPreferences':
        theme = data.get("theme")
        if theme not in VALID_THEMES:
            theme = "light"
        first_day_of_week = data.get("firstDayOfWeek", 1)
        if first_day_of_week not in (0, 1):
            first_day_of_week = 1
        return cls(
            # Only a literal true counts as a finished onboarding
            onboarding_complete=data.get("onboardingComplete") is True,
            language=data.get("language", "tr"),
            first_day_of_week=first_day_of_week,
            theme=theme,
            sicil_no=data.get("sicilNo")
        )


def _parse_shift(value: Any) -> Optional[ShiftType]:
    try:
        return ShiftType(value)
    except ValueError:
        return None


def monthly_data_from_dict(raw: Dict[str, Dict[str, str]]) -> MonthlyShiftData:
    """Convert persisted monthly shifts (string day keys) to typed data"""
    monthly_data: MonthlyShiftData = {}
    for month_key, days in (raw or {}).items():
        if not isinstance(days, dict):
            logging.warning(f"Dropping malformed month '{month_key}'")
            continue
        month_data = {}
        for day, value in days.items():
            shift = _parse_shift(value)
            if shift is None or not str(day).isdigit():
                logging.warning(f"Dropping unknown shift '{value}' for {month_key} day {day}")
                continue
            month_data[int(day)] = shift
        monthly_data[month_key] = month_data
    return monthly_data


def monthly_data_to_dict(monthly_data: MonthlyShiftData) -> Dict[str, Dict[str, str]]:
    """Convert typed monthly shifts to their JSON form"""
    return {
        month_key: {str(day): shift.value for day, shift in sorted(days.items())}
        for month_key, days in monthly_data.items()
    }


class DataManager:
    """Manages roster state persistence and mutation"""

    def __init__(self, data_file: str = "data/roster_data.json"):
        if data_file == "data/roster_data.json":
            # Use path relative to the package directory
            data_file = Path(__file__).parent.parent / "data" / "roster_data.json"
        self.data_file = Path(data_file)
        self.data = self._load_or_create_data()

    def _read_json(self, path: Path) -> Dict[str, Any]:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError(f"Top-level value in {path} is not an object")
        return data

    def _recover_from_backup(self, backup_file: Path) -> Dict[str, Any]:
        """Restore the backup file over the main file and load it"""
        try:
            logging.info(f"Attempting recovery from backup file {backup_file}")
            data = self._read_json(backup_file)
            backup_file.replace(self.data_file)
            logging.info("Successfully recovered data from backup")
            return self._validate_and_migrate_data(data)
        except (ValueError, IOError) as backup_e:
            logging.error(f"Backup file corrupted: {backup_e}")
            logging.info("Creating default data due to corrupted backup")
            return self._create_default_data()

    def _load_or_create_data(self) -> Dict[str, Any]:
        """Load existing data or create default structure with recovery from backup"""
        backup_file = self.data_file.with_suffix('.bak')

        if not self.data_file.exists():
            if backup_file.exists():
                logging.info(f"Main data file {self.data_file} missing")
                return self._recover_from_backup(backup_file)
            logging.info("No data file found, creating default data")
            return self._create_default_data()

        try:
            return self._validate_and_migrate_data(self._read_json(self.data_file))
        except (ValueError, IOError) as e:
            logging.error(f"Error loading main data file {self.data_file}: {e}")
            if backup_file.exists():
                return self._recover_from_backup(backup_file)
            raise DataFileCorruptedError(f"Main data file corrupted and no backup available: {e}")

    def _validate_and_migrate_data(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """Validate rehydrated data and fill in anything missing"""
        default_data = self._create_default_data()

        # Merge with defaults to ensure all keys exist with the expected shape
        for key in default_data:
            if key not in data:
                data[key] = default_data[key]
            elif isinstance(default_data[key], dict) and not isinstance(data[key], dict):
                logging.warning(f"Section '{key}' is not an object, resetting it to defaults")
                data[key] = default_data[key]

        data["preferences"] = UserPreferences.from_dict(data.get("preferences") or {}).to_dict()

        if data.get("active_system") not in (None, *[s.value for s in ShiftSystem]):
            logging.warning(f"Unknown active system '{data['active_system']}', clearing it")
            data["active_system"] = None

        # Round-trip through the typed form to drop unknown shift values
        data["monthly_shifts"] = monthly_data_to_dict(monthly_data_from_dict(data["monthly_shifts"]))

        overrides = {}
        for date_str, value in data["shift_overrides"].items():
            if _parse_shift(value) is None:
                logging.warning(f"Dropping unknown override '{value}' for {date_str}")
                continue
            overrides[date_str] = value
        data["shift_overrides"] = overrides

        data["shift_usage_stats"] = {
            key: count for key, count in data["shift_usage_stats"].items()
            if _parse_shift(key) is not None and isinstance(count, int)
        }

        return data

    def _create_default_data(self) -> Dict[str, Any]:
        """Create default data structure for a fresh install"""
        return {
            "settings": {
                "appVersion": APP_VERSION,
                "lastUsedMonth": datetime.now().strftime("%Y-%m"),
                "dataFile": str(self.data_file)
            },
            "preferences": UserPreferences().to_dict(),
            "active_system": None,
            "team_60": None,
            "cycle_start_date": None,  # ISO date of the first morning shift
            "team_30": None,
            "monthly_shifts": {},  # {month_key: {day: shift}}
            "shift_overrides": {},  # {date_str: shift}
            "shift_usage_stats": {}  # {shift: count}
        }

    def _validate_saved_data(self) -> bool:
        """Validate that the saved data file matches current data"""
        try:
            if not self.data_file.exists():
                raise DataFileNotFoundError(f"Saved data file {self.data_file} does not exist")

            saved_data = self._read_json(self.data_file)

            required_keys = ["settings", "preferences", "monthly_shifts", "shift_overrides"]
            for key in required_keys:
                if key not in saved_data:
                    raise DataValidationError(f"Required section '{key}' missing from saved data")

            if saved_data.get("settings", {}).get("appVersion") != self.data.get("settings", {}).get("appVersion"):
                raise DataValidationError("App version mismatch in saved data")

            return True

        except (ValueError, IOError) as e:
            raise DataValidationError(f"Failed to validate saved data: {e}")

    def save_data(self) -> bool:
        """Save current data to file atomically with validation"""
        temp_file = None
        backup_file = self.data_file.with_suffix('.bak')

        try:
            self.data_file.parent.mkdir(parents=True, exist_ok=True)

            # Keep the previous version as a backup
            if self.data_file.exists():
                self.data_file.replace(backup_file)

            temp_file = self.data_file.with_suffix('.tmp')
            with open(temp_file, 'w', encoding='utf-8') as f:
                json.dump(self.data, f, indent=2, ensure_ascii=False)

            temp_file.replace(self.data_file)

            self._validate_saved_data()

            return True

        except DataValidationError as e:
            logging.error(f"Data validation failed after save: {e}", exc_info=True)
            if backup_file.exists():
                try:
                    backup_file.replace(self.data_file)
                except OSError as restore_e:
                    logging.error(f"Failed to restore from backup: {restore_e}", exc_info=True)
            raise DataSaveError(f"Save operation failed validation: {e}")

        except (IOError, OSError) as e:
            logging.error(f"I/O error during save operation: {e}", exc_info=True)
            raise DataSaveError(f"Failed to save data due to I/O error: {e}")

        finally:
            if temp_file and temp_file.exists():
                try:
                    temp_file.unlink()
                except OSError as cleanup_e:
                    logging.error(f"Failed to clean up temporary file {temp_file}: {cleanup_e}", exc_info=True)

    # Preferences
    def get_preferences(self) -> UserPreferences:
        return UserPreferences.from_dict(self.data.get("preferences", {}))

    def _update_preferences(self, **changes):
        prefs = self.get_preferences()
        for key, value in changes.items():
            setattr(prefs, key, value)
        self.data["preferences"] = prefs.to_dict()

    def set_onboarding_complete(self, complete: bool):
        self._update_preferences(onboarding_complete=complete is True)

    def set_theme(self, theme: str):
        if theme not in VALID_THEMES:
            raise DataValidationError(f"Invalid theme: {theme}")
        self._update_preferences(theme=theme)

    def set_sicil_no(self, sicil: Optional[str]):
        self._update_preferences(sicil_no=sicil.strip() if sicil else None)

    # Active system
    def get_active_system(self) -> Optional[ShiftSystem]:
        value = self.data.get("active_system")
        return ShiftSystem(value) if value else None

    def set_active_system(self, system: ShiftSystem):
        """Switch regimes; the other regime's data is kept but no longer consulted"""
        if not isinstance(system, ShiftSystem):
            raise DataValidationError(f"Unknown shift system: {system}")
        self.data["active_system"] = system.value

    # %60 System
    def get_team_60(self) -> Optional[str]:
        return self.data.get("team_60")

    def set_team_60(self, team: str, seed_cycle_start: bool = True):
        """Select a %60 team and, by default, its predefined cycle start date"""
        if team not in TEAMS_60:
            raise DataValidationError(f"Unknown %60 team: {team}")
        self.data["team_60"] = team
        if seed_cycle_start:
            self.set_cycle_start_date(TEAM_60_CYCLE_STARTS[team])

    def get_cycle_start_date(self) -> Optional[date]:
        value = self.data.get("cycle_start_date")
        return date.fromisoformat(value) if value else None

    def set_cycle_start_date(self, cycle_start: DateLike):
        self.data["cycle_start_date"] = to_date(cycle_start).isoformat()

    # %30 System
    def get_team_30(self) -> Optional[str]:
        return self.data.get("team_30")

    def set_team_30(self, team: str):
        if team not in TEAMS_30:
            raise DataValidationError(f"Unknown %30 team: {team}")
        self.data["team_30"] = team

    def get_monthly_shifts(self) -> MonthlyShiftData:
        return monthly_data_from_dict(self.data.get("monthly_shifts", {}))

    def _store_monthly_shifts(self, monthly_data: MonthlyShiftData):
        self.data["monthly_shifts"] = monthly_data_to_dict(monthly_data)

    def set_shift_for_date(self, date_value: DateLike, shift: ShiftType):
        self._store_monthly_shifts(set_shift_in_monthly_data(date_value, shift, self.get_monthly_shifts()))

    def clear_shift_for_date(self, date_value: DateLike):
        self._store_monthly_shifts(clear_shift_in_monthly_data(date_value, self.get_monthly_shifts()))

    def set_bulk_shifts(self, shifts: MonthlyShiftData):
        """Deep merge imported monthly shifts into the stored roster"""
        self._store_monthly_shifts(merge_monthly_data(self.get_monthly_shifts(), shifts))

    # Shift overrides
    def get_shift_overrides(self) -> ShiftOverrides:
        return {date_str: ShiftType(value) for date_str, value in self.data.get("shift_overrides", {}).items()}

    def set_shift_override(self, date_value: DateLike, shift: ShiftType):
        self.data.setdefault("shift_overrides", {})[to_date(date_value).isoformat()] = shift.value

    def clear_shift_override(self, date_value: DateLike) -> bool:
        """Remove the override for a date; False when none existed"""
        return self.data.setdefault("shift_overrides", {}).pop(to_date(date_value).isoformat(), None) is not None

    # Usage statistics
    def increment_shift_usage(self, shift: ShiftType):
        stats = self.data.setdefault("shift_usage_stats", {})
        stats[shift.value] = stats.get(shift.value, 0) + 1

    def get_top_shifts(self) -> List[ShiftType]:
        """Shift types ordered by how often the user picked them"""
        stats = self.data.get("shift_usage_stats", {})
        ordered = sorted(stats.items(), key=lambda item: item[1], reverse=True)
        return [ShiftType(shift) for shift, _ in ordered]

    # Resolution
    def get_active_schedule(self) -> Optional[ActiveSchedule]:
        """Build the effective schedule from stored state; None before onboarding"""
        system = self.get_active_system()
        if system == ShiftSystem.SYSTEM_60:
            return ActiveSchedule(
                system=system,
                team=self.get_team_60(),
                cycle_start_date=self.get_cycle_start_date()
            )
        if system == ShiftSystem.SYSTEM_30:
            return ActiveSchedule(
                system=system,
                team=self.get_team_30(),
                monthly_data=self.get_monthly_shifts()
            )
        return None

    def get_shift_for_date(self, date_value: DateLike) -> Optional[ShiftType]:
        return resolve_effective_shift(date_value, self.get_active_schedule(), self.get_shift_overrides())

    def get_current_team(self) -> Optional[str]:
        system = self.get_active_system()
        if system == ShiftSystem.SYSTEM_60:
            return self.get_team_60()
        if system == ShiftSystem.SYSTEM_30:
            return self.get_team_30()
        return None

    # Settings Management
    def get_setting(self, key: str, default=None):
        """Get application setting"""
        return self.data.get("settings", {}).get(key, default)

    def set_setting(self, key: str, value):
        """Set application setting"""
        self.data.setdefault("settings", {})[key] = value

    def reset_app(self):
        """Wipe all roster state back to a fresh install"""
        logging.info("Resetting roster data to defaults")
        self.data = self._create_default_data()
