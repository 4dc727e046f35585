"""
Application Facade for the Shift Roster

Wires the persisted store, the shift resolver, the Excel importer and the
exporters together for a host application. Provides logging setup and
the data-directory resolution shared by every host.
"""

import sys
import logging
import traceback
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from pathlib import Path
from typing import List, Optional, Tuple

from shift_roster.calendar_export import ExportResult, export_shifts_to_calendar
from shift_roster.data_manager import DataManager, DataManagerError
from shift_roster.excel_parser import ParsedEmployee, find_employee_by_sicil, parse_excel_file
from shift_roster.monthly_manager import get_month_completion_percentage, get_next_shift_type
from shift_roster.reporting import ExportManager
from shift_roster.shift_resolver import get_matching_teams_for_date, resolve_shift_range
from shift_roster.shift_types import TEAMS_30, TEAMS_60, DateLike, ShiftSystem, ShiftType, to_date

ERROR_SICIL_MISSING = "Sicil numarası girilmedi"
ERROR_SICIL_NOT_FOUND = "Sicil numarası bulunamadı"


def setup_logging(log_dir: str = "logs", level: int = logging.INFO):
    """Setup application logging"""
    log_path = Path(log_dir)
    log_path.mkdir(exist_ok=True)

    log_file = log_path / f"shift_roster_{datetime.now().strftime('%Y%m%d')}.log"

    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.FileHandler(log_file, encoding='utf-8'),
            logging.StreamHandler(sys.stdout)
        ]
    )

    return logging.getLogger(__name__)


def check_dependencies():
    """Check if all required dependencies are available"""
    required_modules = [
        'pandas',
        'openpyxl',
        'reportlab',
    ]

    missing_modules = []

    for module in required_modules:
        try:
            __import__(module)
        except ImportError:
            missing_modules.append(module)

    if missing_modules:
        error_msg = f"Missing required dependencies: {', '.join(missing_modules)}\n"
        error_msg += "Please install them using: pip install -e ."
        raise ImportError(error_msg)


def handle_exception(exc_type, exc_value, exc_traceback):
    """Global exception handler, install with sys.excepthook = handle_exception"""
    if issubclass(exc_type, KeyboardInterrupt):
        sys.__excepthook__(exc_type, exc_value, exc_traceback)
        return

    logger = logging.getLogger(__name__)
    logger.error(
        "Uncaught exception",
        exc_info=(exc_type, exc_value, exc_traceback)
    )


def default_data_dir() -> Path:
    """Directory holding the persisted roster next to the app or the source tree"""
    if getattr(sys, 'frozen', False):
        # If the application is run as a bundle (e.g., by PyInstaller)
        base_path = Path(sys.executable).parent
    else:
        base_path = Path(__file__).parent.parent
    return base_path / "data"


@dataclass
class DayOverview:
    """Everything the home screen shows, resolved against one captured day"""
    today: date
    today_shift: Optional[ShiftType]
    tomorrow_shift: Optional[ShiftType]
    today_matching_teams: List[str] = field(default_factory=list)
    tomorrow_matching_teams: List[str] = field(default_factory=list)
    week: List[Tuple[date, ShiftType]] = field(default_factory=list)
    month_completion: Optional[int] = None  # %30 only


@dataclass
class ImportResult:
    success: bool
    month: str = ""
    employee: Optional[ParsedEmployee] = None
    error: Optional[str] = None


class ShiftRosterApp:
    """Main application class"""

    def __init__(self, data_dir: Optional[str] = None):
        self.logger = logging.getLogger(__name__)
        self.data_dir = Path(data_dir) if data_dir else None
        self.data_manager = None
        self.export_manager = None

    def initialize(self) -> bool:
        """Initialize application components"""
        try:
            self.logger.info("Initializing Shift Roster")

            check_dependencies()

            data_dir = self.data_dir or default_data_dir()
            data_dir.mkdir(parents=True, exist_ok=True)
            self.data_dir = data_dir
            self.logger.info(f"Persistent data directory: {data_dir}")

            self.data_manager = DataManager(str(data_dir / "roster_data.json"))
            self.export_manager = ExportManager(self.data_manager)

            return True

        except (ImportError, OSError, DataManagerError) as e:
            self.logger.error(f"Failed to initialize application: {e}")
            self.logger.error(traceback.format_exc())
            return False

    # Onboarding
    def select_team(self, system: ShiftSystem, team: str, cycle_start: Optional[DateLike] = None):
        """Choose the regime and team; %60 teams default to their predefined cycle start"""
        if system == ShiftSystem.SYSTEM_60:
            self.data_manager.set_team_60(team)
            if cycle_start is not None:
                self.data_manager.set_cycle_start_date(cycle_start)
        else:
            self.data_manager.set_team_30(team)
        self.data_manager.set_active_system(system)
        self.data_manager.set_onboarding_complete(True)
        self.data_manager.save_data()
        self.logger.info(f"Selected {system.value} team {team}")

    def available_teams(self, system: ShiftSystem) -> Tuple[str, ...]:
        return TEAMS_60 if system == ShiftSystem.SYSTEM_60 else TEAMS_30

    # Day views
    def today_overview(self, today: Optional[date] = None) -> DayOverview:
        today = today or date.today()
        tomorrow = today + timedelta(days=1)

        schedule = self.data_manager.get_active_schedule()
        overrides = self.data_manager.get_shift_overrides()

        week = [
            (day, shift) for day, shift in resolve_shift_range(today, 7, schedule, overrides)
            if shift is not None
        ]

        overview = DayOverview(
            today=today,
            today_shift=self.data_manager.get_shift_for_date(today),
            tomorrow_shift=self.data_manager.get_shift_for_date(tomorrow),
            today_matching_teams=get_matching_teams_for_date(today, schedule, overrides),
            tomorrow_matching_teams=get_matching_teams_for_date(tomorrow, schedule, overrides),
            week=week
        )

        if schedule is not None and schedule.is_manual:
            overview.month_completion = get_month_completion_percentage(
                today.year, today.month, schedule.monthly_data
            )

        return overview

    # Edits
    def change_shift(self, date_value: DateLike, shift: ShiftType):
        """Manually override the shift of a single day"""
        self.data_manager.set_shift_override(date_value, shift)
        self.data_manager.increment_shift_usage(shift)
        self.data_manager.save_data()

    def clear_change(self, date_value: DateLike) -> bool:
        removed = self.data_manager.clear_shift_override(date_value)
        if removed:
            self.data_manager.save_data()
        return removed

    def cycle_monthly_entry(self, date_value: DateLike) -> ShiftType:
        """Advance the entered %30 shift of a day to the next shift type"""
        day = to_date(date_value)
        current = self.data_manager.get_monthly_shifts().get(day.strftime("%Y-%m"), {}).get(day.day)
        next_shift = get_next_shift_type(current)
        self.data_manager.set_shift_for_date(day, next_shift)
        self.data_manager.save_data()
        return next_shift

    # Import / export
    def import_roster(self, source, filename: Optional[str] = None,
                      sicil: Optional[str] = None) -> ImportResult:
        """Import the user's row of an Excel work programme into the %30 roster"""
        sicil = sicil or self.data_manager.get_preferences().sicil_no
        if not sicil:
            return ImportResult(success=False, error=ERROR_SICIL_MISSING)

        parse_result = parse_excel_file(source, filename)
        if not parse_result.success:
            return ImportResult(success=False, error=parse_result.error)

        employee = find_employee_by_sicil(parse_result.employees, sicil)
        if employee is None:
            self.logger.warning(f"Sicil {sicil} not found in {parse_result.month} roster")
            return ImportResult(success=False, month=parse_result.month, error=ERROR_SICIL_NOT_FOUND)

        self.data_manager.set_sicil_no(sicil)
        self.data_manager.set_bulk_shifts(employee.shifts)
        self.data_manager.set_setting("lastUsedMonth", parse_result.month)
        self.data_manager.save_data()
        self.logger.info(f"Imported {parse_result.month} roster for sicil {sicil}")

        return ImportResult(success=True, month=parse_result.month, employee=employee)

    def export_calendar_ics(self, start_date: DateLike, days: int,
                            output_path: Optional[str] = None) -> ExportResult:
        return export_shifts_to_calendar(start_date, days, self.data_manager.get_shift_for_date,
                                         output_path=output_path)

    def reset(self):
        self.data_manager.reset_app()
        self.data_manager.save_data()

    def cleanup(self):
        """Cleanup application resources"""
        try:
            if self.data_manager:
                self.data_manager.save_data()
                self.logger.info("Data saved successfully")
        except DataManagerError as e:
            self.logger.error(f"Error during cleanup: {e}")
