"""
Excel Roster Importer

Reads the employer's monthly work programme (one row per employee, one
column per day of month) and converts it to monthly shift data for the
%30 system.
"""

import logging
import re
import calendar
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Any, List, Optional

import pandas as pd

from .shift_types import MonthlyShiftData, ShiftType

logger = logging.getLogger(__name__)

# Sheet layout
FIRST_EMPLOYEE_ROW = 2
MIN_ROW_CELLS = 10
SICIL_COLUMN = 1      # B
NAME_COLUMN = 2       # C
POSITION_COLUMN = 3   # D
TEAM_COLUMN = 4       # E
FIRST_DAY_COLUMN = 7  # H holds day 01

ERROR_INVALID_FORMAT = "Dosya formatı geçersiz"
ERROR_UNREADABLE = "Dosya okunamadı"

SHIFT_CODES = {
    "S": ShiftType.MORNING,
    "SB": ShiftType.MORNING,
    "A": ShiftType.EVENING,
    "AB": ShiftType.EVENING,
    "G": ShiftType.NIGHT,
    "I": ShiftType.OFF,
    "Y": ShiftType.ANNUAL,
    "E": ShiftType.TRAINING,
    "N": ShiftType.NORMAL,
    "R": ShiftType.SICK,
    "M": ShiftType.EXCUSE,
}

MONTH_NAMES = {
    "OCAK": 1,
    "ŞUBAT": 2,
    "MART": 3,
    "NİSAN": 4,
    "MAYIS": 5,
    "HAZİRAN": 6,
    "TEMMUZ": 7,
    "AĞUSTOS": 8,
    "EYLÜL": 9,
    "EKİM": 10,
    "KASIM": 11,
    "ARALIK": 12,
}

_ASCII_FOLD = str.maketrans("İŞĞÜÖÇ", "ISGUOC")


@dataclass
class ParsedEmployee:
    """One employee row of the imported sheet"""
    sicil: str
    name: str
    team: str
    position: str
    shifts: MonthlyShiftData = field(default_factory=dict)


@dataclass
class ParseResult:
    """Outcome of an import, failures carry a user-facing error message"""
    success: bool
    employees: List[ParsedEmployee]
    month: str
    error: Optional[str] = None


def map_shift_code(code: Optional[str]) -> ShiftType:
    """
    Map an Excel shift code to a ShiftType.

    Combined codes such as "S/E" resolve by their first part. Empty and
    unrecognized codes resolve to OFF rather than rejecting the row.
    """
    if code is None:
        return ShiftType.OFF

    normalized = str(code).strip().upper()
    if not normalized:
        return ShiftType.OFF

    if "/" in normalized:
        return map_shift_code(normalized.split("/")[0])

    shift = SHIFT_CODES.get(normalized)
    if shift is None:
        logger.debug(f"Unrecognized shift code '{code}', treating as off")
        return ShiftType.OFF
    return shift


def _fold_turkish(text: str) -> str:
    """Uppercase with Turkish dotted/dotless i rules, then fold to ASCII"""
    upper = text.replace("i", "İ").replace("ı", "I").upper()
    return upper.translate(_ASCII_FOLD)


def extract_month_from_filename(filename: str, today: Optional[date] = None) -> str:
    """Extract a "YYYY-MM" key from a name like "OCAK 2026 ÇALIŞMA PROGRAMI.xlsx" """
    today = today or date.today()
    folded = _fold_turkish(filename)

    for month_name, month_num in MONTH_NAMES.items():
        if _fold_turkish(month_name) in folded:
            year_match = re.search(r"20\d{2}", filename)
            year = int(year_match.group(0)) if year_match else today.year
            return f"{year}-{month_num:02d}"

    return f"{today.year}-{today.month:02d}"


def _cell_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value).strip()


def _read_rows(source) -> List[List[Any]]:
    """Read the first sheet as rows of raw cell values, padded to the sheet width"""
    frame = pd.read_excel(source, sheet_name=0, header=None, dtype=object, engine="openpyxl")
    frame = frame.astype(object).where(frame.notna(), None)
    return frame.values.tolist()


def _parse_employee_row(row: List[Any], month_key: str, days_in_month: int) -> Optional[ParsedEmployee]:
    if len(row) < MIN_ROW_CELLS:
        return None

    sicil = _cell_text(row[SICIL_COLUMN])
    if not sicil:
        return None

    month_shifts = {}
    for day in range(1, days_in_month + 1):
        col_idx = FIRST_DAY_COLUMN + day - 1
        code = row[col_idx] if col_idx < len(row) else None
        month_shifts[day] = map_shift_code(_cell_text(code))

    return ParsedEmployee(
        sicil=sicil,
        name=_cell_text(row[NAME_COLUMN]),
        team=_cell_text(row[TEAM_COLUMN]),
        position=_cell_text(row[POSITION_COLUMN]),
        shifts={month_key: month_shifts}
    )


def parse_excel_file(source, filename: Optional[str] = None) -> ParseResult:
    """
    Parse an Excel work programme and extract every employee's shifts.

    Args:
        source: Path or binary file object of the .xlsx workbook
        filename: Original file name, used to detect the month; defaults
            to the name of source when it is a path

    Returns:
        ParseResult; read failures are logged and reported, not raised
    """
    if filename is None:
        filename = Path(source).name if isinstance(source, (str, Path)) else ""

    try:
        rows = _read_rows(source)
    except Exception as e:
        logger.error(f"Excel parse error: {e}", exc_info=True)
        return ParseResult(success=False, employees=[], month="", error=ERROR_UNREADABLE)

    if len(rows) < 3:
        return ParseResult(success=False, employees=[], month="", error=ERROR_INVALID_FORMAT)

    month_key = extract_month_from_filename(filename)
    year, month = map(int, month_key.split("-"))
    days_in_month = calendar.monthrange(year, month)[1]

    employees = []
    for row in rows[FIRST_EMPLOYEE_ROW:]:
        employee = _parse_employee_row(row, month_key, days_in_month)
        if employee:
            employees.append(employee)

    logger.info(f"Parsed {len(employees)} employees for {month_key} from '{filename}'")
    return ParseResult(success=True, employees=employees, month=month_key)


def find_employee_by_sicil(employees: List[ParsedEmployee], sicil: str) -> Optional[ParsedEmployee]:
    """Find employee by sicil number"""
    normalized = sicil.strip()
    for employee in employees:
        if employee.sicil == normalized:
            return employee
    return None
