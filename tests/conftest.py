import sys
from pathlib import Path

import pandas as pd
import pytest

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

ROSTER_FILENAME = "OCAK 2026 ÇALIŞMA PROGRAMI.xlsx"

# Day 1..13 codes of the first employee, the rest of January is "I"
FIRST_EMPLOYEE_CODES = ["S", "A/E", "G", "I", "Y", "e", "XYZ", None, "R", "M", "N", "SB", "AB"]


def _employee_row(number, sicil, name, position, team, codes):
    return [number, sicil, name, position, team, None, None] + codes


@pytest.fixture
def roster_workbook(tmp_path):
    """A January 2026 work programme laid out like the employer's sheet."""
    first_codes = FIRST_EMPLOYEE_CODES + ["I"] * (31 - len(FIRST_EMPLOYEE_CODES))
    rows = [
        ["OCAK 2026 ÇALIŞMA PROGRAMI"],
        ["Sıra", "Sicil", "Ad Soyad", "Görev", "Ekip", "Not", "Toplam"] + [f"{d:02d}" for d in range(1, 32)],
        _employee_row(1, 12345, "Ali Veli", "Operatör", "30A", first_codes),
        _employee_row(2, "67890", "Ayşe Yılmaz", "Şef", "30B", ["G"] * 31),
        # Not filled in yet: every day column is blank
        [3, "222", "Boş Günler", "Operatör", "30A"],
        _employee_row(4, None, "Sicilsiz", "Operatör", "30C", ["S"] * 31),
    ]
    path = tmp_path / ROSTER_FILENAME
    pd.DataFrame(rows).to_excel(path, header=False, index=False)
    return path
