"""
Tests for monthly statistics and the export formats
"""

import pytest
import sys
from pathlib import Path
from datetime import date
import tempfile
import os
import json

import pandas as pd

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from shift_roster.data_manager import DataManager
from shift_roster.reporting import ExportManager, ReportGenerator, calculate_month_stats
from shift_roster.shift_types import ShiftSystem, ShiftType


@pytest.fixture
def data_manager():
    """DataManager on the %60 system, team 60D."""
    with tempfile.NamedTemporaryFile(
        mode="w", suffix=".json", delete=False
    ) as temp_file:
        temp_path = temp_file.name
        json.dump({}, temp_file)

    dm = DataManager(temp_path)
    dm.set_team_60("60D")
    dm.set_active_system(ShiftSystem.SYSTEM_60)
    yield dm
    os.unlink(temp_path)


@pytest.fixture
def report_generator(data_manager):
    return ReportGenerator(data_manager)


def test_month_stats_for_rotation(report_generator):
    stats = report_generator.get_month_stats(2026, 1)

    assert stats.total_days == 31
    assert stats.shift_counts == {
        ShiftType.MORNING: 7,
        ShiftType.EVENING: 8,
        ShiftType.NIGHT: 8,
        ShiftType.OFF: 8,
    }
    assert stats.work_days == 23
    assert stats.off_days == 8
    assert stats.total_work_hours == 184
    assert stats.days_with_data == 31
    # Ties keep the display order of shift types
    assert stats.sorted_shifts == [ShiftType.EVENING, ShiftType.NIGHT, ShiftType.OFF, ShiftType.MORNING]
    assert stats.percentage_of_month(ShiftType.MORNING) == 23
    assert stats.percentage_of_month(ShiftType.EVENING) == 26
    assert stats.percentage_of_month(ShiftType.SICK) == 0


def test_month_stats_include_overrides(data_manager, report_generator):
    data_manager.set_shift_override("2026-01-06", ShiftType.MORNING)
    stats = report_generator.get_month_stats(2026, 1)

    assert stats.shift_counts[ShiftType.MORNING] == 8
    assert stats.shift_counts[ShiftType.OFF] == 7
    assert stats.work_days == 24
    assert stats.total_work_hours == 192


def test_month_stats_count_only_days_with_data():
    stats = calculate_month_stats(
        2026, 2,
        lambda day: ShiftType.NORMAL if day.day <= 3 else (ShiftType.SICK if day.day == 4 else None)
    )

    assert stats.total_days == 28
    assert stats.days_with_data == 4
    assert stats.work_days == 3
    assert stats.off_days == 1
    assert stats.total_work_hours == 27
    assert stats.sorted_shifts == [ShiftType.NORMAL, ShiftType.SICK]


def test_pdf_export(report_generator, tmp_path):
    output_path = tmp_path / "roster.pdf"

    assert report_generator.export_calendar_pdf(2026, 1, str(output_path))
    assert output_path.exists()
    assert output_path.read_bytes().startswith(b"%PDF")


def test_pdf_export_keeps_turkish_characters(report_generator, tmp_path):
    """
    Why this is important: shift labels such as "Akşam" and "İzin" are the
    whole content of the shared calendar. A font without Turkish glyphs
    prints them as boxes.
    """
    from pypdf import PdfReader

    output_path = tmp_path / "roster.pdf"
    assert report_generator.export_calendar_pdf(2026, 1, str(output_path))

    text = "\n".join(page.extract_text() for page in PdfReader(str(output_path)).pages)
    for word in ("Akşam", "İzin", "Yıllık", "İstatistikler", "Dağılımı"):
        assert word in text


def test_pdf_export_with_sunday_first_week(data_manager, report_generator, tmp_path):
    data_manager.data["preferences"]["firstDayOfWeek"] = 0
    assert report_generator._weekday_headers()[0] == "Paz"
    assert report_generator._month_weeks(2026, 2)[0][0] == 1  # 2026-02-01 is a Sunday

    assert report_generator.export_calendar_pdf(2026, 2, str(tmp_path / "roster.pdf"))


def test_pdf_export_to_missing_directory_fails(report_generator, tmp_path):
    assert not report_generator.export_calendar_pdf(2026, 1, str(tmp_path / "missing" / "roster.pdf"))


def test_excel_export(data_manager, report_generator, tmp_path):
    data_manager.set_shift_override("2026-01-06", ShiftType.SICK)
    output_path = tmp_path / "roster.xlsx"

    assert report_generator.export_schedule_excel(2026, 1, str(output_path))

    schedule = pd.read_excel(output_path, sheet_name="Schedule")
    assert len(schedule) == 31
    assert list(schedule.columns) == ["Date", "Day", "Shift", "Code", "Start", "End", "Hours", "Override"]
    assert schedule.loc[0, "Shift"] == "Sabah"
    assert schedule.loc[5, "Shift"] == "Raporlu"
    assert bool(schedule.loc[5, "Override"]) is True
    assert schedule["Hours"].sum() == 184

    statistics = pd.read_excel(output_path, sheet_name="Statistics")
    assert "Total Work Hours" in statistics["Shift"].tolist()


def test_csv_export(report_generator, tmp_path):
    output_path = tmp_path / "roster.csv"

    assert report_generator.export_schedule_csv(2026, 1, str(output_path))

    schedule = pd.read_csv(output_path)
    assert len(schedule) == 31
    assert schedule.loc[3, "Code"] == "G"
    assert schedule["Hours"].sum() == 184


def test_ics_export(report_generator, tmp_path):
    output_path = tmp_path / "roster.ics"

    assert report_generator.export_schedule_ics(2026, 1, str(output_path))
    assert output_path.read_text(encoding="utf-8").count("BEGIN:VEVENT") == 23


def test_dashboard_summary_60(report_generator):
    summary = report_generator.create_dashboard_summary(2026, 1)

    assert "Ocak 2026" in summary
    assert "%60 (Takım 60D)" in summary
    assert "Çalışma Saati: 184" in summary
    assert "Girilen Günler" not in summary


def test_dashboard_summary_30(data_manager, report_generator):
    data_manager.set_team_30("30A")
    data_manager.set_active_system(ShiftSystem.SYSTEM_30)
    for day in range(1, 8):
        data_manager.set_shift_for_date(date(2026, 2, day), ShiftType.OFF)

    summary = report_generator.create_dashboard_summary(2026, 2)

    assert "%30 (Takım 30A)" in summary
    assert "Girilen Günler: %25" in summary


def test_dashboard_summary_without_data(data_manager, report_generator):
    data_manager.set_team_30("30A")
    data_manager.set_active_system(ShiftSystem.SYSTEM_30)

    assert "Bu ay için veri yok" in report_generator.create_dashboard_summary(2026, 3)


def test_export_manager_rejects_unknown_format(data_manager, tmp_path):
    export_manager = ExportManager(data_manager)
    with pytest.raises(ValueError):
        export_manager.export_calendar(2026, 1, "docx", str(tmp_path / "roster.docx"))


def test_default_filename(data_manager):
    export_manager = ExportManager(data_manager)
    filename = export_manager.get_default_filename(2026, 1, "excel")

    assert filename.startswith("shift_roster_january_2026_")
    assert filename.endswith(".xlsx")
    assert export_manager.get_default_filename(2026, 1, "ICS").endswith(".ics")


def test_batch_export(data_manager, tmp_path):
    export_manager = ExportManager(data_manager)
    output_dir = tmp_path / "exports"

    results = export_manager.batch_export(2026, 1, str(output_dir), formats=["csv", "ics", "docx"])

    assert results == {"csv": True, "ics": True, "docx": False}
    assert len(list(output_dir.iterdir())) == 2
