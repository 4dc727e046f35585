"""
Reporting and Export Module for the Shift Roster

Monthly statistics over the effective roster, plus PDF (shareable
calendar), Excel, CSV and iCalendar exports of a month.
"""

import pandas as pd
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4, landscape
from reportlab.platypus import SimpleDocTemplate, Table, TableStyle, Paragraph, Spacer, PageBreak
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.units import inch
from reportlab.lib.fonts import addMapping
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.ttfonts import TTFont
from dataclasses import dataclass, field
from datetime import datetime, date
import calendar
import math
from pathlib import Path
from typing import Callable, Dict, List, Optional
import logging

from .calendar_export import export_shifts_to_calendar
from .data_manager import DataManager
from .monthly_manager import get_month_completion_percentage
from .shift_types import SHIFT_DISPLAY, SHIFT_ORDER, SHIFT_TIMES, ShiftSystem, ShiftType

logger = logging.getLogger(__name__)

# Helvetica has no glyphs for ş, ğ, ı and İ
FONT_DIR = Path(__file__).parent / "fonts"
FONT_NAME = "DejaVuSans"
FONT_NAME_BOLD = "DejaVuSans-Bold"

MONTH_NAMES_TR = [
    "", "Ocak", "Şubat", "Mart", "Nisan", "Mayıs", "Haziran",
    "Temmuz", "Ağustos", "Eylül", "Ekim", "Kasım", "Aralık"
]
WEEKDAY_HEADERS_TR = ["Pzt", "Sal", "Çar", "Per", "Cum", "Cmt", "Paz"]


@dataclass
class MonthStats:
    """Shift distribution and working time of one month"""
    year: int
    month: int
    shift_counts: Dict[ShiftType, int] = field(default_factory=dict)
    total_work_hours: int = 0
    work_days: int = 0
    off_days: int = 0
    total_days: int = 0

    @property
    def sorted_shifts(self) -> List[ShiftType]:
        """Shift types present this month, most frequent first"""
        present = [shift for shift in SHIFT_ORDER if self.shift_counts.get(shift)]
        return sorted(present, key=lambda shift: self.shift_counts[shift], reverse=True)

    @property
    def days_with_data(self) -> int:
        return self.work_days + self.off_days

    def percentage_of_month(self, shift: ShiftType) -> int:
        if not self.total_days:
            return 0
        return math.floor(self.shift_counts.get(shift, 0) * 100 / self.total_days + 0.5)


def calculate_month_stats(year: int, month: int,
                          get_shift_for_date: Callable[[date], Optional[ShiftType]]) -> MonthStats:
    """Count shifts, work days, off days and working hours for a month"""
    days_in_month = calendar.monthrange(year, month)[1]
    stats = MonthStats(year=year, month=month, total_days=days_in_month)

    for day in range(1, days_in_month + 1):
        shift = get_shift_for_date(date(year, month, day))
        if shift is None:
            continue

        stats.shift_counts[shift] = stats.shift_counts.get(shift, 0) + 1
        times = SHIFT_TIMES[shift]
        if times:
            stats.total_work_hours += times.hours
            stats.work_days += 1
        else:
            stats.off_days += 1

    return stats


def register_fonts():
    """Register the Unicode fonts used by the PDF export, once per process"""
    if FONT_NAME in pdfmetrics.getRegisteredFontNames():
        return
    pdfmetrics.registerFont(TTFont(FONT_NAME, str(FONT_DIR / "DejaVuSans.ttf")))
    pdfmetrics.registerFont(TTFont(FONT_NAME_BOLD, str(FONT_DIR / "DejaVuSans-Bold.ttf")))
    # <b> inside paragraphs resolves through the family mapping
    addMapping(FONT_NAME, 0, 0, FONT_NAME)
    addMapping(FONT_NAME, 1, 0, FONT_NAME_BOLD)
    addMapping(FONT_NAME, 0, 1, FONT_NAME)
    addMapping(FONT_NAME, 1, 1, FONT_NAME_BOLD)


class ReportGenerator:
    """Main class for generating reports and exports"""

    def __init__(self, data_manager: DataManager):
        self.data_manager = data_manager
        self.styles = getSampleStyleSheet()
        self._setup_custom_styles()

    def _setup_custom_styles(self):
        """Setup custom report styles"""
        register_fonts()
        for style_name in ('Normal', 'BodyText'):
            self.styles[style_name].fontName = FONT_NAME

        self.styles.add(ParagraphStyle(
            name='CustomTitle',
            parent=self.styles['Heading1'],
            fontName=FONT_NAME_BOLD,
            fontSize=18,
            spaceAfter=30,
            alignment=1  # Center alignment
        ))

        self.styles.add(ParagraphStyle(
            name='CustomHeading',
            parent=self.styles['Heading2'],
            fontName=FONT_NAME_BOLD,
            fontSize=14,
            spaceAfter=12
        ))

    def get_month_stats(self, year: int, month: int) -> MonthStats:
        return calculate_month_stats(year, month, self.data_manager.get_shift_for_date)

    def _title_text(self, year: int, month: int) -> str:
        team = self.data_manager.get_current_team()
        title = f"Vardiya Takvimi - {MONTH_NAMES_TR[month]} {year}"
        if team:
            title += f" ({team})"
        return title

    def export_calendar_pdf(self, year: int, month: int, output_path: str) -> bool:
        """Export the monthly roster as a shareable PDF calendar"""
        try:
            doc = SimpleDocTemplate(
                output_path,
                pagesize=landscape(A4),
                rightMargin=0.5*inch,
                leftMargin=0.5*inch,
                topMargin=0.5*inch,
                bottomMargin=0.5*inch
            )

            story = []
            story.append(Paragraph(self._title_text(year, month), self.styles['CustomTitle']))
            story.append(Spacer(1, 20))

            story.append(self._create_calendar_table(year, month))

            story.append(Spacer(1, 20))
            story.append(self._create_legend())

            story.append(PageBreak())
            story.extend(self._create_statistics_content(year, month))

            doc.build(story)
            return True

        except Exception as e:
            logger.error(f"Error creating PDF: {e}", exc_info=True)
            return False

    def _month_weeks(self, year: int, month: int) -> List[List[int]]:
        # firstDayOfWeek preference: 1 = Monday, 0 = Sunday
        prefs = self.data_manager.get_preferences()
        first_weekday = calendar.MONDAY if prefs.first_day_of_week == 1 else calendar.SUNDAY
        return calendar.Calendar(firstweekday=first_weekday).monthdayscalendar(year, month)

    def _weekday_headers(self) -> List[str]:
        if self.data_manager.get_preferences().first_day_of_week == 1:
            return list(WEEKDAY_HEADERS_TR)
        return WEEKDAY_HEADERS_TR[-1:] + WEEKDAY_HEADERS_TR[:-1]

    def _create_calendar_table(self, year: int, month: int) -> Table:
        """Create the colored month grid"""
        weeks = self._month_weeks(year, month)
        data = [self._weekday_headers()]
        cell_styles = []

        for row_idx, week in enumerate(weeks, 1):
            week_data = []
            for col_idx, day in enumerate(week):
                if day == 0:
                    week_data.append('')
                    continue
                shift = self.data_manager.get_shift_for_date(date(year, month, day))
                week_data.append(self._format_calendar_cell(day, shift))
                if shift:
                    cell_styles.append(
                        ('BACKGROUND', (col_idx, row_idx), (col_idx, row_idx),
                         colors.HexColor(SHIFT_DISPLAY[shift].color))
                    )
            data.append(week_data)

        table = Table(data, colWidths=[1.3*inch]*7, rowHeights=[0.4*inch] + [0.9*inch]*len(weeks))
        table.setStyle(TableStyle([
            ('BACKGROUND', (0, 0), (-1, 0), colors.HexColor("#6366f1")),
            ('TEXTCOLOR', (0, 0), (-1, 0), colors.whitesmoke),
            ('ALIGN', (0, 0), (-1, -1), 'CENTER'),
            ('FONTNAME', (0, 0), (-1, -1), FONT_NAME),
            ('FONTNAME', (0, 0), (-1, 0), FONT_NAME_BOLD),
            ('FONTSIZE', (0, 0), (-1, 0), 10),
            ('BACKGROUND', (0, 1), (-1, -1), colors.HexColor("#f8fafc")),
            ('GRID', (0, 0), (-1, -1), 1, colors.HexColor("#e2e8f0")),
            ('FONTSIZE', (0, 1), (-1, -1), 9),
            ('VALIGN', (0, 0), (-1, -1), 'MIDDLE'),
        ] + cell_styles))

        return table

    def _format_calendar_cell(self, day: int, shift: Optional[ShiftType]) -> Paragraph:
        if shift is None:
            content = f"<b>{day}</b><br/>---"
        else:
            display = SHIFT_DISPLAY[shift]
            content = (
                f"<font color='{display.text_color}'><b>{day}</b><br/>"
                f"{display.label_short} - {display.label}</font>"
            )
        return Paragraph(content, self.styles['Normal'])

    def _create_legend(self) -> Table:
        """Create legend for PDF"""
        legend_data = [['Kod', 'Vardiya', 'Saat']]
        for shift in SHIFT_ORDER:
            display = SHIFT_DISPLAY[shift]
            times = SHIFT_TIMES[shift]
            legend_data.append([
                display.label_short,
                display.label,
                f"{times.start} - {times.end}" if times else "-"
            ])

        legend_table = Table(legend_data, colWidths=[0.6*inch, 1.6*inch, 1.4*inch])
        style = [
            ('BACKGROUND', (0, 0), (-1, 0), colors.lightgrey),
            ('FONTNAME', (0, 0), (-1, -1), FONT_NAME),
            ('FONTNAME', (0, 0), (-1, 0), FONT_NAME_BOLD),
            ('ALIGN', (0, 0), (-1, -1), 'LEFT'),
            ('FONTSIZE', (0, 0), (-1, -1), 9),
            ('GRID', (0, 0), (-1, -1), 1, colors.black),
        ]
        for i, shift in enumerate(SHIFT_ORDER, 1):
            style.append(('BACKGROUND', (0, i), (0, i), colors.HexColor(SHIFT_DISPLAY[shift].color)))
        legend_table.setStyle(TableStyle(style))

        return legend_table

    def _create_statistics_content(self, year: int, month: int) -> List:
        """Create statistics page for PDF"""
        content = []
        stats = self.get_month_stats(year, month)

        content.append(Paragraph("İstatistikler", self.styles['CustomTitle']))
        content.append(Spacer(1, 20))

        content.append(Paragraph("Özet", self.styles['CustomHeading']))
        summary_data = [
            ['Metrik', 'Değer'],
            ['Çalışma Saati', str(stats.total_work_hours)],
            ['İş Günü', str(stats.work_days)],
            ['İzin Günü', str(stats.off_days)],
            ['Veri Olmayan Gün', str(stats.total_days - stats.days_with_data)],
        ]
        summary_table = Table(summary_data, colWidths=[3*inch, 2*inch])
        summary_table.setStyle(TableStyle([
            ('BACKGROUND', (0, 0), (-1, 0), colors.grey),
            ('TEXTCOLOR', (0, 0), (-1, 0), colors.whitesmoke),
            ('ALIGN', (0, 0), (-1, -1), 'LEFT'),
            ('FONTNAME', (0, 0), (-1, -1), FONT_NAME),
            ('FONTNAME', (0, 0), (-1, 0), FONT_NAME_BOLD),
            ('GRID', (0, 0), (-1, -1), 1, colors.black),
        ]))
        content.append(summary_table)
        content.append(Spacer(1, 20))

        content.append(Paragraph("Vardiya Dağılımı", self.styles['CustomHeading']))
        if not stats.sorted_shifts:
            content.append(Paragraph("Bu ay için veri yok", self.styles['Normal']))
            return content

        distribution_data = [['Vardiya', 'Gün', 'Oran']]
        for shift in stats.sorted_shifts:
            distribution_data.append([
                SHIFT_DISPLAY[shift].label,
                str(stats.shift_counts[shift]),
                f"{stats.percentage_of_month(shift)}%"
            ])
        distribution_table = Table(distribution_data, colWidths=[2*inch, 1*inch, 1*inch])
        distribution_table.setStyle(TableStyle([
            ('BACKGROUND', (0, 0), (-1, 0), colors.grey),
            ('TEXTCOLOR', (0, 0), (-1, 0), colors.whitesmoke),
            ('ALIGN', (0, 0), (-1, -1), 'CENTER'),
            ('FONTNAME', (0, 0), (-1, -1), FONT_NAME),
            ('FONTNAME', (0, 0), (-1, 0), FONT_NAME_BOLD),
            ('GRID', (0, 0), (-1, -1), 1, colors.black),
        ]))
        content.append(distribution_table)

        return content

    def export_schedule_excel(self, year: int, month: int, output_path: str) -> bool:
        """Export the monthly roster and its statistics to Excel"""
        try:
            with pd.ExcelWriter(output_path, engine='openpyxl') as writer:
                schedule_df = self._create_schedule_dataframe(year, month)
                schedule_df.to_excel(writer, sheet_name='Schedule', index=False)

                stats_df = self._create_statistics_dataframe(year, month)
                stats_df.to_excel(writer, sheet_name='Statistics', index=False)

                self._format_excel_worksheets(writer)

            return True

        except Exception as e:
            logger.error(f"Error exporting to Excel: {e}", exc_info=True)
            return False

    def _create_schedule_dataframe(self, year: int, month: int) -> pd.DataFrame:
        """One row per day of the month with its effective shift"""
        overrides = self.data_manager.get_shift_overrides()
        days_in_month = calendar.monthrange(year, month)[1]

        data = []
        for day in range(1, days_in_month + 1):
            date_obj = date(year, month, day)
            shift = self.data_manager.get_shift_for_date(date_obj)
            times = SHIFT_TIMES[shift] if shift else None

            data.append({
                'Date': date_obj.isoformat(),
                'Day': date_obj.strftime("%A"),
                'Shift': SHIFT_DISPLAY[shift].label if shift else '',
                'Code': SHIFT_DISPLAY[shift].label_short if shift else '',
                'Start': times.start if times else '',
                'End': times.end if times else '',
                'Hours': times.hours if times else 0,
                'Override': date_obj.isoformat() in overrides,
            })

        return pd.DataFrame(data)

    def _create_statistics_dataframe(self, year: int, month: int) -> pd.DataFrame:
        stats = self.get_month_stats(year, month)

        data = []
        for shift in SHIFT_ORDER:
            data.append({
                'Shift': SHIFT_DISPLAY[shift].label,
                'Days': stats.shift_counts.get(shift, 0),
                'Percentage': stats.percentage_of_month(shift),
            })
        data.extend([
            {'Shift': 'Total Work Hours', 'Days': stats.total_work_hours, 'Percentage': None},
            {'Shift': 'Work Days', 'Days': stats.work_days, 'Percentage': None},
            {'Shift': 'Off Days', 'Days': stats.off_days, 'Percentage': None},
        ])

        return pd.DataFrame(data)

    def _format_excel_worksheets(self, writer):
        """Format Excel worksheets"""
        from openpyxl.styles import PatternFill, Font

        header_fill = PatternFill(start_color="6366F1", end_color="6366F1", fill_type="solid")
        header_font = Font(color="FFFFFF", bold=True)

        for worksheet in writer.sheets.values():
            for cell in worksheet[1]:
                cell.fill = header_fill
                cell.font = header_font

            # Auto-adjust column widths
            for column in worksheet.columns:
                max_length = max(len(str(cell.value)) if cell.value is not None else 0 for cell in column)
                worksheet.column_dimensions[column[0].column_letter].width = min(max_length + 2, 50)

    def export_schedule_csv(self, year: int, month: int, output_path: str) -> bool:
        """Export schedule to CSV format"""
        try:
            schedule_df = self._create_schedule_dataframe(year, month)
            schedule_df.to_csv(output_path, index=False)
            return True

        except Exception as e:
            logger.error(f"Error exporting to CSV: {e}", exc_info=True)
            return False

    def export_schedule_ics(self, year: int, month: int, output_path: str) -> bool:
        """Export the month's working shifts as calendar events"""
        days_in_month = calendar.monthrange(year, month)[1]
        result = export_shifts_to_calendar(
            date(year, month, 1), days_in_month, self.data_manager.get_shift_for_date,
            output_path=output_path
        )
        return result.success

    def create_dashboard_summary(self, year: int, month: int) -> str:
        """Create text summary for dashboard display"""
        stats = self.get_month_stats(year, month)
        system = self.data_manager.get_active_system()

        if system == ShiftSystem.SYSTEM_60:
            system_text = f"%60 (Takım {self.data_manager.get_team_60()})"
        elif system == ShiftSystem.SYSTEM_30:
            system_text = f"%30 (Takım {self.data_manager.get_team_30()})"
        else:
            system_text = "Seçilmedi"

        summary = f"""
VARDİYA ÖZETİ - {MONTH_NAMES_TR[month]} {year}

Sistem: {system_text}

Özet:
• Çalışma Saati: {stats.total_work_hours}
• İş Günü: {stats.work_days}
• İzin Günü: {stats.off_days}
• Toplam Gün: {stats.total_days}
        """.rstrip()

        if system == ShiftSystem.SYSTEM_30:
            completion = get_month_completion_percentage(year, month, self.data_manager.get_monthly_shifts())
            summary += f"\n• Girilen Günler: %{completion}"

        if stats.sorted_shifts:
            summary += "\n\nVardiya Dağılımı:"
            for shift in stats.sorted_shifts:
                summary += (
                    f"\n• {SHIFT_DISPLAY[shift].label}: {stats.shift_counts[shift]} gün "
                    f"({stats.percentage_of_month(shift)}%)"
                )
        else:
            summary += "\n\nBu ay için veri yok"

        return summary.strip()


class ExportManager:
    """Manager class for handling all export operations"""

    FORMATS = ('pdf', 'excel', 'csv', 'ics')

    def __init__(self, data_manager: DataManager):
        self.data_manager = data_manager
        self.report_generator = ReportGenerator(data_manager)

    def export_calendar(self, year: int, month: int, format_type: str, output_path: str) -> bool:
        """Export calendar in specified format"""
        format_type = format_type.lower()
        if format_type == 'pdf':
            return self.report_generator.export_calendar_pdf(year, month, output_path)
        elif format_type == 'excel':
            return self.report_generator.export_schedule_excel(year, month, output_path)
        elif format_type == 'csv':
            return self.report_generator.export_schedule_csv(year, month, output_path)
        elif format_type == 'ics':
            return self.report_generator.export_schedule_ics(year, month, output_path)
        else:
            raise ValueError(f"Unsupported format: {format_type}")

    def get_default_filename(self, year: int, month: int, format_type: str) -> str:
        """Generate default filename for export"""
        extension = 'xlsx' if format_type.lower() == 'excel' else format_type.lower()
        month_name = calendar.month_name[month].lower()
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")

        return f"shift_roster_{month_name}_{year}_{timestamp}.{extension}"

    def batch_export(self, year: int, month: int, output_dir: str,
                     formats: Optional[List[str]] = None) -> Dict[str, bool]:
        """Export the roster in multiple formats"""
        if formats is None:
            formats = list(self.FORMATS)

        results = {}
        output_path = Path(output_dir)
        output_path.mkdir(parents=True, exist_ok=True)

        for format_type in formats:
            file_path = output_path / self.get_default_filename(year, month, format_type)

            try:
                results[format_type] = self.export_calendar(year, month, format_type, str(file_path))
            except ValueError as e:
                logger.error(f"Error exporting {format_type}: {e}", exc_info=True)
                results[format_type] = False

        return results
