"""
Export of generated schedules: flat rows, CSV, Excel and a PDF summary.
"""

import csv
import io
from typing import List, Sequence

import openpyxl
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4, landscape
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.lib.units import cm
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from entities import DaySchedule, ScheduleConfig, TaskSummary, DEFAULT_CONFIG
from solver import personnel_sort_key
from summary import YearlySchedule

EXPORT_HEADERS = ("Tarih", "Personel", "Vardiya", "İstasyon")
EXCEL_SHEET_TITLE = "Vardiya Çizelgesi"


def flatten_schedule(days: Sequence[DaySchedule]) -> List[List[str]]:
    """
    One row per assignment: date, personnel, shift label, station.

    Station is empty for records without a station.
    """
    rows = []
    for day in days:
        for assignment in day.assignments:
            rows.append([
                day.date_str,
                assignment.personnel,
                assignment.shift.value,
                assignment.station or "",
            ])
    return rows


def export_csv(days: Sequence[DaySchedule]) -> str:
    """Flattened schedule as CSV text with a header row"""
    output = io.StringIO()
    writer = csv.writer(output, lineterminator="\n")
    writer.writerow(EXPORT_HEADERS)
    writer.writerows(flatten_schedule(days))
    csv_data = output.getvalue()
    output.close()
    return csv_data


def export_excel(days: Sequence[DaySchedule]) -> io.BytesIO:
    """
    Flattened schedule as an .xlsx workbook.

    Returns:
        BytesIO positioned at the start of the workbook
    """
    wb = openpyxl.Workbook()
    ws = wb.active
    ws.title = EXCEL_SHEET_TITLE

    ws.append(list(EXPORT_HEADERS))

    # Style header row
    header_font = Font(bold=True, color="FFFFFF", size=10)
    header_fill = PatternFill(start_color="4CAF50", end_color="4CAF50", fill_type="solid")
    header_alignment = Alignment(horizontal="center", vertical="center")
    border = Border(
        left=Side(style='thin'),
        right=Side(style='thin'),
        top=Side(style='thin'),
        bottom=Side(style='thin')
    )
    for cell in ws[1]:
        cell.font = header_font
        cell.fill = header_fill
        cell.alignment = header_alignment
        cell.border = border

    for row in flatten_schedule(days):
        ws.append(row)

    for col_letter, width in zip("ABCD", (12, 20, 14, 14)):
        ws.column_dimensions[col_letter].width = width
    ws.freeze_panes = "A2"

    output = io.BytesIO()
    wb.save(output)
    output.seek(0)
    return output


def _summary_table_data(summary: TaskSummary, config: ScheduleConfig) -> List[List[str]]:
    stations = list(config.stations)
    extra = sorted({s for entry in summary.values() for s in entry.stations} - set(stations))
    columns = stations + extra

    data = [["Personel", "Toplam", *columns]]
    for personnel in sorted(summary, key=personnel_sort_key):
        entry = summary[personnel]
        data.append([personnel, str(entry.total), *(str(entry.station_count(s)) for s in columns)])
    return data


def _styled_table(data: List[List[str]]) -> Table:
    table = Table(data, repeatRows=1)
    table.setStyle(TableStyle([
        ('BACKGROUND', (0, 0), (-1, 0), colors.HexColor('#4CAF50')),
        ('TEXTCOLOR', (0, 0), (-1, 0), colors.white),
        ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
        ('FONTSIZE', (0, 0), (-1, -1), 8),
        ('ALIGN', (1, 0), (-1, -1), 'CENTER'),
        ('GRID', (0, 0), (-1, -1), 0.5, colors.grey),
        ('ROWBACKGROUNDS', (0, 1), (-1, -1), [colors.white, colors.HexColor('#F3F4F6')]),
    ]))
    return table


def export_summary_pdf(yearly: YearlySchedule, config: ScheduleConfig = DEFAULT_CONFIG) -> io.BytesIO:
    """
    Yearly and monthly task summaries as a PDF document.

    Returns:
        BytesIO positioned at the start of the PDF
    """
    buffer = io.BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=landscape(A4),
        leftMargin=1 * cm,
        rightMargin=1 * cm,
        topMargin=1 * cm,
        bottomMargin=1 * cm
    )
    styles = getSampleStyleSheet()
    elements = []

    elements.append(Paragraph("Vardiya Özeti - Yıllık", styles['Title']))
    elements.append(_styled_table(_summary_table_data(yearly.yearly_summary, config)))

    for month in yearly.months:
        elements.append(Spacer(1, 0.5 * cm))
        elements.append(Paragraph(month.label, styles['Heading2']))
        elements.append(_styled_table(_summary_table_data(month.summary, config)))

    doc.build(elements)
    buffer.seek(0)
    return buffer
