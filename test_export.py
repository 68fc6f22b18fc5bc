"""
Tests for schedule export (CSV, Excel, PDF).
"""

import csv
import io

import openpyxl

from data_loader import generate_sample_data
from schedule_export import (
    EXCEL_SHEET_TITLE, EXPORT_HEADERS, export_csv, export_excel,
    export_summary_pdf, flatten_schedule
)
from solver import generate_schedule
from summary import process_yearly_schedule


def sample_days():
    state = generate_sample_data()
    return state, generate_schedule(state)


def test_flatten_one_row_per_assignment():
    _, days = sample_days()
    rows = flatten_schedule(days)

    assert len(rows) == sum(len(d.assignments) for d in days)
    assert rows[0][0] == "2025-12-01"
    assert ["2025-12-15", "Berfin", "Yıllık İzin", ""] in rows
    assert ["2025-12-15", "Emir", "GECE", "Planlama"] in rows


def test_csv_export():
    _, days = sample_days()
    content = export_csv(days)
    rows = list(csv.reader(io.StringIO(content)))

    assert tuple(rows[0]) == EXPORT_HEADERS
    assert len(rows) == 1 + len(flatten_schedule(days))


def test_excel_export():
    _, days = sample_days()
    workbook = openpyxl.load_workbook(export_excel(days))
    sheet = workbook[EXCEL_SHEET_TITLE]

    header = [cell.value for cell in sheet[1]]
    assert header == list(EXPORT_HEADERS)
    assert sheet.max_row == 1 + len(flatten_schedule(days))
    assert sheet.cell(row=2, column=1).value == "2025-12-01"


def test_pdf_export():
    state, days = sample_days()
    yearly = process_yearly_schedule(days, state.personnel)
    content = export_summary_pdf(yearly).getvalue()

    assert content.startswith(b"%PDF")
    assert len(content) > 1000
