"""Spreadsheet export formatting."""
import csv
import io
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import openpyxl

from duesbook.services.export import export_to_csv, export_to_spreadsheet


def read_workbook(content: bytes):
    assert content.startswith(b"PK")
    workbook = openpyxl.load_workbook(io.BytesIO(content))
    return workbook.active


def read_csv(content: bytes):
    assert content.startswith(b"\xef\xbb\xbf")
    return list(csv.reader(io.StringIO(content.decode("utf-8-sig"))))


def test_workbook_header_and_rows():
    content, filename = export_to_spreadsheet(
        [{"Name": "Anita", "Dues": Decimal("12.5")}, {"Name": "Bhola", "Dues": None}],
        "customers",
        sheet_title="Customers",
    )
    assert filename == "customers.xlsx"

    sheet = read_workbook(content)
    assert sheet.title == "Customers"
    assert [c.value for c in sheet[1]] == ["Name", "Dues"]
    assert sheet[1][0].font.bold is True
    assert sheet["A2"].value == "Anita"
    assert sheet["B2"].value == 12.5
    assert sheet["B2"].number_format == "#,##0.00"
    assert sheet["A3"].value == "Bhola"
    assert sheet["B3"].value is None
    assert sheet.max_row == 3


def test_workbook_explicit_columns_and_dates():
    ist = timezone(timedelta(hours=5, minutes=30))
    content, filename = export_to_spreadsheet(
        [{"Date": datetime(2024, 3, 1, 15, 0, tzinfo=ist), "Amount": Decimal("100"), "Extra": "x"}],
        "ledger.XLSX",
        columns=["Date", "Amount"],
    )
    assert filename == "ledger.XLSX"

    sheet = read_workbook(content)
    assert sheet.max_column == 2
    # Stored in UTC without a zone
    assert sheet["A2"].value == datetime(2024, 3, 1, 9, 30)
    assert sheet["B2"].value == 100


def test_workbook_with_no_rows():
    content, _ = export_to_spreadsheet([], "empty", columns=["Name"])
    sheet = read_workbook(content)
    assert [c.value for c in sheet[1]] == ["Name"]
    assert sheet.max_row == 1


def test_csv_columns_from_first_row_and_filename_suffix():
    content, filename = export_to_csv(
        [{"Name": "Anita", "Dues": Decimal("12.5")}, {"Name": "Bhola", "Dues": None}],
        "customers",
    )
    assert filename == "customers.csv"
    assert read_csv(content) == [["Name", "Dues"], ["Anita", "12.50"], ["Bhola", ""]]


def test_csv_explicit_columns_and_dates():
    content, filename = export_to_csv(
        [{"Date": datetime(2024, 3, 1, 9, 30), "Amount": Decimal("100"), "Extra": "x"}],
        "ledger.CSV",
        columns=["Date", "Amount"],
    )
    assert filename == "ledger.CSV"
    assert read_csv(content) == [["Date", "Amount"], ["2024-03-01 09:30", "100.00"]]


def test_csv_empty_rows():
    content, _ = export_to_csv([], "empty", columns=["Name"])
    assert read_csv(content) == [["Name"]]

    content, _ = export_to_csv([], "empty")
    assert read_csv(content) == []
