"""Spreadsheet export.

Excel workbooks through openpyxl, plus a CSV rendition (UTF-8 BOM so
spreadsheet apps pick the right encoding) for tools that want plain text.
"""
import csv
import io
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any, Iterable, List, Mapping, Optional, Sequence, Tuple

import openpyxl
from openpyxl.styles import Alignment, Font
from openpyxl.utils import get_column_letter

from duesbook.models.customer import Customer
from duesbook.models.transaction import Transaction

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
MONEY_FORMAT = "#,##0.00"
DATE_FORMAT = "YYYY-MM-DD HH:MM"


def _columns(rows: List[Mapping[str, Any]], columns: Optional[Sequence[str]]) -> List[str]:
    if columns is not None:
        return list(columns)
    return list(rows[0].keys()) if rows else []


def _with_suffix(filename: str, suffix: str) -> str:
    if not filename.lower().endswith(suffix):
        filename = f"{filename}{suffix}"
    return filename


def _excel_value(value: Any) -> Any:
    if isinstance(value, datetime) and value.tzinfo is not None:
        # Excel has no time zones
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    if isinstance(value, Decimal):
        return float(value)
    return value


def export_to_spreadsheet(
    rows: Iterable[Mapping[str, Any]],
    filename: str,
    columns: Optional[Sequence[str]] = None,
    sheet_title: str = "Sheet1",
) -> Tuple[bytes, str]:
    """Render rows as an .xlsx workbook.

    One bold header row, then one row per mapping. Columns come from
    `columns` or the first row's keys. Amounts are written as numbers with
    two decimals and datetimes as Excel dates. Returns the workbook bytes
    and the filename with an .xlsx suffix.
    """
    rows = list(rows)
    columns = _columns(rows, columns)

    workbook = openpyxl.Workbook()
    sheet = workbook.active
    sheet.title = sheet_title[:31]

    if columns:
        sheet.append(columns)
        for cell in sheet[1]:
            cell.font = Font(bold=True)
            cell.alignment = Alignment(horizontal="center")

    for row in rows:
        values = [row.get(col) for col in columns]
        sheet.append([_excel_value(v) for v in values])
        for cell, value in zip(sheet[sheet.max_row], values):
            if isinstance(value, Decimal):
                cell.number_format = MONEY_FORMAT
            elif isinstance(value, datetime):
                cell.number_format = DATE_FORMAT

    for index, col in enumerate(columns, start=1):
        width = max([len(str(col))] + [len(str(row.get(col) or "")) for row in rows])
        sheet.column_dimensions[get_column_letter(index)].width = width + 2

    output = io.BytesIO()
    workbook.save(output)
    return output.getvalue(), _with_suffix(filename, ".xlsx")


def _csv_cell(value: Any) -> Any:
    if value is None:
        return ""
    if isinstance(value, Decimal):
        return f"{value:.2f}"
    if isinstance(value, datetime):
        return value.strftime("%Y-%m-%d %H:%M")
    if isinstance(value, date):
        return value.isoformat()
    return value


def export_to_csv(
    rows: Iterable[Mapping[str, Any]],
    filename: str,
    columns: Optional[Sequence[str]] = None,
) -> Tuple[bytes, str]:
    """Same rows as CSV bytes and a .csv filename."""
    rows = list(rows)
    columns = _columns(rows, columns)

    output = io.StringIO()
    writer = csv.writer(output)
    if columns:
        writer.writerow(columns)
    for row in rows:
        writer.writerow([_csv_cell(row.get(col)) for col in columns])

    return output.getvalue().encode("utf-8-sig"), _with_suffix(filename, ".csv")


CUSTOMER_COLUMNS = ["Name", "Village", "Contact Number", "Outstanding Dues"]
TRANSACTION_COLUMNS = ["Date", "Type", "Amount", "Description"]


def customer_rows(customers: List[Customer]) -> List[dict]:
    return [
        {
            "Name": c.name,
            "Village": c.village_name,
            "Contact Number": c.contact_number,
            "Outstanding Dues": c.outstanding_dues,
        }
        for c in customers
    ]


def transaction_rows(transactions: List[Transaction]) -> List[dict]:
    # Amount is shown unsigned; the Type column carries the direction
    return [
        {
            "Date": t.created_at,
            "Type": t.type,
            "Amount": abs(t.amount),
            "Description": t.description,
        }
        for t in transactions
    ]
