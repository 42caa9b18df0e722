"""Spreadsheet downloads: Excel workbooks (.xlsx) and CSV."""
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from duesbook.api.deps import get_current_user, get_db
from duesbook.models.user import User
from duesbook.services import customers as customer_service
from duesbook.services import transactions as transaction_service
from duesbook.services.export import (
    CUSTOMER_COLUMNS,
    TRANSACTION_COLUMNS,
    XLSX_MEDIA_TYPE,
    customer_rows,
    export_to_csv,
    export_to_spreadsheet,
    transaction_rows,
)

router = APIRouter()

CSV_MEDIA_TYPE = "text/csv; charset=utf-8"


def _attachment(content: bytes, filename: str, media_type: str) -> StreamingResponse:
    return StreamingResponse(
        iter([content]),
        media_type=media_type,
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )


def _customer_export(db: Session, owner_id: int, search: Optional[str], village: Optional[str]) -> List[dict]:
    customers = customer_service.list_customers(db, owner_id, search=search, village=village)
    return customer_rows(customers)


def _transaction_export(db: Session, owner_id: int, customer_id: int) -> List[dict]:
    customer_service.get_customer(db, owner_id, customer_id)
    transactions = transaction_service.list_transactions(db, owner_id, customer_id=customer_id)
    return transaction_rows(transactions)


@router.get("/customers.xlsx")
def export_customers_xlsx(
    search: Optional[str] = Query(None),
    village: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Customer list as shown on the customers page, with the same filters."""
    rows = _customer_export(db, current_user.id, search, village)
    content, filename = export_to_spreadsheet(
        rows, f"customers_{date.today()}", columns=CUSTOMER_COLUMNS, sheet_title="Customers"
    )
    return _attachment(content, filename, XLSX_MEDIA_TYPE)


@router.get("/customers.csv")
def export_customers_csv(
    search: Optional[str] = Query(None),
    village: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    rows = _customer_export(db, current_user.id, search, village)
    content, filename = export_to_csv(rows, f"customers_{date.today()}", columns=CUSTOMER_COLUMNS)
    return _attachment(content, filename, CSV_MEDIA_TYPE)


@router.get("/customers/{customer_id}/transactions.xlsx")
def export_customer_transactions_xlsx(
    customer_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    rows = _transaction_export(db, current_user.id, customer_id)
    content, filename = export_to_spreadsheet(
        rows,
        f"transactions_{customer_id}_{date.today()}",
        columns=TRANSACTION_COLUMNS,
        sheet_title="Transactions",
    )
    return _attachment(content, filename, XLSX_MEDIA_TYPE)


@router.get("/customers/{customer_id}/transactions.csv")
def export_customer_transactions_csv(
    customer_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    rows = _transaction_export(db, current_user.id, customer_id)
    content, filename = export_to_csv(
        rows, f"transactions_{customer_id}_{date.today()}", columns=TRANSACTION_COLUMNS
    )
    return _attachment(content, filename, CSV_MEDIA_TYPE)
