"""Customers: CRUD, search/sort, detail with history, reconciliation."""
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from duesbook.api.deps import get_current_user, get_db
from duesbook.models.user import User
from duesbook.schemas.customer import (
    CustomerCreate,
    CustomerDetail,
    CustomerResponse,
    CustomerUpdate,
    ReconcileResponse,
)
from duesbook.schemas.transaction import TransactionCreate, TransactionResponse
from duesbook.services import customers as customer_service
from duesbook.services import transactions as transaction_service

router = APIRouter()


@router.get("", response_model=List[CustomerResponse])
def list_customers(
    sort: str = Query("name", description="name | village_name | outstanding_dues | created_at"),
    desc: bool = Query(False),
    search: Optional[str] = Query(None, description="Substring of name or village, any case"),
    village: Optional[str] = Query(None, description="Only customers of this village"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return customer_service.list_customers(
        db, current_user.id, sort_key=sort, search=search, village=village, descending=desc
    )


@router.post("", response_model=CustomerResponse, status_code=status.HTTP_201_CREATED)
def create_customer(
    data: CustomerCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return customer_service.create_customer(
        db, current_user.id, data.name, data.village_name, data.contact_number
    )


@router.get("/{customer_id}", response_model=CustomerDetail)
def get_customer(
    customer_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Customer with their transactions, newest first."""
    return customer_service.get_customer(db, current_user.id, customer_id)


@router.patch("/{customer_id}", response_model=CustomerResponse)
def update_customer(
    customer_id: int,
    data: CustomerUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    fields = data.model_dump(exclude_unset=True, exclude={"expected_version"})
    return customer_service.update_customer(
        db, current_user.id, customer_id, fields, expected_version=data.expected_version
    )


@router.delete("/{customer_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_customer(
    customer_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    customer_service.delete_customer(db, current_user.id, customer_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{customer_id}/transactions", response_model=List[TransactionResponse])
def list_customer_transactions(
    customer_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return transaction_service.list_transactions(db, current_user.id, customer_id=customer_id)


@router.post(
    "/{customer_id}/transactions",
    response_model=TransactionResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_transaction(
    customer_id: int,
    data: TransactionCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Record a DEBIT (purchase) or CREDIT (payment). Dues move in the same commit."""
    return transaction_service.create_transaction(
        db, current_user.id, customer_id, data.type, data.amount, data.description
    )


@router.get("/{customer_id}/reconcile", response_model=ReconcileResponse)
def check_customer_balance(
    customer_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Compare stored dues with the sum of the transaction history."""
    return customer_service.reconcile_customer(db, current_user.id, customer_id)


@router.post("/{customer_id}/reconcile", response_model=ReconcileResponse)
def repair_customer_balance(
    customer_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Rewrite stored dues from the history if they disagree."""
    return customer_service.reconcile_customer(db, current_user.id, customer_id, repair=True)
