"""Transactions: list, edit and delete. Creation lives under /customers/{id}/transactions."""
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from duesbook.api.deps import get_current_user, get_db
from duesbook.models.user import User
from duesbook.schemas.transaction import TransactionResponse, TransactionUpdate
from duesbook.services import transactions as transaction_service

router = APIRouter()


@router.get("", response_model=List[TransactionResponse])
def list_transactions(
    customer_id: Optional[int] = Query(None),
    limit: Optional[int] = Query(None, ge=1, le=500),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Newest first, optionally for one customer."""
    return transaction_service.list_transactions(
        db, current_user.id, customer_id=customer_id, limit=limit
    )


@router.get("/{transaction_id}", response_model=TransactionResponse)
def get_transaction(
    transaction_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return transaction_service.get_transaction(db, current_user.id, transaction_id)


@router.patch("/{transaction_id}", response_model=TransactionResponse)
def update_transaction(
    transaction_id: int,
    data: TransactionUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Edit type, amount or description. The customer's dues move by the difference."""
    fields = data.model_dump(exclude_unset=True, exclude={"expected_version"})
    return transaction_service.update_transaction(
        db, current_user.id, transaction_id, fields, expected_version=data.expected_version
    )


@router.delete("/{transaction_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_transaction(
    transaction_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    transaction_service.delete_transaction(db, current_user.id, transaction_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
