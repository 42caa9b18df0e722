"""Debit and credit entries. Every write here also moves the customer's dues.

The transaction row and the dues adjustment are committed together by
atomic(); if either fails neither is persisted.
"""
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from duesbook.core.audit import AuditLog
from duesbook.core.config import settings
from duesbook.core.exceptions import ConflictError, NotFoundError, ValidationError
from duesbook.db.unit_of_work import atomic
from duesbook.models.customer import Customer
from duesbook.models.transaction import Transaction
from duesbook.services import ledger
from duesbook.services.customers import get_customer

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = ("type", "amount", "description")


def clean_description(value: Optional[str]) -> str:
    text = " ".join((value or "").split())
    if not text:
        return settings.DEFAULT_DESCRIPTION
    if len(text) > 512:
        raise ValidationError("description must be at most 512 characters", details={"field": "description"})
    return text


def get_transaction(db: Session, owner_id: int, transaction_id: int) -> Transaction:
    txn = (
        db.query(Transaction)
        .join(Customer, Transaction.customer_id == Customer.id)
        .filter(Transaction.id == transaction_id, Customer.owner_id == owner_id)
        .first()
    )
    if not txn:
        raise NotFoundError("Transaction", transaction_id)
    return txn


def create_transaction(
    db: Session,
    owner_id: int,
    customer_id: int,
    txn_type: str,
    amount,
    description: Optional[str] = None,
) -> Transaction:
    """Record a debit or credit and move the customer's dues by its signed amount.

    amount is the unsigned value the shopkeeper typed; the sign comes from txn_type.
    """
    signed = ledger.signed_amount(txn_type, amount)
    get_customer(db, owner_id, customer_id)

    txn = Transaction(
        customer_id=customer_id,
        amount=signed,
        type=ledger.parse_type(txn_type).value,
        description=clean_description(description),
    )
    with atomic(db):
        db.add(txn)
        db.flush()
        ledger.adjust_dues(db, customer_id, signed)
    db.refresh(txn)

    logger.info(f"Recorded {txn.type} {abs(signed)} for customer {customer_id} (transaction {txn.id})")
    AuditLog.log_action(
        "create", "transaction", txn.id, owner_id,
        changes={"customer_id": customer_id, "amount": signed, "type": txn.type},
    )
    return txn


def update_transaction(
    db: Session,
    owner_id: int,
    transaction_id: int,
    fields: Dict[str, Any],
    expected_version: Optional[int] = None,
) -> Transaction:
    """Edit type, amount or description; dues move by new_signed - old_signed.

    Missing type or amount keep their current value, so changing only the
    type of a 100 DEBIT turns it into a 100 CREDIT.
    """
    unknown = set(fields) - set(EDITABLE_FIELDS)
    if unknown:
        raise ValidationError(
            f"Fields cannot be updated: {', '.join(sorted(unknown))}",
            details={"fields": sorted(unknown)},
        )

    txn = get_transaction(db, owner_id, transaction_id)
    if expected_version is not None and txn.version != expected_version:
        raise ConflictError(
            "Transaction was changed by another session. Reload and try again.",
            details={"expected_version": expected_version, "current_version": txn.version},
        )

    old_signed = ledger.to_money(txn.amount)
    new_type = fields["type"] if fields.get("type") is not None else txn.type
    new_magnitude = fields["amount"] if fields.get("amount") is not None else abs(old_signed)
    new_signed = ledger.signed_amount(new_type, new_magnitude)
    delta = ledger.apply_edit(ledger.ZERO, old_signed, new_signed)

    with atomic(db):
        txn.amount = new_signed
        txn.type = ledger.parse_type(new_type).value
        if "description" in fields:
            txn.description = clean_description(fields["description"])
        # Flushing first checks the version counter before the dues move
        db.flush()
        if delta != ledger.ZERO:
            ledger.adjust_dues(db, txn.customer_id, delta)
    db.refresh(txn)

    AuditLog.log_action(
        "update", "transaction", txn.id, owner_id,
        changes={"customer_id": txn.customer_id, "old_amount": old_signed, "new_amount": new_signed},
    )
    return txn


def delete_transaction(db: Session, owner_id: int, transaction_id: int) -> None:
    """Remove a transaction and take its signed amount back out of the dues."""
    txn = get_transaction(db, owner_id, transaction_id)
    signed = ledger.to_money(txn.amount)
    customer_id = txn.customer_id

    with atomic(db):
        db.delete(txn)
        db.flush()
        ledger.adjust_dues(db, customer_id, ledger.apply_delete(ledger.ZERO, signed))

    logger.info(f"Deleted transaction {transaction_id} of customer {customer_id}")
    AuditLog.log_action(
        "delete", "transaction", transaction_id, owner_id,
        changes={"customer_id": customer_id, "amount": signed},
    )


def list_transactions(
    db: Session,
    owner_id: int,
    customer_id: Optional[int] = None,
    limit: Optional[int] = None,
) -> List[Transaction]:
    """Newest first. Scoped to one customer when customer_id is given."""
    q = (
        db.query(Transaction)
        .join(Customer, Transaction.customer_id == Customer.id)
        .filter(Customer.owner_id == owner_id)
    )
    if customer_id is not None:
        get_customer(db, owner_id, customer_id)
        q = q.filter(Transaction.customer_id == customer_id)
    q = q.order_by(Transaction.created_at.desc(), Transaction.id.desc())
    if limit:
        q = q.limit(limit)
    return q.all()
