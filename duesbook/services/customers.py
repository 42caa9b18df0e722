"""Customer records: CRUD, search, villages, dashboard and reconciliation.

All lookups are scoped to the owner; another owner's customer is reported
as not found.
"""
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from duesbook.core.audit import AuditLog
from duesbook.core.config import settings
from duesbook.core.exceptions import ConflictError, NotFoundError, ValidationError
from duesbook.db.unit_of_work import atomic
from duesbook.models.customer import Customer
from duesbook.models.transaction import Transaction
from duesbook.services import ledger

logger = logging.getLogger(__name__)

SORT_KEYS = {
    "name": func.lower(Customer.name),
    "village_name": func.lower(Customer.village_name),
    "outstanding_dues": Customer.outstanding_dues,
    "created_at": Customer.created_at,
}

EDITABLE_FIELDS = ("name", "village_name", "contact_number")


def clean_text(value: Optional[str], field: str, required: bool = True, max_length: int = 255) -> Optional[str]:
    """Collapse whitespace and enforce presence and length."""
    if value is None:
        if required:
            raise ValidationError(f"{field} is required", details={"field": field})
        return None
    value = " ".join(str(value).split())
    if not value:
        if required:
            raise ValidationError(f"{field} is required", details={"field": field})
        return None
    if len(value) > max_length:
        raise ValidationError(
            f"{field} must be at most {max_length} characters", details={"field": field}
        )
    return value


def _like_pattern(term: str) -> str:
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def get_customer(db: Session, owner_id: int, customer_id: int) -> Customer:
    customer = (
        db.query(Customer)
        .filter(Customer.id == customer_id, Customer.owner_id == owner_id)
        .first()
    )
    if not customer:
        raise NotFoundError("Customer", customer_id)
    return customer


def create_customer(
    db: Session,
    owner_id: int,
    name: str,
    village_name: str,
    contact_number: Optional[str] = None,
) -> Customer:
    """New customers start with zero dues; the balance only moves through transactions."""
    customer = Customer(
        owner_id=owner_id,
        name=clean_text(name, "name"),
        village_name=clean_text(village_name, "village_name"),
        contact_number=clean_text(contact_number, "contact_number", required=False, max_length=64),
        outstanding_dues=ledger.ZERO,
    )
    with atomic(db):
        db.add(customer)
    db.refresh(customer)

    logger.info(f"Created customer {customer.id} for owner {owner_id}")
    AuditLog.log_action(
        "create", "customer", customer.id, owner_id,
        changes={"name": customer.name, "village_name": customer.village_name},
    )
    return customer


def update_customer(
    db: Session,
    owner_id: int,
    customer_id: int,
    fields: Dict[str, Any],
    expected_version: Optional[int] = None,
) -> Customer:
    """Update name, village or contact number.

    outstanding_dues is not editable here. With expected_version the write
    only goes through if nobody changed the customer since the caller read it.
    """
    unknown = set(fields) - set(EDITABLE_FIELDS)
    if unknown:
        raise ValidationError(
            f"Fields cannot be updated: {', '.join(sorted(unknown))}",
            details={"fields": sorted(unknown)},
        )

    customer = get_customer(db, owner_id, customer_id)
    if expected_version is not None and customer.version != expected_version:
        raise ConflictError(
            "Customer was changed by another session. Reload and try again.",
            details={"expected_version": expected_version, "current_version": customer.version},
        )

    changes = {}
    if "name" in fields:
        changes["name"] = clean_text(fields["name"], "name")
    if "village_name" in fields:
        changes["village_name"] = clean_text(fields["village_name"], "village_name")
    if "contact_number" in fields:
        changes["contact_number"] = clean_text(
            fields["contact_number"], "contact_number", required=False, max_length=64
        )

    with atomic(db):
        for key, value in changes.items():
            setattr(customer, key, value)
    db.refresh(customer)

    if changes:
        AuditLog.log_action("update", "customer", customer.id, owner_id, changes=changes)
    return customer


def delete_customer(db: Session, owner_id: int, customer_id: int) -> None:
    """Delete a customer and, through the foreign key cascade, their transactions."""
    customer = get_customer(db, owner_id, customer_id)
    name = customer.name
    with atomic(db):
        db.delete(customer)

    logger.info(f"Deleted customer {customer_id} for owner {owner_id}")
    AuditLog.log_action("delete", "customer", customer_id, owner_id, changes={"name": name})


def list_customers(
    db: Session,
    owner_id: int,
    sort_key: str = "name",
    search: Optional[str] = None,
    village: Optional[str] = None,
    descending: bool = False,
) -> List[Customer]:
    """
    List customers ordered by sort_key.

    search matches a case-insensitive substring of the name or the village;
    village narrows to one village (case-insensitive exact match).
    """
    if sort_key not in SORT_KEYS:
        raise ValidationError(
            f"Unknown sort key {sort_key!r}. Use one of: {', '.join(SORT_KEYS)}",
            details={"field": "sort"},
        )

    q = db.query(Customer).filter(Customer.owner_id == owner_id)

    term = (search or "").strip()
    if term:
        pattern = _like_pattern(term)
        q = q.filter(
            Customer.name.ilike(pattern, escape="\\")
            | Customer.village_name.ilike(pattern, escape="\\")
        )

    village = (village or "").strip()
    if village:
        q = q.filter(func.lower(Customer.village_name) == village.lower())

    order = SORT_KEYS[sort_key]
    q = q.order_by(order.desc() if descending else order.asc(), Customer.id.asc())
    return q.all()


def list_villages(db: Session, owner_id: int) -> List[Dict[str, Any]]:
    """Village names with customer count and total dues.

    Spellings differing only in case count as one village, matching the
    case-insensitive village filter of list_customers.
    """
    village_key = func.lower(Customer.village_name)
    rows = (
        db.query(
            func.min(Customer.village_name),
            func.count(Customer.id),
            func.coalesce(func.sum(Customer.outstanding_dues), 0),
        )
        .filter(Customer.owner_id == owner_id, Customer.village_name != "")
        .group_by(village_key)
        .order_by(village_key)
        .all()
    )
    return [
        {
            "village_name": village_name,
            "customer_count": count,
            "total_dues": ledger.to_money(total),
        }
        for village_name, count, total in rows
    ]


def dashboard_summary(db: Session, owner_id: int, limit: Optional[int] = None) -> Dict[str, Any]:
    """Totals for the dashboard cards plus the latest transactions."""
    limit = limit or settings.RECENT_TRANSACTIONS_LIMIT

    total_customers, total_dues = (
        db.query(
            func.count(Customer.id),
            func.coalesce(func.sum(Customer.outstanding_dues), 0),
        )
        .filter(Customer.owner_id == owner_id)
        .one()
    )

    recent = (
        db.query(Transaction, Customer)
        .join(Customer, Transaction.customer_id == Customer.id)
        .filter(Customer.owner_id == owner_id)
        .order_by(Transaction.created_at.desc(), Transaction.id.desc())
        .limit(limit)
        .all()
    )

    return {
        "total_customers": total_customers or 0,
        "total_dues": ledger.to_money(total_dues),
        "recent_transactions": [
            {
                "id": t.id,
                "customer_id": c.id,
                "customer_name": c.name,
                "village_name": c.village_name,
                "type": t.type,
                "amount": abs(ledger.to_money(t.amount)),
                "description": t.description,
                "created_at": t.created_at,
            }
            for t, c in recent
        ],
    }


def reconcile_customer(db: Session, owner_id: int, customer_id: int, repair: bool = False) -> Dict[str, Any]:
    """Compare the stored balance with the balance derived from the transaction history.

    With repair=True a mismatch is fixed by rewriting the stored balance from
    the history in one UPDATE.
    """
    customer = get_customer(db, owner_id, customer_id)
    stored = ledger.to_money(customer.outstanding_dues)
    derived = ledger.derived_balance(db, customer_id)
    consistent = stored == derived
    repaired = False

    if not consistent:
        logger.warning(
            f"Customer {customer_id} dues out of balance: stored={stored} derived={derived}"
        )
        if repair:
            with atomic(db):
                ledger.recompute_dues(db, customer_id)
            repaired = True
            AuditLog.log_action(
                "reconcile", "customer", customer_id, owner_id,
                changes={"stored": stored, "derived": derived},
            )

    return {
        "customer_id": customer_id,
        "stored_dues": stored,
        "derived_dues": derived,
        "consistent": consistent,
        "repaired": repaired,
    }

