"""
Ledger Update Rule.

A customer's outstanding_dues must equal the sum of the signed amounts of
their transactions. Every transaction write moves the balance by a delta:

    new transaction      balance + signed
    edited transaction   balance - old_signed + new_signed
    deleted transaction  balance - signed

The pure functions compute those values; adjust_dues applies a delta
inside the caller's database transaction as a single UPDATE, so there is
no read-modify-write window for a second session to race into.
"""
import logging
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Iterable

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from duesbook.core.exceptions import NotFoundError, ValidationError
from duesbook.models.customer import Customer
from duesbook.models.transaction import Transaction, TransactionType

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")
ZERO = Decimal("0.00")
# Largest value a Numeric(12, 2) column holds
MAX_AMOUNT = Decimal("9999999999.99")


def to_money(value) -> Decimal:
    """Parse an amount into a two-place fixed-point Decimal.

    Accepts Decimal, int, str and float (floats go through str() so 0.1
    stays 0.10). Raises ValidationError for anything else.
    """
    if isinstance(value, bool) or value is None:
        raise ValidationError("Amount is required", details={"field": "amount"})
    try:
        amount = Decimal(str(value).strip())
        if not amount.is_finite():
            raise InvalidOperation(value)
        # More digits than the context precision also raise InvalidOperation
        return amount.quantize(CENT, rounding=ROUND_HALF_UP)
    except (InvalidOperation, ValueError):
        raise ValidationError(f"Invalid amount: {value!r}", details={"field": "amount"})


def parse_type(value) -> TransactionType:
    try:
        return TransactionType(str(value).strip().upper())
    except ValueError:
        raise ValidationError(
            f"Transaction type must be DEBIT or CREDIT, got {value!r}",
            details={"field": "type"},
        )


def signed_amount(txn_type, magnitude) -> Decimal:
    """Convert a user-entered positive amount and a type into the stored signed amount.

    DEBIT (purchase) is positive, CREDIT (payment) is negative.
    """
    txn_type = parse_type(txn_type)
    amount = to_money(magnitude)
    if amount <= ZERO:
        raise ValidationError("Amount must be greater than zero", details={"field": "amount"})
    if amount > MAX_AMOUNT:
        raise ValidationError(
            f"Amount must not exceed {MAX_AMOUNT}", details={"field": "amount", "max": str(MAX_AMOUNT)}
        )
    return amount if txn_type is TransactionType.DEBIT else -amount


def apply_new(balance, signed) -> Decimal:
    return to_money(balance) + to_money(signed)


def apply_edit(balance, old_signed, new_signed) -> Decimal:
    return to_money(balance) - to_money(old_signed) + to_money(new_signed)


def apply_delete(balance, signed) -> Decimal:
    return to_money(balance) - to_money(signed)


def balance_from_history(signed_amounts: Iterable) -> Decimal:
    return sum((to_money(a) for a in signed_amounts), ZERO)


def _expire_loaded(db: Session, customer_id: int) -> None:
    # Loaded instances still hold the old balance and version
    customer = db.identity_map.get(db.identity_key(Customer, customer_id))
    if customer is not None:
        db.expire(customer, ["outstanding_dues", "version"])


def adjust_dues(db: Session, customer_id: int, delta: Decimal) -> None:
    """Move a customer's balance by delta with a server-side increment.

    Does not commit: the caller commits together with the transaction row,
    or rolls both back.
    """
    delta = to_money(delta)
    result = db.execute(
        update(Customer)
        .where(Customer.id == customer_id)
        .values(
            outstanding_dues=Customer.outstanding_dues + delta,
            version=Customer.version + 1,
        )
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        raise NotFoundError("Customer", customer_id)

    _expire_loaded(db, customer_id)
    logger.debug(f"Adjusted dues of customer {customer_id} by {delta}")


def derived_balance(db: Session, customer_id: int) -> Decimal:
    """Balance recomputed from the transaction history."""
    total = db.execute(
        select(func.coalesce(func.sum(Transaction.amount), 0)).where(
            Transaction.customer_id == customer_id
        )
    ).scalar()
    return to_money(total)


def recompute_dues(db: Session, customer_id: int) -> None:
    """Overwrite the stored balance with the sum of the history, in one statement."""
    history_sum = (
        select(func.coalesce(func.sum(Transaction.amount), 0))
        .where(Transaction.customer_id == customer_id)
        .scalar_subquery()
    )
    result = db.execute(
        update(Customer)
        .where(Customer.id == customer_id)
        .values(outstanding_dues=history_sum, version=Customer.version + 1)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        raise NotFoundError("Customer", customer_id)
    _expire_loaded(db, customer_id)
