"""
Transaction: one debit (purchase) or credit (payment) on a customer's account.

amount is stored signed: DEBIT > 0, CREDIT < 0. The type column must agree
with the sign; services.ledger.signed_amount is the only place that converts.
"""
import enum

from sqlalchemy import Column, Integer, String, ForeignKey, Numeric, DateTime
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from duesbook.db.base import Base


class TransactionType(str, enum.Enum):
    DEBIT = "DEBIT"  # purchase on credit, increases dues
    CREDIT = "CREDIT"  # payment, decreases dues


class Transaction(Base):
    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True, index=True)
    customer_id = Column(Integer, ForeignKey("customers.id", ondelete="CASCADE"), nullable=False, index=True)
    amount = Column(Numeric(12, 2), nullable=False)
    type = Column(String(6), nullable=False)
    description = Column(String(512), nullable=False)
    version = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    customer = relationship("Customer", back_populates="transactions")

    __mapper_args__ = {"version_id_col": version}
