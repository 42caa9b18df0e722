from decimal import Decimal

from sqlalchemy import Column, Integer, String, ForeignKey, Numeric, DateTime
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from duesbook.db.base import Base


class Customer(Base):
    __tablename__ = "customers"

    id = Column(Integer, primary_key=True, index=True)
    owner_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    village_name = Column(String(255), nullable=False, index=True)
    contact_number = Column(String(64), nullable=True)
    # Written only through services.ledger.adjust_dues
    outstanding_dues = Column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))
    version = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    owner = relationship("User", backref="customers")
    transactions = relationship(
        "Transaction",
        back_populates="customer",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="[Transaction.created_at.desc(), Transaction.id.desc()]",
    )

    __mapper_args__ = {"version_id_col": version}
