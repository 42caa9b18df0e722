from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel

from duesbook.schemas.transaction import TransactionResponse


class CustomerCreate(BaseModel):
    name: str
    village_name: str
    contact_number: Optional[str] = None


class CustomerUpdate(BaseModel):
    """Partial update. outstanding_dues is deliberately absent."""
    name: Optional[str] = None
    village_name: Optional[str] = None
    contact_number: Optional[str] = None
    # Compare-and-set: reject the write if the customer changed since this version
    expected_version: Optional[int] = None


class CustomerResponse(BaseModel):
    id: int
    name: str
    village_name: str
    contact_number: Optional[str] = None
    outstanding_dues: Decimal
    version: int
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class CustomerDetail(CustomerResponse):
    transactions: List[TransactionResponse] = []


class ReconcileResponse(BaseModel):
    customer_id: int
    stored_dues: Decimal
    derived_dues: Decimal
    consistent: bool
    repaired: bool


class VillageSummary(BaseModel):
    village_name: str
    customer_count: int
    total_dues: Decimal
