from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel


class TransactionCreate(BaseModel):
    """amount is what the shopkeeper typed (positive); type decides the sign."""
    type: str
    amount: Decimal
    description: Optional[str] = None


class TransactionUpdate(BaseModel):
    type: Optional[str] = None
    amount: Optional[Decimal] = None
    description: Optional[str] = None
    expected_version: Optional[int] = None


class TransactionResponse(BaseModel):
    id: int
    customer_id: int
    amount: Decimal  # signed: DEBIT > 0, CREDIT < 0
    type: str
    description: str
    version: int
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class RecentTransaction(BaseModel):
    id: int
    customer_id: int
    customer_name: str
    village_name: str
    type: str
    amount: Decimal  # unsigned, for display
    description: str
    created_at: Optional[datetime] = None


class DashboardSummary(BaseModel):
    total_customers: int
    total_dues: Decimal
    recent_transactions: List[RecentTransaction]
