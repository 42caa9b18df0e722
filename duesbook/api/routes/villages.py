"""Villages: distinct village names with customer count and dues."""
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from duesbook.api.deps import get_current_user, get_db
from duesbook.models.user import User
from duesbook.schemas.customer import VillageSummary
from duesbook.services.customers import list_villages

router = APIRouter()


@router.get("", response_model=List[VillageSummary])
def villages(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    """Customers of one village: GET /customers?village=<name>."""
    return list_villages(db, current_user.id)
