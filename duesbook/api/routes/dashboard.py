"""Dashboard cards: customer count, total dues, latest transactions."""
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from duesbook.api.deps import get_current_user, get_db
from duesbook.models.user import User
from duesbook.schemas.transaction import DashboardSummary
from duesbook.services.customers import dashboard_summary

router = APIRouter()


@router.get("", response_model=DashboardSummary)
def dashboard(
    limit: Optional[int] = Query(None, ge=1, le=50, description="Number of recent transactions"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return dashboard_summary(db, current_user.id, limit=limit)
