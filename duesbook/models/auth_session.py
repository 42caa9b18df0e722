"""
AuthSession: one row per sign-in.

The bearer token carries the session id; signing out stamps revoked_at,
which kills the token even before it expires.
"""
from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, ForeignKey, DateTime
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from duesbook.db.base import Base


def _aware(value: datetime) -> datetime:
    # SQLite hands back naive datetimes
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class AuthSession(Base):
    __tablename__ = "auth_sessions"

    id = Column(String(32), primary_key=True)  # uuid4 hex
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    expires_at = Column(DateTime(timezone=True), nullable=False)
    revoked_at = Column(DateTime(timezone=True), nullable=True)

    user = relationship("User", backref="sessions")

    def is_active(self, now: datetime = None) -> bool:
        now = now or datetime.now(timezone.utc)
        return self.revoked_at is None and _aware(self.expires_at) > now
