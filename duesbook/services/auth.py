"""
Shopkeeper accounts and sign-in sessions.

A session is an explicit AuthSession row. Route handlers receive it from
the get_current_session dependency instead of reading global state.
"""
import logging
import uuid
from datetime import datetime, timezone
from typing import Optional, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from duesbook.core.audit import AuditLog
from duesbook.core.config import settings
from duesbook.core.exceptions import AuthenticationError, ConflictError, ValidationError
from duesbook.core.security import (
    create_access_token,
    decode_access_token,
    get_password_hash,
    session_expiry,
    verify_password,
)
from duesbook.db.unit_of_work import atomic
from duesbook.models.auth_session import AuthSession
from duesbook.models.user import User

logger = logging.getLogger(__name__)


def _normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def register(db: Session, email: str, password: str, name: Optional[str] = None) -> User:
    email = _normalize_email(email)
    if not email:
        raise ValidationError("email is required", details={"field": "email"})
    if len(password or "") < settings.MIN_PASSWORD_LENGTH:
        raise ValidationError(
            f"Password must be at least {settings.MIN_PASSWORD_LENGTH} characters",
            details={"field": "password"},
        )
    if db.query(User).filter(User.email == email).first():
        raise ConflictError("Email already registered")

    user = User(email=email, hashed_password=get_password_hash(password), name=name)
    try:
        with atomic(db):
            db.add(user)
    except IntegrityError:
        # Lost a race with a concurrent registration of the same email
        raise ConflictError("Email already registered")
    db.refresh(user)

    AuditLog.log_authentication("register", email, True)
    return user


def sign_in(db: Session, email: str, password: str) -> Tuple[str, AuthSession]:
    """Check credentials and open a new session. Returns (token, session)."""
    email = _normalize_email(email)
    user = db.query(User).filter(User.email == email).first()
    if not user or not verify_password(password or "", user.hashed_password):
        AuditLog.log_authentication("failed_login", email, False, reason="invalid credentials")
        raise AuthenticationError("invalid credentials")

    expires_at = session_expiry()
    session = AuthSession(id=uuid.uuid4().hex, user_id=user.id, expires_at=expires_at)
    with atomic(db):
        db.add(session)
    db.refresh(session)

    token = create_access_token(subject=str(user.id), session_id=session.id, expires_at=expires_at)
    AuditLog.log_authentication("login", email, True)
    return token, session


def get_session(db: Session, token: Optional[str]) -> Optional[AuthSession]:
    """Resolve a bearer token to its live session, or None."""
    if not token:
        return None
    claims = decode_access_token(token)
    if not claims:
        return None

    session = db.query(AuthSession).filter(AuthSession.id == claims["sid"]).first()
    if not session or str(session.user_id) != str(claims["sub"]):
        return None
    if not session.is_active():
        return None
    return session


def sign_out(db: Session, session: AuthSession) -> None:
    """Revoke the session; its token stops working immediately."""
    if session.revoked_at is not None:
        return
    with atomic(db):
        session.revoked_at = datetime.now(timezone.utc)

    AuditLog.log_authentication("logout", session.user.email, True)
