"""FastAPI dependencies: DB session and the caller's sign-in session.

The bearer token is read from:
1. Authorization header (API clients)
2. httpOnly cookie (browser frontend)
"""
from typing import Generator, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from duesbook.core.config import settings
from duesbook.core.exceptions import BusinessError
from duesbook.db.session import SessionLocal
from duesbook.models.auth_session import AuthSession
from duesbook.models.user import User
from duesbook.services.auth import get_session

security = HTTPBearer(auto_error=False)


def get_db() -> Generator[Session, None, None]:
    """Get database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_token(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Optional[str]:
    """Header takes precedence over cookie."""
    if credentials:
        return credentials.credentials
    return request.cookies.get(settings.AUTH_COOKIE_NAME)


def get_optional_session(
    db: Session = Depends(get_db),
    token: Optional[str] = Depends(get_token),
) -> Optional[AuthSession]:
    return get_session(db, token)


def get_current_session(
    session: Optional[AuthSession] = Depends(get_optional_session),
) -> AuthSession:
    if session is None:
        raise BusinessError.unauthorized("missing, expired or revoked session")
    return session


def get_current_user(session: AuthSession = Depends(get_current_session)) -> User:
    return session.user
