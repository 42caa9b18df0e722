"""Auth: register, sign in, sign out and session lookup.

- Passwords hashed with bcrypt
- Token returned in the body and set as an httpOnly, SameSite cookie
- Sign-out revokes the server-side session, not just the cookie
"""
from typing import Optional

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from duesbook.api.deps import get_current_session, get_db, get_optional_session
from duesbook.core.config import settings
from duesbook.models.auth_session import AuthSession
from duesbook.schemas.user import SessionResponse, Token, UserCreate, UserLogin, UserResponse
from duesbook.services import auth as auth_service

router = APIRouter()


@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def register(data: UserCreate, db: Session = Depends(get_db)):
    """Create a shopkeeper account."""
    return auth_service.register(db, data.email, data.password, data.name)


@router.post("/login", response_model=Token)
def login(data: UserLogin, response: Response, db: Session = Depends(get_db)):
    """
    Sign in. Generic 401 on any mismatch so callers cannot enumerate accounts.
    """
    token, session = auth_service.sign_in(db, data.email, data.password)

    response.set_cookie(
        key=settings.AUTH_COOKIE_NAME,
        value=token,
        max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        secure=settings.SECURE_COOKIES,
        httponly=True,
        samesite=settings.SAME_SITE_COOKIE,
    )
    return Token(access_token=token, expires_at=session.expires_at)


@router.post("/logout")
def logout(
    response: Response,
    db: Session = Depends(get_db),
    session: AuthSession = Depends(get_current_session),
):
    auth_service.sign_out(db, session)
    response.delete_cookie(
        key=settings.AUTH_COOKIE_NAME,
        secure=settings.SECURE_COOKIES,
        httponly=True,
        samesite=settings.SAME_SITE_COOKIE,
    )
    return {"message": "Logged out successfully"}


@router.get("/session", response_model=SessionResponse)
def current_session(session: Optional[AuthSession] = Depends(get_optional_session)):
    """Session bootstrap for the frontend. Never 401s; reports authenticated=false instead."""
    if session is None:
        return SessionResponse(authenticated=False)
    return SessionResponse(authenticated=True, user=session.user, expires_at=session.expires_at)


@router.get("/me", response_model=UserResponse)
def me(session: AuthSession = Depends(get_current_session)):
    return session.user
