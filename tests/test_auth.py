"""Sign-in sessions: issue, look up, revoke."""
from datetime import datetime, timedelta, timezone

import pytest

from duesbook.core.config import settings
from duesbook.core.exceptions import AuthenticationError, ConflictError, ValidationError
from duesbook.models.auth_session import AuthSession
from duesbook.services import auth as auth_service

OWNER_EMAIL = "owner@shop.in"
OWNER_PASSWORD = "s3cret-pass"


def test_register_rejects_duplicates_and_short_passwords(db, owner):
    with pytest.raises(ConflictError):
        auth_service.register(db, OWNER_EMAIL.upper(), "long-enough-pass")
    with pytest.raises(ValidationError):
        auth_service.register(db, "new@shop.in", "short")


def test_sign_in_and_get_session(db, owner):
    token, session = auth_service.sign_in(db, OWNER_EMAIL, OWNER_PASSWORD)

    current = auth_service.get_session(db, token)
    assert current is not None
    assert current.id == session.id
    assert current.user.email == OWNER_EMAIL


def test_wrong_password_and_unknown_user_fail_alike(db, owner):
    with pytest.raises(AuthenticationError) as wrong:
        auth_service.sign_in(db, OWNER_EMAIL, "not-the-password")
    with pytest.raises(AuthenticationError) as unknown:
        auth_service.sign_in(db, "nobody@shop.in", OWNER_PASSWORD)
    assert wrong.value.message == unknown.value.message


def test_sign_out_revokes_token(db, owner):
    token, session = auth_service.sign_in(db, OWNER_EMAIL, OWNER_PASSWORD)
    auth_service.sign_out(db, session)

    assert auth_service.get_session(db, token) is None
    # Signing out twice is harmless
    auth_service.sign_out(db, session)


def test_sessions_are_independent(db, owner):
    token_a, session_a = auth_service.sign_in(db, OWNER_EMAIL, OWNER_PASSWORD)
    token_b, _ = auth_service.sign_in(db, OWNER_EMAIL, OWNER_PASSWORD)

    auth_service.sign_out(db, session_a)

    assert auth_service.get_session(db, token_a) is None
    assert auth_service.get_session(db, token_b) is not None


def test_expired_session_is_not_current(db, owner):
    token, session = auth_service.sign_in(db, OWNER_EMAIL, OWNER_PASSWORD)
    stored = db.get(AuthSession, session.id)
    stored.expires_at = datetime.now(timezone.utc) - timedelta(minutes=1)
    db.commit()

    assert auth_service.get_session(db, token) is None


@pytest.mark.parametrize("token", [None, "", "garbage", "a.b.c"])
def test_bad_tokens(db, token):
    assert auth_service.get_session(db, token) is None


def test_token_signed_with_other_key_is_rejected(db, owner, monkeypatch):
    token, _ = auth_service.sign_in(db, OWNER_EMAIL, OWNER_PASSWORD)
    monkeypatch.setattr(settings, "SECRET_KEY", "rotated-key")
    assert auth_service.get_session(db, token) is None
