"""Shared fixtures: fresh in-memory database per test, API client with a signed-in owner."""
import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("BCRYPT_ROUNDS", "4")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from duesbook.api.deps import get_db
from duesbook.db.base import Base
from duesbook.db.init_db import init_db
from duesbook.db.session import create_db_engine
from duesbook.main import app
from duesbook.models.user import User
from duesbook.services import auth as auth_service

OWNER_EMAIL = "owner@shop.in"
OWNER_PASSWORD = "s3cret-pass"


@pytest.fixture
def engine():
    engine = create_db_engine("sqlite://")
    init_db(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def owner(db) -> User:
    return auth_service.register(db, OWNER_EMAIL, OWNER_PASSWORD, name="Ramesh")


@pytest.fixture
def other_owner(db) -> User:
    return auth_service.register(db, "neighbour@shop.in", "another-pass", name="Suresh")


@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def auth_client(client, owner):
    response = client.post("/auth/login", json={"email": OWNER_EMAIL, "password": OWNER_PASSWORD})
    assert response.status_code == 200
    token = response.json()["access_token"]
    client.cookies.clear()
    client.headers.update({"Authorization": f"Bearer {token}"})
    return client
