"""Shared fixtures: an in-memory database per test and a FastAPI TestClient bound to it."""

import os
import sys

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

# Must be set before lineups.config is imported.
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")

from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from lineups.database import Base, get_db
from lineups.main import app
from lineups.middleware.rate_limit import limiter
from lineups.services import auth_service

PASSWORD = "secret123"


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
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
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    limiter.enabled = False
    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db):
    """Create a user directly through the auth service and return it."""
    def _make(email: str, password: str = PASSWORD):
        return auth_service.register_user(db, email, password)
    return _make


@pytest.fixture
def login_headers(client):
    """Register (if needed) and log in over HTTP; returns the bearer header."""
    def _login(email: str, password: str = PASSWORD) -> dict:
        client.post("/auth/register", json={"email": email, "password": password})
        response = client.post("/auth/login", json={"email": email, "password": password})
        assert response.status_code == 200, response.text
        return {"Authorization": f"Bearer {response.json()['token']}"}
    return _login


def sample_draft(**overrides) -> dict:
    draft = {
        "name": "4-4-2 base",
        "formation": "4-4-2",
        "description": "Home kit",
        "players": [
            {"playerName": "GK1", "position": "GK", "number": 1, "color": "#FF0000", "x": 0.5, "y": 0.05},
            {"playerName": "Striker", "position": "Centre Forward", "number": 9, "x": 0.5, "y": 0.9},
        ],
    }
    draft.update(overrides)
    return draft
