"""Pytest fixtures: SQLite database with foreign keys for fast, isolated tests."""
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.orm import sessionmaker
from fastapi.testclient import TestClient

from app.database import Base, create_db_engine, get_db
from app.main import app
from app.resolvers.resolver import Resolver

# Import all models so they register with Base.metadata
from app.models.user import User                # noqa: F401
from app.models.event import Event              # noqa: F401
from app.models.participant import Participant  # noqa: F401

SQLITE_URL = "sqlite:///./test.db"


class FakeClock:
    """Deterministic clock; advance it explicitly between operations."""

    def __init__(self, start: datetime = datetime(2025, 1, 1, 9, 0, tzinfo=timezone.utc)):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture(scope="function")
def db_engine():
    """Create a fresh SQLite engine for each test."""
    engine = create_db_engine(SQLITE_URL)
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def db(db_engine):
    """Yield a database session, closed after the test."""
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="function")
def clock():
    return FakeClock()


@pytest.fixture(scope="function")
def make_resolver(db, clock):
    """Factory for resolvers bound to the test session and clock."""

    def _make(viewer_id=None, **kwargs):
        return Resolver(db, clock=clock, viewer_id=viewer_id, **kwargs)

    return _make


@pytest.fixture(scope="function")
def resolver(make_resolver):
    return make_resolver()


@pytest.fixture(scope="function")
def client(db_engine):
    """FastAPI TestClient with the database dependency overridden to use SQLite."""
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)

    def _override_get_db():
        session = TestingSession()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Helpers: create entities via the API, return the JSON response dict
# ---------------------------------------------------------------------------
def create_test_user(client: TestClient, email: str = "test@example.com", name: str = "Test User") -> dict:
    """POST /api/users and return response JSON."""
    resp = client.post("/api/users/", json={"email": email, "name": name})
    assert resp.status_code == 201, resp.text
    return resp.json()


def create_test_event(
    client: TestClient,
    creator_id: str,
    title: str = "Test Event",
    start_time: str = "2025-01-01T10:00:00Z",
    end_time: str = "2025-01-01T12:00:00Z",
    **extra,
) -> dict:
    """POST /api/events and return response JSON."""
    payload = {
        "title": title,
        "start_time": start_time,
        "end_time": end_time,
        "creator_id": creator_id,
        **extra,
    }
    resp = client.post("/api/events/", json=payload)
    assert resp.status_code == 201, resp.text
    return resp.json()


def create_test_participant(client: TestClient, user_id: str, event_id: str, **extra) -> dict:
    """POST /api/participants and return response JSON."""
    resp = client.post("/api/participants/", json={"user_id": user_id, "event_id": event_id, **extra})
    assert resp.status_code == 201, resp.text
    return resp.json()
