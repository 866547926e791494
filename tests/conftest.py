"""Pytest fixtures: a throwaway SQLite database per test."""
import uuid
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient
from jose import jwt
from sqlalchemy.orm import sessionmaker

from app.config import settings
from app.database import Base, get_db, make_engine
from app.main import app
from app.storage import LocalMediaStorage, get_media_storage

# Import all models so they register with Base.metadata
from app.models.user import User                                         # noqa: F401
from app.models.circle import Circle, CircleMember, CircleInviteLink      # noqa: F401
from app.models.invite import Invite, RSVP                               # noqa: F401
from app.models.feed import EventFeedItem                                # noqa: F401
from app.models.media import MediaItem                                   # noqa: F401


@pytest.fixture(scope="function")
def db_engine(tmp_path):
    """Create a fresh SQLite engine (foreign keys on) for each test."""
    engine = make_engine(f"sqlite:///{tmp_path / 'test.db'}")
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def db(db_engine):
    """Yield a database session on the same engine the client uses."""
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="function")
def upload_dir(tmp_path):
    path = tmp_path / "uploads"
    path.mkdir()
    return path


@pytest.fixture(scope="function")
def client(db_engine, upload_dir):
    """TestClient with the database and media store overridden."""
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)

    def _override_get_db():
        session = TestingSession()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _override_get_db
    app.dependency_overrides[get_media_storage] = lambda: LocalMediaStorage(str(upload_dir))
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Auth helpers
# ---------------------------------------------------------------------------
def make_token(user_id: str, **claims) -> str:
    """Sign a session token the way the front end does."""
    payload = {
        "sub": user_id,
        "exp": int((datetime.now(timezone.utc) + timedelta(hours=1)).timestamp()),
    }
    payload.update(claims)
    return jwt.encode(payload, settings.NEXTAUTH_SECRET, algorithm=settings.JWT_ALGORITHM)


def auth_headers(user_id: str) -> dict:
    return {"Authorization": f"Bearer {make_token(user_id)}"}


# ---------------------------------------------------------------------------
# Helpers: build fixtures through the API, return response JSON
# ---------------------------------------------------------------------------
def create_test_user(client: TestClient, name: str = "Test User") -> dict:
    """Helper: POST /api/auth/sync for a fresh user id."""
    user_id = f"user-{uuid.uuid4().hex[:12]}"
    resp = client.post("/api/auth/sync", headers=auth_headers(user_id), json={
        "id": user_id,
        "email": f"{user_id}@example.com",
        "name": name,
    })
    assert resp.status_code == 200, resp.text
    return resp.json()


def create_test_circle(client: TestClient, owner_id: str, name: str = "Test Circle") -> dict:
    """Helper: POST /api/circles, then return the owner's view of the circle."""
    resp = client.post("/api/circles/", headers=auth_headers(owner_id), json={"name": name})
    assert resp.status_code == 201, resp.text
    detail = client.get(f"/api/circles/{resp.json()['id']}", headers=auth_headers(owner_id))
    assert detail.status_code == 200, detail.text
    return detail.json()["circle"]


def create_test_invite(
    client: TestClient,
    sender_id: str,
    title: str = "Dinner",
    circle_id: str = None,
    days_ahead: int = 7,
) -> str:
    """Helper: POST /api/invites and return the new invite id."""
    body = {
        "title": title,
        "event_date": (datetime.now(timezone.utc) + timedelta(days=days_ahead)).isoformat(),
        "location": "Somewhere",
    }
    if circle_id is not None:
        body["circle_id"] = circle_id
    resp = client.post("/api/invites/", headers=auth_headers(sender_id), json=body)
    assert resp.status_code == 201, resp.text
    return resp.json()["id"]


def join_circle(client: TestClient, user_id: str, code: str):
    """POST /api/circles/join/{code} as ``user_id``; returns the raw response."""
    return client.post(f"/api/circles/join/{code}", headers=auth_headers(user_id))


def create_invite_link(client: TestClient, owner_id: str, circle_id: str, max_uses: int = 1, **extra) -> dict:
    resp = client.post(
        f"/api/circles/{circle_id}/invites",
        headers=auth_headers(owner_id),
        json={"max_uses": max_uses, **extra},
    )
    assert resp.status_code == 201, resp.text
    return resp.json()
