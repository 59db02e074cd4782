"""Shared pytest fixtures for backend tests."""

from __future__ import annotations

import os
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Callable, Iterator

import jwt
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

os.environ.setdefault("REAPERS_ENABLED", "false")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-with-enough-length-for-hs256")
os.environ.setdefault("LIVEKIT_API_KEY", "APItestkey1234")
os.environ.setdefault("LIVEKIT_API_SECRET", "livekit-test-secret-with-enough-length")
os.environ.setdefault("LIVEKIT_URL", "wss://media.example.test")

from app.config import get_settings
from app.core.security import CallerIdentity, create_access_token
from app.database import get_db
from app.main import app
from app.models import Base, Group, LivePresenceRecord, PresenceRecord
from app.monitoring.registry import registry
from app.services.cache import get_cache

NOW = datetime(2026, 3, 14, 12, 0, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def _reset_shared_state() -> Iterator[None]:
    get_cache.cache_clear()
    registry.reset()
    yield
    get_cache.cache_clear()


@pytest.fixture()
def test_engine() -> Iterator[Engine]:
    """Provide an in-memory SQLite engine for isolated tests."""

    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    Base.metadata.create_all(engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(engine)
        engine.dispose()


@pytest.fixture()
def session_factory(test_engine) -> sessionmaker[Session]:
    """Return a session factory bound to the test engine."""

    return sessionmaker(bind=test_engine, future=True)


@pytest.fixture()
def db_session(session_factory) -> Iterator[Session]:
    """Yield a SQLAlchemy session for unit tests."""

    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def client(session_factory) -> Iterator[TestClient]:
    """Yield a FastAPI TestClient with the database dependency overridden."""

    def override_get_db() -> Iterator[Session]:
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture()
def settings():
    return get_settings()


@pytest.fixture()
def now() -> datetime:
    return NOW


@pytest.fixture()
def make_group(db_session) -> Callable[..., Group]:
    """Create a group whose ``updated_at`` defaults to the fixed test clock."""

    def factory(group_id: str = "g1", *, updated_at: datetime = NOW, **fields) -> Group:
        group = Group(
            id=group_id,
            title=fields.pop("title", f"Group {group_id}"),
            created_at=updated_at,
            updated_at=updated_at,
            **fields,
        )
        db_session.add(group)
        db_session.commit()
        return group

    return factory


@pytest.fixture()
def heartbeat(db_session) -> Callable[..., None]:
    """Insert or refresh presence rows directly, bypassing the endpoints."""

    def factory(
        group_id: str,
        user_id: str,
        *,
        at: datetime = NOW,
        live_role: str | None = None,
    ) -> None:
        db_session.merge(PresenceRecord(group_id=group_id, user_id=user_id, active_at=at))
        if live_role is not None:
            db_session.merge(
                LivePresenceRecord(
                    group_id=group_id, user_id=user_id, active_at=at, role=live_role
                )
            )
        db_session.commit()

    return factory


def caller(uid: str, name: str | None = None, picture: str | None = None) -> CallerIdentity:
    return CallerIdentity(uid=uid, name=name, picture=picture)


def auth_headers(uid: str, **claims) -> dict[str, str]:
    token = create_access_token({"sub": uid, **claims})
    return {"Authorization": f"Bearer {token}"}


def decode_media_token(token: str) -> dict:
    """Verify a media token against the configured LiveKit key and secret."""

    settings = get_settings()
    return jwt.decode(
        token,
        settings.livekit_api_secret,
        algorithms=["HS256"],
        issuer=settings.livekit_api_key,
    )
