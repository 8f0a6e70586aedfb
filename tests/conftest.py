"""
tests/conftest.py — Shared Test Fixtures
=========================================
"""

from __future__ import annotations

import os

# ---------------------------------------------------------------------------
# Ensure a valid JWT_SECRET is always set for test runs.
# This must happen before any import of chirp.api.deps which validates
# the secret at module-load time.
# ---------------------------------------------------------------------------
_TEST_JWT_SECRET = "test-secret-for-pytest-only-" + "x" * 40  # > 32 chars
os.environ.setdefault("JWT_SECRET", _TEST_JWT_SECRET)

import pytest  # noqa: E402
from sqlalchemy import Engine, create_engine  # noqa: E402
from sqlalchemy.orm import Session  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from chirp.config import ChirpConfig  # noqa: E402
from chirp.database.models import Base  # noqa: E402

# Cheapest cost bcrypt accepts; keeps registration fast under test.
TEST_BCRYPT_ROUNDS = 4


@pytest.fixture
def db_engine() -> Engine:
    """Create an in-memory SQLite engine with all Chirp tables.

    Uses StaticPool so all threads share the same in-memory database
    (required by the FastAPI threadpool and ``asyncio.to_thread``).
    """
    engine = create_engine(
        "sqlite://",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    return engine


@pytest.fixture
def db_session(db_engine: Engine):
    """Provide a session that rolls back after each test."""
    with Session(db_engine) as session:
        yield session
        session.rollback()


@pytest.fixture
def upload_dir(tmp_path):
    path = tmp_path / "uploads"
    path.mkdir()
    return path


@pytest.fixture
def chirp_config(upload_dir) -> ChirpConfig:
    return ChirpConfig(
        site_name="Chirp Test",
        upload_dir=upload_dir,
        token_ttl_hours=1,
        bcrypt_rounds=TEST_BCRYPT_ROUNDS,
    )


@pytest.fixture
def client(db_engine, chirp_config):
    """FastAPI TestClient wired to the in-memory DB and a temp upload dir."""
    from fastapi.testclient import TestClient

    from chirp.api.deps import get_config, get_engine
    from chirp.api.main import app

    app.dependency_overrides[get_engine] = lambda: db_engine
    app.dependency_overrides[get_config] = lambda: chirp_config
    yield TestClient(app, raise_server_exceptions=False)
    app.dependency_overrides.clear()


def make_user(engine, username: str, *, full_name: str | None = None) -> dict:
    """Register a user straight through the service.  Usable from any test."""
    from chirp.services import account_service

    return account_service.register(
        engine,
        username=username,
        email=f"{username}@x.com",
        password="secret1",
        full_name=full_name or username.title(),
        bcrypt_rounds=TEST_BCRYPT_ROUNDS,
    )


def make_token(user_id: int, *, ttl_hours: int = 1) -> str:
    from chirp.api.auth import issue_token

    return issue_token(user_id, ttl_hours)


def auth(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}
