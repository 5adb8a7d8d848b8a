"""
tests/conftest.py -- Shared test fixtures for Chirpy integration tests.

This module provides:
  - _make_test_engine(): isolated shared-memory SQLite engine per test module
  - _patch_lifespan(): wires test stores into app.state, bypassing real startup
  - api_client: TestClient plus a registered user and a JWT for that user
  - register_and_login(): helper that goes through POST /api/users + /api/login

Design: Named shared-memory SQLite URIs (not plain :memory:) are required
because TestClient runs sync route handlers in a thread pool. Plain :memory:
DBs are per-connection and would present a blank schema to each worker thread.

Environment must be set before any auth/core import so get_settings() picks
it up: DEBUG generates JWT_SECRET, PLATFORM=dev unlocks /admin/reset, and the
login rate limit is raised so the suite never trips it.
"""

from __future__ import annotations

import os
from collections.abc import Generator
from contextlib import asynccontextmanager

os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("PLATFORM", "dev")
os.environ.setdefault("POLKA_KEY", "f271c81ff7084ee5b99a5091b42bc2ac")
os.environ.setdefault("LOGIN_RATE_LIMIT", "1000/minute")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.engine import Engine

from asgi import app
from auth.models import User
from auth.store import UserStore
from auth.tokens import create_access_token, hash_password
from chirps.store import ChirpStore
from core.database import create_db_engine

POLKA_KEY = os.environ["POLKA_KEY"]

# ---------------------------------------------------------------------------
# Engine helpers
# ---------------------------------------------------------------------------


def _make_test_engine(db_suffix: str) -> Engine:
    """Create an isolated named shared-memory SQLite engine.

    Args:
        db_suffix: Unique string appended to the DB name so test modules
                   don't share state.
    """
    name = db_suffix.replace(".", "_")
    return create_db_engine(f"sqlite:///file:test_chirpy_{name}?mode=memory&cache=shared&uri=true")


def _patch_lifespan(engine: Engine):
    """Return an async context manager that replaces the real lifespan.

    Wires stores built on the test engine into app.state so TestClient routes
    see an isolated database rather than the configured DB_URL.
    """

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.engine = engine
        app.state.user_store = UserStore(engine)
        app.state.chirp_store = ChirpStore(engine)
        yield

    return test_lifespan


def register_and_login(client: TestClient, email: str, password: str = "04234") -> dict:
    """Register a user through the API, log in, and return the login JSON."""
    resp = client.post("/api/users", json={"email": email, "password": password})
    assert resp.status_code == 201, resp.text
    resp = client.post("/api/login", json={"email": email, "password": password})
    assert resp.status_code == 200, resp.text
    return resp.json()


def auth_header(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


# ---------------------------------------------------------------------------
# Module-scoped fixtures -- one TestClient per test module for speed
# ---------------------------------------------------------------------------


@pytest.fixture(scope="module")
def api_client(request) -> Generator[tuple[TestClient, str, User], None, None]:
    """Yield (client, token, user) for API integration tests.

    The user is created directly in the store with email "walt@breakingbad.com"
    and password "123456"; token is a JWT for that user.
    """
    engine = _make_test_engine(request.module.__name__)
    user = UserStore(engine).create_user("walt@breakingbad.com", hash_password("123456"))
    token = create_access_token(user.id)

    app.router.lifespan_context = _patch_lifespan(engine)

    with TestClient(app, raise_server_exceptions=True) as client:
        yield client, token, user

    engine.dispose()
