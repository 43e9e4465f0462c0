"""
tests/conftest.py -- Shared test fixtures for Chirpy unit and integration tests.

This module provides:
  - make_settings(): Settings with a fixed secret, isolated from .env
  - user_store / sessions: in-memory store + SessionManager for unit tests
  - api_client: TestClient over create_app(settings) for integration tests
  - login_user / auth_header: helpers that create accounts and build headers

Design: integration tests use named shared-memory SQLite URIs (not plain
:memory:) because TestClient runs sync route handlers in a thread pool. Plain
:memory: DBs are per-connection and would present a blank schema to each
worker thread. The named URI format (file:name?mode=memory&cache=shared&uri=true)
shares one in-memory instance across all connections in the same process.
Unit tests run on one thread, so plain :memory: is enough there.
"""

from __future__ import annotations

import uuid
from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient

from api.main import create_app
from auth.session import SessionManager
from auth.store import UserStore
from core.config import Settings

TEST_SECRET = "test-secret-0123456789abcdef0123456789abcdef"
TEST_POLKA_KEY = "f271c81ff7084ee5b99a5091b42d486e"


def make_settings(**overrides) -> Settings:
    """Build Settings that ignore any developer .env file."""
    values = {
        "jwt_secret": TEST_SECRET,
        "polka_key": TEST_POLKA_KEY,
        "platform": "dev",
        "db_url": "sqlite:///:memory:",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


def shared_memory_url(name: str) -> str:
    return f"sqlite:///file:{name}_{uuid.uuid4().hex}?mode=memory&cache=shared&uri=true"


def unique_email() -> str:
    return f"user-{uuid.uuid4().hex[:12]}@example.com"


# ---------------------------------------------------------------------------
# Unit-test fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def user_store() -> Generator[UserStore, None, None]:
    store = UserStore("sqlite:///:memory:")
    yield store
    store.close()


@pytest.fixture
def sessions(settings: Settings, user_store: UserStore) -> SessionManager:
    return SessionManager(settings, user_store)


# ---------------------------------------------------------------------------
# Integration fixtures -- one TestClient per test module for speed
# ---------------------------------------------------------------------------


@pytest.fixture(scope="module")
def api_client(request) -> Generator[TestClient, None, None]:
    """Yield a TestClient over a fresh app with its own shared-memory database.

    Module-scoped: tests in one module share accounts, so every test creates
    its own user via login_user() with a unique email.
    """
    settings = make_settings(db_url=shared_memory_url(request.module.__name__.rsplit(".", 1)[-1]))
    app = create_app(settings)
    with TestClient(app, raise_server_exceptions=True) as client:
        yield client


@pytest.fixture
def settings_factory():
    """Return make_settings so tests can override individual fields."""
    return make_settings


@pytest.fixture
def login_user():
    """Return a helper that creates an account through the API and logs in.

    Usage:
        data = login_user(client)                 # fresh random email
        data = login_user(client, "a@b.com")      # fixed email
        client.get(..., headers=auth_header(data["token"]))
    """

    def _login(client: TestClient, email: str | None = None, password: str = "secret1") -> dict:
        email = email or unique_email()
        resp = client.post("/api/users", json={"email": email, "password": password})
        assert resp.status_code == 201, resp.text
        resp = client.post("/api/login", json={"email": email, "password": password})
        assert resp.status_code == 200, resp.text
        return resp.json()

    return _login


@pytest.fixture
def auth_header():
    def _header(token: str) -> dict[str, str]:
        return {"Authorization": f"Bearer {token}"}

    return _header


@pytest.fixture
def polka_key() -> str:
    return TEST_POLKA_KEY
