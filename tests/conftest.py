"""
tests/conftest.py -- Shared test fixtures for NoteNest tests.

This module provides:
  - hasher / tokens / store: unit-level collaborators (fast bcrypt, fixed secret)
  - make_client(): TestClient over the real ASGI app with an isolated DB
  - client: the default TestClient (follow_redirects=False)
  - session_cookie() / cookie_header(): read and send the session cookie explicitly

Design: Named shared-memory SQLite URIs (not plain :memory:) are required for
the TestClient because route handlers run in a thread pool. Plain :memory:
DBs are per-connection and would present a blank schema to each worker
thread. Each client gets its own uniquely named DB.

Environment must be set before any api/auth/core import so get_settings()
sees a fixed SECRET_KEY, cheap bcrypt rounds and the TestClient host.

Cookies are sent explicitly via the Cookie header rather than through the
client's cookie jar: the session cookie is Secure by default and the jar
would silently drop it over http://testserver.
"""

from __future__ import annotations

import os
import uuid
from collections.abc import Callable, Generator
from contextlib import asynccontextmanager
from http.cookies import SimpleCookie

TEST_SECRET = "test-secret-key-for-notenest-0123456789abcdef"

# CRITICAL: set before any auth/core import.
os.environ.setdefault("DEBUG", "true")
os.environ["SECRET_KEY"] = TEST_SECRET
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["ALLOWED_HOSTS"] = '["testserver", "localhost"]'

import pytest
from fastapi.testclient import TestClient

from api.main import build_auth_state
from asgi import app
from auth.passwords import PasswordHasher
from auth.store import AccountStore
from auth.tokens import TokenService
from core.config import Settings, get_settings

COOKIE_NAME = "NoteNestJWT"

# ---------------------------------------------------------------------------
# Unit-level collaborators
# ---------------------------------------------------------------------------


@pytest.fixture
def hasher() -> PasswordHasher:
    """bcrypt at the minimum cost factor -- same algorithm, fast tests."""
    return PasswordHasher(rounds=4)


@pytest.fixture
def tokens() -> TokenService:
    return TokenService(TEST_SECRET)


@pytest.fixture
def store() -> Generator[AccountStore, None, None]:
    s = AccountStore("sqlite:///:memory:")
    yield s
    s.close()


# ---------------------------------------------------------------------------
# Cookie helpers
# ---------------------------------------------------------------------------


def session_cookie(resp) -> SimpleCookie | None:
    """Parse the Set-Cookie header for the session cookie, or None if absent."""
    for header in resp.headers.get_list("set-cookie"):
        parsed = SimpleCookie()
        parsed.load(header)
        if COOKIE_NAME in parsed:
            return parsed
    return None


def session_token(resp) -> str:
    cookie = session_cookie(resp)
    assert cookie is not None, f"no {COOKIE_NAME} cookie in response: {resp.headers}"
    return cookie[COOKIE_NAME].value


def cookie_header(token: str) -> dict[str, str]:
    return {"Cookie": f"{COOKIE_NAME}={token}"}


# ---------------------------------------------------------------------------
# App clients
# ---------------------------------------------------------------------------


def _patch_lifespan(settings: Settings, store: AccountStore):
    """Return an async context manager that replaces the real lifespan.

    Wires a pre-created test store into app.state using the same assembly
    function as production, so routes see the real object graph over an
    isolated database.
    """

    @asynccontextmanager
    async def test_lifespan(app):
        build_auth_state(app, settings, store)
        yield

    return test_lifespan


@pytest.fixture
def make_client() -> Generator[Callable[..., TestClient], None, None]:
    """Factory: make_client(settings=None, **client_kwargs) -> started TestClient.

    Every client gets a fresh named in-memory database. All clients and
    stores are shut down at teardown.
    """
    opened: list[tuple[TestClient, AccountStore]] = []

    def _make(settings: Settings | None = None, **client_kwargs) -> TestClient:
        settings = settings or get_settings()
        db_url = f"sqlite:///file:test_auth_{uuid.uuid4().hex}?mode=memory&cache=shared&uri=true"
        store = AccountStore(db_url)
        app.router.lifespan_context = _patch_lifespan(settings, store)
        client_kwargs.setdefault("follow_redirects", False)
        client = TestClient(app, **client_kwargs)
        client.__enter__()
        opened.append((client, store))
        return client

    yield _make

    for client, store in opened:
        client.__exit__(None, None, None)
        store.close()


@pytest.fixture
def client(make_client) -> TestClient:
    """TestClient with follow_redirects=False, so redirect locations are visible."""
    return make_client()
