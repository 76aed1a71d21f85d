"""
tests/test_auth_redirect.py -- Integration tests for the page guard redirect chain.

These tests exercise _require_session() end-to-end through the real ASGI stack
using the client fixture (follow_redirects=False). We assert on redirect
Location headers directly -- following the redirect would hide them.

Coverage:
  - No cookie -> 302 /register
  - Wrongly signed / garbage cookie -> 302 /register
  - Expired cookie -> 302 /register?expired=1
  - Cookie for a deleted account -> 302 /register
  - Freshly issued cookie from /register or /login -> 200
  - The guard never touches the cookie on rejection
  - Entry pages are public and bounce signed-in users to /

Why integration tests over unit tests:
  The page guard is a safety-critical path. Running through ASGI catches
  regressions where the guard call is removed from a route or the cookie
  name drifts from the one /register sets.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from fastapi.testclient import TestClient
from jose import jwt

from auth.tokens import TokenService
from conftest import TEST_SECRET, cookie_header, session_cookie, session_token


def _register(client: TestClient, email: str = "a@x.com", password: str = "password1") -> str:
    resp = client.post("/register", json={"email": email, "password": password})
    assert resp.status_code == 200, resp.text
    return session_token(resp)


class TestPageGuard:
    def test_no_cookie_redirects_to_register(self, client: TestClient) -> None:
        resp = client.get("/")
        assert resp.status_code == 302
        assert resp.headers["location"] == "/register"

    def test_wrongly_signed_cookie_redirects(self, client: TestClient) -> None:
        _register(client)
        forged = TokenService("some-other-secret-that-is-long-enough-123").issue(1)
        resp = client.get("/", headers=cookie_header(forged))
        assert resp.status_code == 302
        assert resp.headers["location"] == "/register"

    def test_garbage_cookie_redirects(self, client: TestClient) -> None:
        resp = client.get("/", headers=cookie_header("not.a.jwt"))
        assert resp.status_code == 302
        assert resp.headers["location"] == "/register"

    def test_expired_cookie_redirects_with_flag(self, client: TestClient) -> None:
        _register(client)
        past = datetime.now(timezone.utc) - timedelta(days=1)
        expired = jwt.encode({"sub": "1", "iat": past, "exp": past + timedelta(hours=1)}, TEST_SECRET)
        resp = client.get("/", headers=cookie_header(expired))
        assert resp.status_code == 302
        assert resp.headers["location"] == "/register?expired=1"

    def test_rejection_leaves_cookie_alone(self, client: TestClient) -> None:
        resp = client.get("/", headers=cookie_header("not.a.jwt"))
        assert resp.status_code == 302
        assert session_cookie(resp) is None

    def test_deleted_account_redirects(self, client: TestClient) -> None:
        token = _register(client)
        client.app.state.account_store.delete_account(TokenService(TEST_SECRET).verify(token).subject)
        resp = client.get("/", headers=cookie_header(token))
        assert resp.status_code == 302
        assert resp.headers["location"] == "/register"

    def test_registered_cookie_passes(self, client: TestClient) -> None:
        token = _register(client)
        resp = client.get("/", headers=cookie_header(token))
        assert resp.status_code == 200
        assert "a@x.com" in resp.text

    def test_login_cookie_passes(self, client: TestClient) -> None:
        _register(client)
        login = client.post("/login", json={"email": "a@x.com", "password": "password1"})
        resp = client.get("/", headers=cookie_header(session_token(login)))
        assert resp.status_code == 200
        assert session_cookie(resp) is None


class TestEntryPages:
    def test_register_page_is_public(self, client: TestClient) -> None:
        resp = client.get("/register")
        assert resp.status_code == 200
        assert "<form" in resp.text

    def test_login_page_is_public(self, client: TestClient) -> None:
        resp = client.get("/login")
        assert resp.status_code == 200
        assert "<form" in resp.text

    def test_expired_notice_is_whitelisted(self, client: TestClient) -> None:
        resp = client.get("/register?expired=1")
        assert "Your session has expired" in resp.text
        resp = client.get("/register?expired=<script>alert(1)</script>")
        assert "<script>alert(1)</script>" not in resp.text

    def test_signed_in_user_bounced_home(self, client: TestClient) -> None:
        token = _register(client)
        resp = client.get("/login", headers=cookie_header(token))
        assert resp.status_code == 302
        assert resp.headers["location"] == "/"
