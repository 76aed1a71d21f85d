"""
auth/dependencies.py -- FastAPI Depends() helpers for authentication.

Two token sources are checked in priority order:
  1. Session cookie (Settings.session_cookie_name) -- set by /register and /login.
  2. Authorization: Bearer <token> header -- API clients holding the same JWT.

Both feed AccessGuard.evaluate(), so pages and API endpoints apply identical
rules, including the dangling-reference check (token valid, account gone).

guard_request() returns the full GuardResult (used by the web layer, which
needs the reject reason). try_get_current_account() is the soft variant
(returns None on failure). get_current_account() raises HTTP 401.

Layer rule: no imports from web/ or core/.
  auth/dependencies.py may import from fastapi (for HTTPException/Request)
  because this module is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

from fastapi import HTTPException, Request

from auth.guard import AccessGuard, GuardResult
from auth.models import Account


def session_token(request: Request) -> str | None:
    """Return the session token from the cookie or a Bearer header, if any."""
    cookie_name = request.app.state.settings.session_cookie_name
    token: str | None = request.cookies.get(cookie_name)
    if not token:
        auth_header = request.headers.get("Authorization", "")
        if auth_header.startswith("Bearer "):
            token = auth_header[7:]
    return token or None


def guard_request(request: Request) -> GuardResult:
    """Run the access guard against the token carried by this request."""
    guard: AccessGuard = request.app.state.guard
    return guard.evaluate(session_token(request))


def try_get_current_account(request: Request) -> Account | None:
    """Return the authenticated Account, or None. Token failures never raise."""
    result = guard_request(request)
    return result.account if result.allowed else None


def get_current_account(request: Request) -> Account:
    """Require authentication. Raises HTTP 401 if the request is not authenticated.

    Use as a FastAPI dependency:
        @router.get("/protected")
        async def route(account: Account = Depends(get_current_account)): ...
    """
    account = try_get_current_account(request)
    if account is None:
        raise HTTPException(
            status_code=401,
            detail={"code": "unauthorized", "message": "Authentication required."},
        )
    return account
