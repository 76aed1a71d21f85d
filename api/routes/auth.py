"""
api/routes/auth.py -- Registration, login and session REST endpoints.

Routes:
  POST /register          -- create account; sets session cookie
  POST /login             -- password login; sets session cookie
  POST /logout            -- clears session cookie
  GET  /api/v1/auth/me    -- current account info (requires auth)

/register and /login live at the top level because the web pages of the
same name post to them. GET /register and GET /login are the HTML pages in
web/routes.py; Starlette dispatches on method, so the two coexist.

Security:
  Anti-enumeration and timing equalization live in AuthService.login --
      never inline get_by_email() + verify() here.
  Cache-Control: no-store on every credential response, success or failure
      (the AuthFlowError handler in api/main.py adds it to failures).
  register/login are sync handlers: bcrypt is CPU-bound and FastAPI runs
      sync handlers in its threadpool, keeping the event loop free.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from api.models import CredentialsRequest, MeResponse, SuccessResponse
from auth.dependencies import get_current_account
from auth.models import Account, IssuedSession
from auth.service import AuthService
from auth.tokens import clear_session_cookie, set_session_cookie

# Auth policy:
# - POST /register:          public
# - POST /login:             public
# - POST /logout:            public -- clearing a cookie needs no prior auth
# - GET  /api/v1/auth/me:    requires auth (get_current_account)
router = APIRouter()


def _session_response(request: Request, session: IssuedSession) -> JSONResponse:
    resp = JSONResponse(status_code=200, content=SuccessResponse().model_dump())
    set_session_cookie(resp, session.token, request.app.state.settings)
    resp.headers["Cache-Control"] = "no-store"
    return resp


@router.post("/register", response_model=SuccessResponse)
def register(request: Request, body: CredentialsRequest) -> JSONResponse:
    """Create an account and start a session.

    400 for a malformed email or a password outside policy, 409 when the
    email is already registered. Errors are raised as AuthFlowError and
    rendered by the handler in api/main.py.
    """
    service: AuthService = request.app.state.auth_service
    session = service.register(body.email, body.password)
    return _session_response(request, session)


@router.post("/login", response_model=SuccessResponse)
def login(request: Request, body: CredentialsRequest) -> JSONResponse:
    """Authenticate with email and password; set the session cookie.

    Unknown email and wrong password both return 400 bad_credentials with the
    same message.
    """
    service: AuthService = request.app.state.auth_service
    session = service.login(body.email, body.password)
    return _session_response(request, session)


@router.post("/logout", response_model=SuccessResponse)
async def logout(request: Request) -> JSONResponse:
    """Clear the session cookie. The token is not revoked server-side."""
    resp = JSONResponse(content=SuccessResponse().model_dump())
    clear_session_cookie(resp, request.app.state.settings)
    return resp


@router.get("/api/v1/auth/me", response_model=MeResponse)
async def me(current_account: Account = Depends(get_current_account)) -> MeResponse:
    """Return identity information for the currently authenticated account."""
    return MeResponse(
        id=current_account.id,
        email=current_account.email,
        created_at=current_account.created_at or "",
    )
