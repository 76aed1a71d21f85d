"""
web/routes.py -- Jinja2 template routes for the NoteNest web UI.

These routes serve server-rendered HTML. They share app.state with the API
routes (same account store, same access guard) but return HTML instead of
JSON. The register and login forms post JSON to POST /register and
POST /login (api/routes/auth.py) and navigate to / on success.

Routes:
  GET /           -- notes home (session required)
  GET /register   -- registration form (public)
  GET /login      -- login form (public)
"""

import logging
from pathlib import Path
from typing import Optional

from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates

from auth.dependencies import guard_request, try_get_current_account
from auth.guard import RejectReason

logger = logging.getLogger("notenest.web")

templates = Jinja2Templates(directory=str(Path(__file__).parent / "templates"))
router = APIRouter()

ENTRY_PAGE = "/register"

# ---------------------------------------------------------------------------
# Auth helpers
# ---------------------------------------------------------------------------

# Whitelist mapping for the ?expired= flag on the entry pages. The raw query
# param is never passed to templates -- only the message from this dict is.
_NOTICES: dict[str, str] = {
    "1": "Your session has expired. Please log in again.",
}


def _require_session(request: Request) -> Optional[RedirectResponse]:
    """Run the access guard for a protected page.

    Returns a RedirectResponse to the entry page if the guard rejects the
    request. Otherwise stores the Account on request.state.account and
    returns None. Call at the top of protected route handlers:
        if redirect := _require_session(request):
            return redirect
    """
    result = guard_request(request)
    if result.allowed:
        request.state.account = result.account
        return None
    logger.info("Page guard rejected %s (%s)", request.url.path, result.reason.value)
    if result.reason is RejectReason.EXPIRED_TOKEN:
        return RedirectResponse(f"{ENTRY_PAGE}?expired=1", status_code=302)
    return RedirectResponse(ENTRY_PAGE, status_code=302)


# ---------------------------------------------------------------------------
# GET / -- notes home
# ---------------------------------------------------------------------------


@router.get("/", response_class=HTMLResponse)
def notes_home(request: Request) -> HTMLResponse:
    if redirect := _require_session(request):
        return redirect
    return templates.TemplateResponse(request, "notes.html", {"account": request.state.account})


# ---------------------------------------------------------------------------
# Entry pages
# ---------------------------------------------------------------------------


def _entry_page(request: Request, template: str) -> HTMLResponse:
    # Already signed in -- nothing to do here.
    if try_get_current_account(request) is not None:
        return RedirectResponse("/", status_code=302)
    notice = _NOTICES.get(request.query_params.get("expired", ""))
    return templates.TemplateResponse(request, template, {"notice": notice})


@router.get("/register", response_class=HTMLResponse)
def register_form(request: Request) -> HTMLResponse:
    """Render the registration page."""
    return _entry_page(request, "register.html")


@router.get("/login", response_class=HTMLResponse)
def login_form(request: Request) -> HTMLResponse:
    """Render the login page."""
    return _entry_page(request, "login.html")
