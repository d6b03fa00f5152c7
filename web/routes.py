"""
web/routes.py -- Jinja2 template routes for the gatekeep web UI.

These routes serve server-rendered HTML. They share app.state with the API
routes (same auth service) but return HTML instead of JSON.

Routes:
  GET  /         -- entry page with register/login forms (public)
  GET  /profile  -- protected page; redirects to / without a valid session
"""

import logging
from pathlib import Path

from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates

from auth.dependencies import clear_session_cookie, get_session_token, try_get_current_user

logger = logging.getLogger("gatekeep.web")

templates = Jinja2Templates(directory=str(Path(__file__).parent / "templates"))
router = APIRouter()

_ENTRY_POINT = "/"

# ---------------------------------------------------------------------------
# Auth helpers
# ---------------------------------------------------------------------------


def _redirect_anonymous(request: Request) -> RedirectResponse:
    """Send a request without a valid session back to the entry page.

    A stale session cookie is deleted in the redirect so the browser stops
    sending it.
    """
    logger.debug("Anonymous request to %s redirected to entry page", request.url.path)
    resp = RedirectResponse(_ENTRY_POINT, status_code=302)
    if get_session_token(request):
        clear_session_cookie(resp)
    return resp


# ---------------------------------------------------------------------------
# Pages
# ---------------------------------------------------------------------------


@router.get("/", response_class=HTMLResponse)
def index(request: Request) -> HTMLResponse:
    """Render the entry page."""
    return templates.TemplateResponse(request, "index.html", {"user": try_get_current_user(request)})


@router.get("/profile", response_class=HTMLResponse)
def profile(request: Request):
    """Render the profile page for the signed-in user."""
    user = try_get_current_user(request)
    if user is None:
        return _redirect_anonymous(request)
    return templates.TemplateResponse(request, "profile.html", {"user": user})
