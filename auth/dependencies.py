"""
auth/dependencies.py -- Session cookie transport and request-level auth helpers.

The session manager only maps tokens to user ids. This module is the glue
that copies the token to and from the session cookie.

Cookie attributes:
  httponly=True:  JS cannot read the cookie (XSS exfiltration mitigation).
  samesite="lax": sent on same-site requests and top-level GET navigations,
                  not on cross-site POSTs.
  secure:         only sent over HTTPS when SECURE_COOKIES=true.
  max_age:        matches SESSION_TTL_SECONDS when expiry is enabled; when
                  expiry is off the cookie lives for the browser session.

try_get_current_user() returns None on any failure; the web layer turns that
into a redirect to the entry page.

Layer rule: no imports from api/, web/, or cache/. This module may import
from fastapi because it is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

from fastapi import Request

from auth.exceptions import InvalidSession
from auth.models import User
from auth.service import AuthService
from core.config import get_settings


def get_session_token(request: Request) -> str | None:
    """Return the session token presented by the client, or None."""
    return request.cookies.get(get_settings().session_cookie_name) or None


def set_session_cookie(response, session_id: str) -> None:
    """Write the session token as an httpOnly cookie on the response."""
    settings = get_settings()
    response.set_cookie(
        settings.session_cookie_name,
        value=session_id,
        httponly=True,
        samesite="lax",
        secure=settings.secure_cookies,
        max_age=settings.session_ttl_seconds or None,
        path="/",
    )


def clear_session_cookie(response) -> None:
    """Tell the browser to drop the session cookie."""
    settings = get_settings()
    response.delete_cookie(
        settings.session_cookie_name,
        path="/",
        httponly=True,
        samesite="lax",
        secure=settings.secure_cookies,
    )


def try_get_current_user(request: Request) -> User | None:
    """Resolve the session cookie to a User.

    Returns None for a missing, unknown, destroyed or expired session.
    Never raises.
    """
    service: AuthService = request.app.state.auth_service
    try:
        return service.resolve(get_session_token(request))
    except InvalidSession:
        return None

