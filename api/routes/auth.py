"""
api/routes/auth.py -- Registration, login and logout endpoints.

Routes:
  POST /register  -- create a user; 200 {message}
  POST /login     -- verify credentials; 200 {message} + session cookie
  POST /logout    -- destroy the session; 200 {message} + cookie cleared

Bodies may be JSON or application/x-www-form-urlencoded (the entry page posts
plain HTML forms).

Errors are raised as AuthError subclasses and rendered by the AuthError
handler in api/main.py:
  400 invalid_input        -- register: missing, empty or non-string field
  409 duplicate_login      -- login already registered
  401 invalid_credentials  -- unknown login OR wrong password (same message);
                              login with a missing or unreadable field
  500 server_error         -- hashing failure (cause logged, never returned)

bcrypt is CPU-bound, so service calls run in the thread pool instead of
blocking the event loop.
"""

from __future__ import annotations

import json
import logging

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from starlette.concurrency import run_in_threadpool

from api.models import CredentialsRequest, MessageResponse
from auth.dependencies import clear_session_cookie, get_session_token, set_session_cookie
from auth.exceptions import InvalidInput
from auth.service import AuthService

logger = logging.getLogger("gatekeep.api")

# Auth policy:
# - POST /register: public
# - POST /login:    public
# - POST /logout:   public -- clearing a cookie needs no prior auth
router = APIRouter()


async def _read_credentials(request: Request) -> CredentialsRequest:
    """Parse login/password from a JSON or form-encoded body.

    Anything unparseable is InvalidInput. Missing fields come back as None
    and are judged by the service.
    """
    content_type = request.headers.get("content-type", "").lower()
    try:
        if content_type.startswith(("application/x-www-form-urlencoded", "multipart/form-data")):
            form = await request.form()
            raw = {k: v for k, v in form.items() if isinstance(v, str)}
        else:
            body = await request.body()
            raw = json.loads(body) if body else {}
        if not isinstance(raw, dict):
            raise InvalidInput()
        return CredentialsRequest.model_validate(raw)
    except (ValueError, ValidationError) as exc:
        # json.JSONDecodeError and UnicodeDecodeError are ValueError subclasses.
        raise InvalidInput() from exc


def _message(text: str) -> JSONResponse:
    return JSONResponse(status_code=200, content=MessageResponse(message=text).model_dump())


@router.post("/register", response_model=MessageResponse)
async def register(request: Request) -> JSONResponse:
    """Register a new login. The response never includes the password hash."""
    service: AuthService = request.app.state.auth_service
    creds = await _read_credentials(request)
    await run_in_threadpool(service.register, creds.login, creds.password)
    return _message("Registration successful.")


@router.post("/login", response_model=MessageResponse)
async def login(request: Request) -> JSONResponse:
    """Verify credentials and set the session cookie.

    A session already presented by the client is destroyed first so a
    re-login always yields a fresh token.
    """
    service: AuthService = request.app.state.auth_service
    try:
        creds = await _read_credentials(request)
    except InvalidInput:
        # An unreadable or ill-typed body gets the same answer and the same
        # bcrypt cost as a wrong password.
        creds = CredentialsRequest()
    session_id = await run_in_threadpool(service.login, creds.login, creds.password)
    service.logout(get_session_token(request))

    resp = _message("Login successful.")
    set_session_cookie(resp, session_id)
    resp.headers["Cache-Control"] = "no-store"
    return resp


@router.post("/logout", response_model=MessageResponse)
async def logout(request: Request) -> JSONResponse:
    """Destroy the presented session (if any) and clear the cookie.

    Repeated logout, or logout without a session, is still a success.
    """
    service: AuthService = request.app.state.auth_service
    if service.logout(get_session_token(request)):
        logger.info("Session closed on logout")
    resp = _message("Logged out.")
    clear_session_cookie(resp)
    return resp
