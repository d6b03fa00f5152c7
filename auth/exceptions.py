"""
auth/exceptions.py -- Error taxonomy for the credential and session lifecycle.

Every error carries a machine-readable code, a client-safe message and the
HTTP status the API layer should answer with. Messages never include
exception text from lower layers -- the original cause is chained with
`raise ... from exc` and logged, not shown to clients.

Layer rule: no imports from api/, web/, or cache/.
"""

from __future__ import annotations


class AuthError(Exception):
    """Base class for all auth failures surfaced to callers."""

    code: str = "auth_error"
    status_code: int = 400
    default_message: str = "Authentication error."

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidInput(AuthError):
    """Raised when login or password is missing, empty, or unusable."""

    code = "invalid_input"
    status_code = 400
    default_message = "Login and password are required."


class DuplicateLogin(AuthError):
    """Raised when registering a login that already exists."""

    code = "duplicate_login"
    status_code = 409
    default_message = "User already exists."

    def __init__(self, login: str) -> None:
        self.login = login
        super().__init__()


class InvalidCredentials(AuthError):
    """Raised for an unknown login AND for a wrong password.

    Both cases share this class and its message so the response does not
    reveal which one happened.
    """

    code = "invalid_credentials"
    status_code = 401
    default_message = "Invalid login or password."


class HashingError(AuthError):
    """Raised when the password hasher fails (e.g. resource exhaustion)."""

    code = "server_error"
    status_code = 500
    default_message = "Internal server error."


class InvalidSession(AuthError):
    """Raised when a session token is unknown, destroyed, or expired.

    The web layer turns this into a redirect to the entry page, never an
    error page.
    """

    code = "invalid_session"
    status_code = 401
    default_message = "Session is not valid."
