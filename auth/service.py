"""
auth/service.py -- Registration and login orchestration.

AuthService composes the credential store, the password hasher and the
session manager. It is transport-agnostic: it takes plain strings and
returns domain values, raising AuthError subclasses on failure. The API
layer maps those to HTTP responses.

State machine per user:
  Anonymous --register--> Registered --login--> Authenticated
  Authenticated --logout--> Registered
  Authenticated --resolve--> Authenticated   (read-only guard)

Layer rule: no imports from api/, web/, or cache/.
"""

from __future__ import annotations

import logging

from auth.exceptions import DuplicateLogin, InvalidCredentials, InvalidInput, InvalidSession
from auth.models import User
from auth.passwords import MAX_PASSWORD_BYTES, burn_verification, hash_password, verify_password
from auth.sessions import SessionManager
from auth.store import UserStore

logger = logging.getLogger("gatekeep.auth")


def _has_fields(login, password) -> bool:
    return isinstance(login, str) and isinstance(password, str) and bool(login) and bool(password)


class AuthService:
    """Register users, log them in and out, and resolve session tokens."""

    def __init__(self, store: UserStore, sessions: SessionManager) -> None:
        self.store = store
        self.sessions = sessions

    def register(self, login: str, password: str) -> User:
        """Create a user record for login with a hash of password.

        Raises InvalidInput for a missing/empty field or an over-long
        password, DuplicateLogin if the login is taken, and HashingError if
        bcrypt fails.
        """
        if not _has_fields(login, password):
            raise InvalidInput()
        if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
            raise InvalidInput(f"Password must be at most {MAX_PASSWORD_BYTES} bytes.")

        # Early exit saves a bcrypt round for the common duplicate case. The
        # UNIQUE constraint in the store is what actually guarantees uniqueness.
        if self.store.find_by_login(login) is not None:
            raise DuplicateLogin(login)

        user = self.store.insert(login, hash_password(password))
        logger.info("Registered user %s (id=%s)", user.login, user.id)
        return user

    def login(self, login: str, password: str) -> str:
        """Verify credentials and return a new session token.

        Unknown login and wrong password both raise the same
        InvalidCredentials. Both paths run exactly one bcrypt verification so
        response time does not leak which one occurred.
        """
        if not _has_fields(login, password):
            burn_verification(password if isinstance(password, str) else "")
            raise InvalidCredentials()

        user = self.store.find_by_login(login)
        if user is None:
            burn_verification(password)
            logger.info("Failed login for unknown login %s", login)
            raise InvalidCredentials()
        if not verify_password(password, user.password_hash):
            logger.info("Failed login for user %s (id=%s)", user.login, user.id)
            raise InvalidCredentials()

        session_id = self.sessions.create(user.id)
        logger.info("User %s (id=%s) logged in", user.login, user.id)
        return session_id

    def logout(self, session_id: str | None) -> bool:
        """Destroy the session. Returns True if a live session was removed."""
        return self.sessions.destroy(session_id)

    def resolve(self, session_id: str | None) -> User:
        """Return the user behind a session token.

        Raises InvalidSession if the token is not valid, or if the user it
        references no longer exists in the store.
        """
        user_id = self.sessions.validate(session_id)
        user = self.store.get_by_id(user_id)
        if user is None:
            self.sessions.destroy(session_id)
            raise InvalidSession()
        return user
