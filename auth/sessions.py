"""
auth/sessions.py -- Server-side session lifecycle: create, validate, destroy.

The manager owns the token -> Session mapping and nothing else. It never
touches cookies or requests; auth/dependencies.py copies tokens to and from
the transport.

Tokens come from secrets.token_urlsafe(32): 256 bits of entropy, so guessing
a live token is computationally infeasible for any realistic session lifetime.

State is an in-memory dict guarded by a threading.Lock. Route handlers run in
FastAPI's thread pool, so every read and write goes through the lock. Sessions
therefore do not survive a restart and are not shared between processes.

Expiry: ttl_seconds=0 (the default) means a session lives until destroy().
With ttl_seconds > 0, validate() rejects and removes sessions older than the
TTL, and purge_expired() sweeps them in bulk.

Layer rule: no imports from api/, web/, or cache/.
"""

from __future__ import annotations

import logging
import secrets
import threading
import time
from collections.abc import Callable

from auth.exceptions import InvalidSession
from auth.models import Session

logger = logging.getLogger("gatekeep.sessions")

_TOKEN_BYTES = 32


def _token_hint(session_id: str) -> str:
    """First 6 characters of a token -- enough to correlate log lines, useless to replay."""
    return f"{session_id[:6]}..."


class SessionManager:
    """Issues, validates and destroys opaque session tokens.

    Usage:
        sessions = SessionManager()
        token = sessions.create(user.id)
        user_id = sessions.validate(token)      # raises InvalidSession if unknown
        sessions.destroy(token)                 # idempotent
    """

    def __init__(self, ttl_seconds: float = 0, clock: Callable[[], float] = time.time) -> None:
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._sessions: dict[str, Session] = {}
        self._lock = threading.Lock()

    def create(self, user_id: int) -> str:
        """Issue a fresh token bound to user_id and return it."""
        with self._lock:
            session_id = secrets.token_urlsafe(_TOKEN_BYTES)
            while session_id in self._sessions:
                session_id = secrets.token_urlsafe(_TOKEN_BYTES)
            self._sessions[session_id] = Session(session_id=session_id, user_id=user_id, created_at=self._clock())
        logger.debug("Session %s issued for user %s", _token_hint(session_id), user_id)
        return session_id

    def validate(self, session_id: str | None) -> int:
        """Return the user id bound to session_id.

        Raises InvalidSession if the token is missing, unknown, destroyed or
        expired. Validation never changes the session (no sliding expiry).
        """
        if not session_id:
            raise InvalidSession()
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                raise InvalidSession()
            if self._is_expired(session):
                del self._sessions[session_id]
                logger.info("Session %s expired for user %s", _token_hint(session_id), session.user_id)
                raise InvalidSession()
            return session.user_id

    def destroy(self, session_id: str | None) -> bool:
        """Remove the session. Returns True if one was removed.

        Destroying an unknown or already-destroyed session is not an error;
        it returns False so callers can treat repeated logout as success.
        """
        if not session_id:
            return False
        with self._lock:
            session = self._sessions.pop(session_id, None)
        if session is None:
            return False
        logger.debug("Session %s destroyed for user %s", _token_hint(session_id), session.user_id)
        return True

    def purge_expired(self) -> int:
        """Delete all expired sessions. Returns the number removed."""
        if self.ttl_seconds <= 0:
            return 0
        with self._lock:
            expired = [sid for sid, s in self._sessions.items() if self._is_expired(s)]
            for sid in expired:
                del self._sessions[sid]
        return len(expired)

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def _is_expired(self, session: Session) -> bool:
        # Caller holds self._lock.
        if self.ttl_seconds <= 0:
            return False
        return self._clock() - session.created_at >= self.ttl_seconds
