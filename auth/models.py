"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic). Dataclasses own the
domain shape; the store, session manager and routes do the work.

Layer rule: no imports from api/, web/, or cache/.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class User:
    """A registered identity.

    Records are immutable once created -- there is no update or delete path.
    password_hash is the bcrypt digest; the plaintext password is never stored.
    """

    login: str
    password_hash: str
    id: int | None = None
    created_at: str | None = None


@dataclass(frozen=True)
class Session:
    """Server-side binding of an opaque client-held token to a user id.

    user_id is a weak reference: the session does not own the user record.
    created_at is the session manager's clock reading at issuance (epoch
    seconds) and drives optional expiry.
    """

    session_id: str
    user_id: int
    created_at: float
