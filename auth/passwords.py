"""
auth/passwords.py -- Password hashing and verification (bcrypt).

Security design decisions:
  bcrypt is used directly (no passlib wrapper). Its cost factor makes
  brute-force of low-entropy secrets expensive, and gensalt() embeds a fresh
  random salt in every digest, so hashing the same password twice yields two
  different tokens. checkpw() recomputes the digest and compares it in
  constant time.

  The cost factor comes from Settings.bcrypt_rounds (default 10).

  _DUMMY_HASH enables timing equalization in AuthService.login() so response
  time does not reveal whether a login exists.

Layer rule: no imports from api/, web/, or cache/.
"""

from __future__ import annotations

import logging

import bcrypt

from auth.exceptions import HashingError
from core.config import get_settings

logger = logging.getLogger("gatekeep.auth")

# bcrypt ignores everything past the first 72 bytes of input; bcrypt>=4.1
# refuses longer inputs outright.
MAX_PASSWORD_BYTES = 72


def hash_password(plain: str, rounds: int | None = None) -> str:
    """Return a salted bcrypt digest of the given plaintext password.

    Raises HashingError if bcrypt fails for any reason. The cause is chained
    for the server log; the message stays generic.
    """
    cost = rounds if rounds is not None else get_settings().bcrypt_rounds
    try:
        digest = bcrypt.hashpw(plain.encode("utf-8"), bcrypt.gensalt(rounds=cost))
    except (ValueError, TypeError, MemoryError) as exc:
        logger.error("Password hashing failed: %s", type(exc).__name__)
        raise HashingError() from exc
    return digest.decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Return True if the plaintext password matches the bcrypt hash.

    Never raises: a malformed hash, or a password bcrypt refuses, is simply
    a non-match.
    """
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except (ValueError, TypeError):
        return False


# Timing equalization dummy hash.
# Computed once at module load so the first login attempt is not measurably
# slower than subsequent ones. Verified against whenever the login does not
# exist so both failure paths cost one bcrypt check.
_DUMMY_HASH: str = hash_password("gatekeep_timing_dummy")


def burn_verification(plain: str) -> None:
    """Run one verification against the dummy hash and discard the result."""
    verify_password(plain, _DUMMY_HASH)
