"""
auth/store.py -- SQLAlchemy Core persistence layer for user records.

Pattern: Repository + Data Mapper. UserStore is the repository; _row_to_user
is the mapper. Route and service code never touches SQL directly.

Concurrency:
  Login uniqueness is enforced by the UNIQUE constraint on users.login, not by
  a read-then-write check in Python. Two concurrent inserts of the same login
  race inside the database; exactly one commits and the other gets an
  IntegrityError, which insert() turns into DuplicateLogin. Callers may still
  call find_by_login() first as a cheap early exit, but correctness does not
  depend on it.

Security:
  All queries use bound parameters. No f-strings in SQL.

DB path: auth/gatekeep_auth.db by default (Settings.auth_db_url).

Layer rule: no imports from api/, web/, or cache/.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Column, Integer, MetaData, String, Table, Text, create_engine, event, func, make_url, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError
from sqlalchemy.pool import QueuePool

from auth.exceptions import DuplicateLogin
from auth.models import User
from core.config import get_settings

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_users = Table(
    "users",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("login", String(255), nullable=False, unique=True),
    Column("password_hash", Text, nullable=False),
    Column("created_at", String(32), nullable=False),
)


# ---------------------------------------------------------------------------
# WAL mode
# ---------------------------------------------------------------------------


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode for concurrent read safety.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class UserStore:
    """Repository for User records.

    Usage:
        store = UserStore()
        user = store.insert("alice", hash_password("pw123"))
        same = store.find_by_login("alice")
        store.close()
    """

    def __init__(self, db_url: str | None = None) -> None:
        url = make_url(db_url or get_settings().auth_db_url)
        is_sqlite = url.get_backend_name() == "sqlite"
        engine_kwargs: dict = {}
        if is_sqlite:
            engine_kwargs["connect_args"] = {"check_same_thread": False}
            if url.query.get("mode") == "memory":
                # Named shared-cache memory DB: it lives as long as one pooled
                # connection stays open, and every thread must see the same data.
                engine_kwargs["poolclass"] = QueuePool
        self.engine: Engine = create_engine(url, **engine_kwargs)
        if is_sqlite:
            event.listen(self.engine, "connect", _set_wal_mode)
        _metadata.create_all(self.engine)

    def find_by_login(self, login: str) -> User | None:
        """Look up a user by exact login (case-sensitive). Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.login == login)).fetchone()
        return _row_to_user(row) if row is not None else None

    def get_by_id(self, user_id: int) -> User | None:
        """Look up a user by primary key. Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.id == user_id)).fetchone()
        return _row_to_user(row) if row is not None else None

    def insert(self, login: str, password_hash: str) -> User:
        """Insert a new user record and return it with its assigned ID.

        Raises DuplicateLogin if the login is already taken, including when a
        concurrent insert of the same login commits first.
        """
        created_at = _now_iso()
        try:
            with self.engine.begin() as conn:
                result = conn.execute(
                    _users.insert().values(login=login, password_hash=password_hash, created_at=created_at)
                )
                user_id = result.inserted_primary_key[0]
        except IntegrityError as exc:
            raise DuplicateLogin(login) from exc
        return User(id=user_id, login=login, password_hash=password_hash, created_at=created_at)

    def count(self) -> int:
        """Return the number of registered users."""
        with self.engine.connect() as conn:
            result = conn.execute(select(func.count()).select_from(_users)).scalar()
        return result or 0

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_user(row) -> User:
    return User(
        id=row.id,
        login=row.login,
        password_hash=row.password_hash,
        created_at=row.created_at,
    )
