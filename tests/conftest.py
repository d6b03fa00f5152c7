"""
tests/conftest.py -- Shared test fixtures for gatekeep tests.

This module provides:
  - FakeClock: a manually advanced clock for TTL and session-expiry tests
  - user_store / sessions / auth_service: isolated component fixtures
  - harness: TestClient wired to isolated stores through a patched lifespan
  - lenient_harness: same, but unhandled server errors become 500 responses
    instead of being re-raised into the test

Design: Named shared-memory SQLite URIs (not plain :memory:) are required for
the credential store because TestClient runs route handlers in a thread pool.
Plain :memory: DBs are per-connection and would present a blank schema to
each worker thread. Every harness gets its own URI name so tests never share
users.

BCRYPT_ROUNDS must be set before any auth import: auth/passwords.py hashes
its timing dummy at import time using the configured cost.
"""

from __future__ import annotations

import os
import uuid
from collections.abc import Generator, Iterator
from contextlib import asynccontextmanager, contextmanager
from dataclasses import dataclass

# CRITICAL: set before any auth/core import so get_settings() sees the
# cheapest bcrypt cost and every hash in the suite stays fast.
os.environ.setdefault("BCRYPT_ROUNDS", "4")

import pytest
from fastapi.testclient import TestClient

from asgi import app
from auth.service import AuthService
from auth.sessions import SessionManager
from auth.store import UserStore
from cache.store import SlotStore
from cache.ttl import TTLCache


class FakeClock:
    """Callable clock returning a controllable epoch time in seconds."""

    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def _memory_db_url() -> str:
    return f"sqlite:///file:test_auth_{uuid.uuid4().hex}?mode=memory&cache=shared&uri=true"


# ---------------------------------------------------------------------------
# Component fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def user_store() -> Generator[UserStore, None, None]:
    store = UserStore(_memory_db_url())
    yield store
    store.close()


@pytest.fixture
def sessions(clock: FakeClock) -> SessionManager:
    return SessionManager(clock=clock)


@pytest.fixture
def auth_service(user_store: UserStore, sessions: SessionManager) -> AuthService:
    return AuthService(user_store, sessions)


# ---------------------------------------------------------------------------
# App harness
# ---------------------------------------------------------------------------


@dataclass
class Harness:
    client: TestClient
    clock: FakeClock
    user_store: UserStore
    sessions: SessionManager
    auth_service: AuthService
    data_cache: TTLCache


def _patch_lifespan(harness_state: dict):
    """Return an async context manager that replaces the real lifespan.

    Wires pre-created test stores into app.state so TestClient routes see
    isolated stores rather than the default on-disk databases.
    """

    @asynccontextmanager
    async def test_lifespan(app):
        for name, value in harness_state.items():
            setattr(app.state, name, value)
        yield

    return test_lifespan


@contextmanager
def _harness(raise_server_exceptions: bool) -> Iterator[Harness]:
    clock = FakeClock()
    user_store = UserStore(_memory_db_url())
    sessions = SessionManager(clock=clock)
    auth_service = AuthService(user_store, sessions)
    slot_store = SlotStore(":memory:")
    data_cache = TTLCache(slot_store, ttl_seconds=60, clock=clock)

    app.router.lifespan_context = _patch_lifespan(
        {
            "user_store": user_store,
            "sessions": sessions,
            "auth_service": auth_service,
            "slot_store": slot_store,
            "data_cache": data_cache,
        }
    )

    # follow_redirects=False: protected-page tests assert on the redirect
    # Location, which is invisible once the client follows it.
    with TestClient(app, follow_redirects=False, raise_server_exceptions=raise_server_exceptions) as client:
        yield Harness(
            client=client,
            clock=clock,
            user_store=user_store,
            sessions=sessions,
            auth_service=auth_service,
            data_cache=data_cache,
        )

    slot_store.close()
    user_store.close()


@pytest.fixture
def harness() -> Generator[Harness, None, None]:
    with _harness(raise_server_exceptions=True) as h:
        yield h


@pytest.fixture
def lenient_harness() -> Generator[Harness, None, None]:
    with _harness(raise_server_exceptions=False) as h:
        yield h
