"""
cache/store.py -- SQLite-backed key-value slots for cached payloads.

SlotStore is deliberately dumb: get(key) returns the stored string or None,
put(key, value) replaces it. Freshness, serialization and corruption handling
live in cache/ttl.py, so any durable key-value medium can stand in here.

The default file (cache/gatekeep_cache.db) survives restarts. Pass
":memory:" for a process-local store.

Usage:
    slots = SlotStore()
    slots.put("data", '{"timestamp": 1700000000.0, "data": {...}}')
    raw = slots.get("data")   # returns str or None
    slots.close()

Layer rule: no imports from api/, web/, or auth/.
"""

import sqlite3
import threading
import time
from pathlib import Path
from typing import Optional, Union

from core.config import get_settings

_DDL = """
CREATE TABLE IF NOT EXISTS cache_slots (
    slot_key    TEXT PRIMARY KEY,
    value       TEXT NOT NULL,
    updated_at  REAL NOT NULL
);
"""


class SlotStore:
    def __init__(self, db_path: Optional[Union[str, Path]] = None) -> None:
        db_path = str(db_path if db_path is not None else get_settings().data_cache_path)
        self._conn = sqlite3.connect(db_path, check_same_thread=False)
        # One connection is shared by every worker thread; sqlite3 connections
        # are not safe for concurrent use, so all access is serialized.
        self._lock = threading.Lock()
        with self._lock:
            if db_path != ":memory:":
                self._conn.execute("PRAGMA journal_mode=WAL")
            self._conn.execute(_DDL)
            self._conn.commit()

    def get(self, key: str) -> Optional[str]:
        """Return the raw value stored under key, or None if the slot is empty."""
        with self._lock:
            row = self._conn.execute(
                "SELECT value FROM cache_slots WHERE slot_key = ?",
                (key,),
            ).fetchone()
        return row[0] if row is not None else None

    def put(self, key: str, value: str) -> None:
        """Store value under key, replacing any existing entry."""
        with self._lock:
            self._conn.execute(
                "INSERT OR REPLACE INTO cache_slots (slot_key, value, updated_at) VALUES (?, ?, ?)",
                (key, value, time.time()),
            )
            self._conn.commit()

    def close(self) -> None:
        with self._lock:
            self._conn.close()
