"""
cache/ttl.py -- Single-slot TTL cache for the generated /data payload.

There is exactly one cached object, so there is no keyed collection, no
eviction and no size bound: a stale or missing entry is regenerated and
overwrites the slot.

Freshness rule: an entry is fresh iff (now - entry.timestamp) < ttl.

Record format (JSON, one global slot keyed "data"):
    {"timestamp": <epoch seconds, float>, "data": <payload>}

A record that cannot be read or parsed is treated exactly like a missing one:
it is logged and regenerated, never surfaced to the caller. A failure to
*write* the new record does propagate -- the route layer turns it into a
generic 500.

Concurrency: two requests that both find the entry stale will both call the
generator and both write; the last writer wins. That wastes one generation
but never corrupts the slot, so no lock is taken around the sequence.

Layer rule: no imports from api/, web/, or auth/.
"""

import json
import logging
import math
import random
import sqlite3
import time
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from cache.store import SlotStore

logger = logging.getLogger("gatekeep.cache")

DATA_SLOT = "data"
_DEFAULT_TTL = 60.0  # seconds


class TTLCache:
    """Fresh-or-regenerate cache over one SlotStore slot.

    Usage:
        cache = TTLCache(SlotStore(), ttl_seconds=60)
        payload, was_cached = cache.get(generate_sample_data)
    """

    def __init__(
        self,
        store: SlotStore,
        ttl_seconds: float = _DEFAULT_TTL,
        key: str = DATA_SLOT,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.store = store
        self.ttl_seconds = ttl_seconds
        self.key = key
        self._clock = clock

    def get(self, generator: Callable[[], Any]) -> tuple[Any, bool]:
        """Return (payload, was_cached).

        Serves the stored payload while it is fresh; otherwise calls
        generator(), persists the result with the current time and returns it.
        """
        now = self._clock()
        entry = self._read()
        if entry is not None:
            timestamp, payload = entry
            if now - timestamp < self.ttl_seconds:
                logger.debug("Cache hit for slot %r (age %.1fs)", self.key, now - timestamp)
                return payload, True

        payload = generator()
        self.store.put(self.key, json.dumps({"timestamp": now, "data": payload}))
        logger.debug("Cache miss for slot %r; regenerated", self.key)
        return payload, False

    def _read(self) -> Optional[tuple[float, Any]]:
        """Load and validate the persisted record. None means 'treat as absent'."""
        try:
            raw = self.store.get(self.key)
        except sqlite3.Error:
            logger.warning("Cache slot %r unreadable; regenerating", self.key, exc_info=True)
            return None
        if raw is None:
            return None
        try:
            record = json.loads(raw)
        except (json.JSONDecodeError, TypeError):
            logger.warning("Cache slot %r holds invalid JSON; regenerating", self.key)
            return None
        if not isinstance(record, dict) or "timestamp" not in record or "data" not in record:
            logger.warning("Cache slot %r holds a malformed record; regenerating", self.key)
            return None
        timestamp = record["timestamp"]
        if isinstance(timestamp, bool) or not isinstance(timestamp, (int, float)) or not math.isfinite(timestamp):
            logger.warning("Cache slot %r has an invalid timestamp; regenerating", self.key)
            return None
        return float(timestamp), record["data"]


def generate_sample_data() -> dict:
    """Produce the /data payload: a random integer in [0, 999] and the current UTC time."""
    now = datetime.now(timezone.utc)
    return {
        "random": random.randint(0, 999),  # noqa: S311 -- sample data, not a secret
        "date": now.isoformat(timespec="milliseconds").replace("+00:00", "Z"),
    }
