# src/costkube/core/cache.py
"""
In-memory TTL cache for aggregated cost model responses.
"""

import logging
import threading
import time
from typing import Any, Callable, Dict, Optional, Tuple

logger = logging.getLogger(__name__)


def aggregation_cache_key(
    window: str,
    offset: str,
    namespace: str,
    cluster: str,
    field: str,
    subfield: str,
    time_series: bool,
) -> str:
    """Fingerprint of every query parameter that changes an aggregation result."""
    ts = "true" if time_series else "false"
    return f"aggregate:{window}:{offset}:{namespace}:{cluster}:{field}:{subfield}:{ts}"


class AggregationCache:
    """
    Thread-safe key/value store whose entries expire a fixed time after insertion.

    Lookups and inserts are independent: two identical concurrent requests may
    both miss and both compute before either result is stored.
    """

    def __init__(self, ttl_seconds: float = 120.0, clock: Optional[Callable[[], float]] = None):
        self.ttl_seconds = ttl_seconds
        self._clock = clock or time.monotonic
        self._entries: Dict[str, Tuple[float, Any]] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Tuple[Any, bool]:
        """Return (value, True) for a live entry, (None, False) otherwise."""
        now = self._clock()
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None, False
            expires_at, value = entry
            if now >= expires_at:
                del self._entries[key]
                return None, False
            return value, True

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            self._entries[key] = (self._clock() + self.ttl_seconds, value)

    def flush(self) -> None:
        """Remove every entry."""
        with self._lock:
            self._entries.clear()
        logger.info("Aggregation cache flushed.")

    def delete_expired(self) -> int:
        """Drop expired entries and return how many were removed."""
        now = self._clock()
        with self._lock:
            expired = [k for k, (expires_at, _) in self._entries.items() if now >= expires_at]
            for k in expired:
                del self._entries[k]
        if expired:
            logger.debug(f"Evicted {len(expired)} expired cache entr(ies).")
        return len(expired)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
