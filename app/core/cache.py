"""
In-memory TTL cache for the polling fallback reads.

Audience pages without a live connection re-fetch the active event list
every few seconds. Those reads are served from this cache and the cache is
invalidated by the session coordinator whenever an event is created or
updated, so a poller never sees an event state older than the last mutation
plus the TTL.

One instance is created per application (see ``app.main``) and injected
where needed; tests construct their own.
"""

import time
import threading
from typing import Any, Callable, Dict, Optional, Tuple
from datetime import datetime
from collections import OrderedDict


class TTLCache:
    """
    Time-To-Live cache with LRU eviction.

    Storage format: OrderedDict[cache_key: (data, timestamp)]

    Uses threading.RLock so sync endpoints running on the threadpool and
    async endpoints on the event loop can share one instance.
    """

    def __init__(self, max_size: int = 100):
        self._cache: OrderedDict[str, Tuple[Any, float]] = OrderedDict()
        self._lock = threading.RLock()
        self._max_size = max_size
        self._hits = 0
        self._misses = 0

    def get(self, key: str) -> Optional[Any]:
        """Get cached value if present (no hit/miss accounting)."""
        with self._lock:
            if key in self._cache:
                data, _ = self._cache[key]
                self._cache.move_to_end(key)
                return data
            return None

    def set(self, key: str, value: Any) -> None:
        """Store value with the current timestamp, evicting the oldest entry when full."""
        with self._lock:
            if key in self._cache:
                del self._cache[key]

            self._cache[key] = (value, time.time())

            while len(self._cache) > self._max_size:
                self._cache.popitem(last=False)

    def is_expired(self, key: str, ttl_seconds: float) -> bool:
        with self._lock:
            if key not in self._cache:
                return True
            _, timestamp = self._cache[key]
            return time.time() - timestamp > ttl_seconds

    def invalidate(self, key: str) -> None:
        with self._lock:
            self._cache.pop(key, None)

    def invalidate_prefix(self, prefix: str) -> int:
        """Remove every key starting with ``prefix``. Returns how many were removed."""
        with self._lock:
            stale = [key for key in self._cache if key.startswith(prefix)]
            for key in stale:
                del self._cache[key]
            return len(stale)

    def get_or_fetch(self, key: str, fetch_func: Callable[[], Any], ttl_seconds: float) -> Any:
        """
        Return the cached value for ``key`` or call ``fetch_func`` and cache it.

        The lock is held across the fetch so concurrent misses on the same key
        only hit the database once.
        """
        with self._lock:
            if not self.is_expired(key, ttl_seconds):
                self._hits += 1
                return self.get(key)

            self._misses += 1
            fresh_data = fetch_func()
            self.set(key, fresh_data)
            return fresh_data

    def get_stats(self) -> Dict[str, Any]:
        """Size, hit/miss counters and per-entry age, for the health endpoint."""
        with self._lock:
            total = self._hits + self._misses
            hit_rate = (self._hits / total * 100) if total > 0 else 0

            entries = {}
            for key, (_, timestamp) in self._cache.items():
                entries[key] = {
                    "age_seconds": round(time.time() - timestamp, 2),
                    "cached_at": datetime.fromtimestamp(timestamp).isoformat()
                }

            return {
                "size": len(self._cache),
                "max_size": self._max_size,
                "hits": self._hits,
                "misses": self._misses,
                "hit_rate_percent": round(hit_rate, 2),
                "entries": entries
            }
