"""
Small in-memory TTL cache for hot read endpoints.

Holds the featured (sponsored) poll list and the admin dashboard stats.
Writers that change either invalidate the key explicitly; the TTL only
bounds staleness for changes made elsewhere.
"""

import threading
import time
from collections import OrderedDict
from typing import Any, Callable, Dict, Optional, Tuple

FEATURED_POLLS_KEY = "featured_polls"
ADMIN_STATS_KEY = "admin_stats"


class TTLCache:
    """
    Thread-safe TTL cache with LRU eviction.

    Storage format: OrderedDict[key: (value, stored_at)]

    Uses threading.RLock so sync endpoints running in the threadpool and
    async endpoints on the loop can share it.
    """

    def __init__(self, max_size: int = 100):
        self._cache: "OrderedDict[str, Tuple[Any, float]]" = OrderedDict()
        self._lock = threading.RLock()
        self._max_size = max_size
        self._hits = 0
        self._misses = 0

    def get(self, key: str, ttl_seconds: float) -> Optional[Any]:
        """Fresh cached value, or None when missing or older than ``ttl_seconds``."""
        with self._lock:
            entry = self._cache.get(key)
            if entry is None:
                return None
            value, stored_at = entry
            if time.monotonic() - stored_at > ttl_seconds:
                del self._cache[key]
                return None
            self._cache.move_to_end(key)
            return value

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            self._cache.pop(key, None)
            self._cache[key] = (value, time.monotonic())
            while len(self._cache) > self._max_size:
                self._cache.popitem(last=False)

    def invalidate(self, *keys: str) -> None:
        with self._lock:
            for key in keys:
                self._cache.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._cache.clear()
            self._hits = 0
            self._misses = 0

    def get_or_fetch(self, key: str, fetch_func: Callable[[], Any], ttl_seconds: float) -> Any:
        """
        Cached value for ``key``, calling ``fetch_func`` on a miss.

        The lock is held during the fetch so concurrent misses on the same
        key trigger a single query.
        """
        value = self.get(key, ttl_seconds)
        if value is not None:
            with self._lock:
                self._hits += 1
            return value

        with self._lock:
            value = self.get(key, ttl_seconds)
            if value is not None:
                self._hits += 1
                return value

            self._misses += 1
            value = fetch_func()
            self.set(key, value)
            return value

    def get_stats(self) -> Dict[str, Any]:
        with self._lock:
            total = self._hits + self._misses
            return {
                "size": len(self._cache),
                "max_size": self._max_size,
                "hits": self._hits,
                "misses": self._misses,
                "hit_rate_percent": round(self._hits / total * 100, 2) if total else 0,
            }


global_cache = TTLCache()
