"""Unit tests for the read cache."""
import threading
import time
from concurrent.futures import ThreadPoolExecutor

import pytest

from naijapulse.core.cache import TTLCache


@pytest.mark.unit
class TestTTLCache:
    """Tests for TTLCache class."""

    def test_basic_get_set(self):
        cache = TTLCache()
        cache.set("key1", "value1")
        assert cache.get("key1", ttl_seconds=10) == "value1"

    def test_get_nonexistent_key(self):
        cache = TTLCache()
        assert cache.get("nonexistent", ttl_seconds=10) is None

    def test_ttl_expiration(self):
        """Test that cached values expire after TTL."""
        cache = TTLCache()
        cache.set("key1", "value1")

        time.sleep(0.06)

        assert cache.get("key1", ttl_seconds=0.05) is None
        assert cache.get_stats()["size"] == 0

    def test_lru_eviction(self):
        """Test that the least recently used entry is evicted when full."""
        cache = TTLCache(max_size=2)
        cache.set("key1", "value1")
        cache.set("key2", "value2")

        # Touch key1 so key2 becomes the eviction candidate
        cache.get("key1", ttl_seconds=10)
        cache.set("key3", "value3")

        assert cache.get("key1", ttl_seconds=10) == "value1"
        assert cache.get("key2", ttl_seconds=10) is None
        assert cache.get("key3", ttl_seconds=10) == "value3"

    def test_invalidate(self):
        cache = TTLCache()
        cache.set("a", 1)
        cache.set("b", 2)
        cache.invalidate("a", "missing")

        assert cache.get("a", ttl_seconds=10) is None
        assert cache.get("b", ttl_seconds=10) == 2

    def test_get_or_fetch_caches_result(self):
        cache = TTLCache()
        calls = []

        def fetch():
            calls.append(1)
            return ["poll"]

        assert cache.get_or_fetch("featured", fetch, ttl_seconds=10) == ["poll"]
        assert cache.get_or_fetch("featured", fetch, ttl_seconds=10) == ["poll"]
        assert len(calls) == 1

        stats = cache.get_stats()
        assert stats["hits"] == 1
        assert stats["misses"] == 1
        assert stats["hit_rate_percent"] == 50.0

    def test_get_or_fetch_error_is_not_cached(self):
        cache = TTLCache()

        def failing():
            raise RuntimeError("database down")

        with pytest.raises(RuntimeError):
            cache.get_or_fetch("stats", failing, ttl_seconds=10)
        assert cache.get_or_fetch("stats", lambda: {"ok": True}, ttl_seconds=10) == {"ok": True}

    def test_concurrent_misses_fetch_once(self):
        """Test that simultaneous misses on one key run a single fetch."""
        cache = TTLCache()
        calls = []
        lock = threading.Lock()

        def slow_fetch():
            with lock:
                calls.append(1)
            time.sleep(0.05)
            return "value"

        with ThreadPoolExecutor(max_workers=5) as executor:
            results = list(executor.map(lambda _: cache.get_or_fetch("k", slow_fetch, 10), range(5)))

        assert results == ["value"] * 5
        assert len(calls) == 1

    def test_clear_resets_stats(self):
        cache = TTLCache()
        cache.get_or_fetch("k", lambda: 1, ttl_seconds=10)
        cache.clear()
        assert cache.get_stats() == {
            "size": 0,
            "max_size": 100,
            "hits": 0,
            "misses": 0,
            "hit_rate_percent": 0,
        }
