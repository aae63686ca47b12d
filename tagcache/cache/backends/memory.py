"""
Tagcache — Memory Cache Backend

In-memory backend with LRU eviction and TTL support.
Thread-safe and suitable for single-process deployments and tests.
"""

import logging
import threading
import time
from collections import OrderedDict
from typing import Any

from ..interface import CacheBackend

logger = logging.getLogger(__name__)


class MemoryCacheBackend(CacheBackend):
    """
    Process-local store backed by an OrderedDict kept in LRU order.

    The least recently used key is evicted once max_size is reached.
    Values are stored by reference, not copied.
    """

    def __init__(
        self,
        max_size: int = 10000,
        default_ttl: int = 0,
    ):
        """
        Args:
            max_size: Entry count above which the least recently used key is evicted
            default_ttl: TTL in seconds applied when a call passes ttl=0 (0 = no expiry)
        """
        self.max_size = max_size
        self.default_ttl = default_ttl

        # key -> (value, absolute expiry or None)
        self._cache: OrderedDict[str, tuple[Any, float | None]] = OrderedDict()

        # Stats
        self._hits = 0
        self._misses = 0
        self._sets = 0
        self._deletes = 0
        self._evictions = 0

        self._lock = threading.Lock()

    def _is_expired(self, expiry: float | None) -> bool:
        if expiry is None:
            return False
        return time.time() > expiry

    def _expiry(self, ttl: int) -> float | None:
        ttl = ttl or self.default_ttl
        return time.time() + ttl if ttl > 0 else None

    def _store(self, key: str, value: Any, expiry: float | None) -> None:
        """Insert one entry. Caller holds the lock."""
        if key not in self._cache and len(self._cache) >= self.max_size:
            evicted_key, _ = self._cache.popitem(last=False)
            self._evictions += 1
            logger.debug(f"Memory backend full, evicted {evicted_key}", extra={"max_size": self.max_size})

        self._cache[key] = (value, expiry)
        self._cache.move_to_end(key)
        self._sets += 1

    def _lookup(self, key: str) -> tuple[bool, Any]:
        """Find one live entry. Caller holds the lock."""
        if key not in self._cache:
            self._misses += 1
            return False, None

        value, expiry = self._cache[key]
        if self._is_expired(expiry):
            del self._cache[key]
            self._misses += 1
            return False, None

        self._cache.move_to_end(key)
        self._hits += 1
        return True, value

    def get(self, key: str) -> Any | None:
        if not key:
            logger.warning("Empty key passed to memory backend get()")
            return None

        with self._lock:
            _, value = self._lookup(key)
            return value

    def get_multi(self, keys: list[str]) -> dict[str, Any]:
        """Retrieve multiple values under one lock acquisition."""
        if not keys:
            return {}

        result = {}
        with self._lock:
            for key in keys:
                if not key:
                    continue
                found, value = self._lookup(key)
                if found:
                    result[key] = value
        return result

    def set(self, key: str, value: Any, ttl: int = 0) -> bool:
        """Store value in cache."""
        if not key:
            logger.warning("Empty key passed to memory backend set()")
            return False

        with self._lock:
            self._store(key, value, self._expiry(ttl))
        return True

    def set_multi(self, items: dict[str, Any], ttl: int = 0) -> bool:
        """Store multiple values with one shared expiry."""
        if not items:
            return True

        expiry = self._expiry(ttl)
        stored_all = True
        with self._lock:
            for key, value in items.items():
                if not key:
                    stored_all = False
                    continue
                self._store(key, value, expiry)
        return stored_all

    def delete(self, key: str) -> bool:
        """Delete key from cache."""
        if not key:
            logger.warning("Empty key passed to memory backend delete()")
            return False

        with self._lock:
            if key in self._cache:
                del self._cache[key]
                self._deletes += 1
                return True
            return False

    def flush(self) -> bool:
        """Drop every entry."""
        with self._lock:
            size = len(self._cache)
            self._cache.clear()
        logger.info(f"Flushed {size} entries from memory cache")
        return True

    def get_stats(self) -> dict[str, Any]:
        """Get cache statistics."""
        with self._lock:
            lookups = self._hits + self._misses
            hit_rate = self._hits / lookups * 100 if lookups else 0.0

            return {
                "backend": "memory",
                "size": len(self._cache),
                "max_size": self.max_size,
                "hits": self._hits,
                "misses": self._misses,
                "hit_rate": round(hit_rate, 2),
                "sets": self._sets,
                "deletes": self._deletes,
                "evictions": self._evictions,
            }

    def close(self) -> None:
        logger.debug("Memory cache backend closed")
