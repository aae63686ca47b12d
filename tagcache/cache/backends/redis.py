"""
Tagcache — Redis Cache Backend

Synchronous Redis store used as the memcache-style backend of a tagged cache.

- Values are pickled, so entry records, tag stamps and raw values all
  come back as written
- Every key lives under "<namespace>:" so flush() only touches this store
- get_multi/set_multi map onto MGET and a non-transactional pipeline

Requires: redis>=5.0

Example:
    backend = RedisCacheBackend(redis_url="redis://localhost:6379/0", namespace="shop")
    backend.set("greeting", b"hello", ttl=60)
    backend.get("greeting")
"""

from __future__ import annotations

import logging
import pickle
from typing import Any

from redis import Redis

from ..interface import CacheBackend

logger = logging.getLogger(__name__)

_SCAN_BATCH = 1000


class RedisCacheBackend(CacheBackend):
    """
    Redis store with pickled values.

    Driver errors never escape: they are logged and reported as a miss,
    an empty batch or False.
    """

    def __init__(
        self,
        redis_url: str,
        namespace: str = "tagcache",
        default_ttl: int = 0,
        max_connections: int = 10,
        socket_timeout: float = 5.0,
    ) -> None:
        """
        Args:
            redis_url: redis:// or rediss:// URL including the database index
            namespace: Key prefix owned by this store
            default_ttl: Seconds applied when a call passes ttl=0 (0 keeps keys forever)
            max_connections: Size of the client's connection pool
            socket_timeout: Per-command socket timeout in seconds
        """
        if not redis_url:
            raise ValueError("redis_url is required")

        self.namespace = namespace.strip() or "tagcache"
        self.default_ttl = max(0, int(default_ttl))
        self._hits = 0
        self._misses = 0
        self._sets = 0
        self._deletes = 0

        # No I/O here; the pool connects on the first command
        self._client = Redis.from_url(
            url=redis_url,
            decode_responses=False,
            max_connections=max_connections,
            socket_timeout=socket_timeout,
        )

    def _make_key(self, key: str) -> str:
        return f"{self.namespace}:{key}"

    @staticmethod
    def _dumps(value: Any) -> bytes:
        return pickle.dumps(value, protocol=pickle.HIGHEST_PROTOCOL)

    @staticmethod
    def _loads(data: bytes) -> Any | None:
        try:
            return pickle.loads(data)
        except Exception as e:
            logger.warning(f"Unreadable value in Redis: {e}", extra={"data_preview": data[:100], "error": str(e)})
            return None

    def _expiry(self, ttl: int) -> int | None:
        """EX seconds for a call, or None for keys without expiry."""
        seconds = int(ttl) or self.default_ttl
        return seconds if seconds > 0 else None

    def get(self, key: str) -> Any | None:
        try:
            data = self._client.get(self._make_key(key))
        except Exception as e:
            logger.error(
                f"Redis GET failed for '{key}': {e}",
                extra={"key": key, "namespace": self.namespace, "error": str(e)},
                exc_info=True,
            )
            self._misses += 1
            return None

        if data is None:
            self._misses += 1
            return None

        self._hits += 1
        return self._loads(data)

    def get_multi(self, keys: list[str]) -> dict[str, Any]:
        """Found keys only, fetched with a single MGET."""
        if not keys:
            return {}

        try:
            values = self._client.mget([self._make_key(key) for key in keys])
        except Exception as e:
            logger.error(
                f"Redis MGET failed for {len(keys)} keys: {e}",
                extra={"key_count": len(keys), "namespace": self.namespace, "error": str(e)},
                exc_info=True,
            )
            return {}

        found: dict[str, Any] = {}
        for key, data in zip(keys, values):
            if data is None:
                self._misses += 1
            else:
                self._hits += 1
                found[key] = self._loads(data)
        return found

    def set(self, key: str, value: Any, ttl: int = 0) -> bool:
        try:
            payload = self._dumps(value)
        except (pickle.PicklingError, TypeError, AttributeError) as e:
            logger.error(
                f"Cannot pickle value for '{key}': {e}",
                extra={"key": key, "value_type": type(value).__name__, "error": str(e)},
            )
            return False

        try:
            stored = bool(self._client.set(self._make_key(key), payload, ex=self._expiry(ttl)))
        except Exception as e:
            logger.error(
                f"Redis SET failed for '{key}': {e}",
                extra={"key": key, "namespace": self.namespace, "ttl": ttl, "error": str(e)},
                exc_info=True,
            )
            return False

        if stored:
            self._sets += 1
        return stored

    def set_multi(self, items: dict[str, Any], ttl: int = 0) -> bool:
        """Pipelined SETs sharing one expiry; True only if every SET succeeded."""
        if not items:
            return True

        ex = self._expiry(ttl)
        try:
            with self._client.pipeline(transaction=False) as pipe:
                for key, value in items.items():
                    pipe.set(self._make_key(key), self._dumps(value), ex=ex)
                results = pipe.execute()
        except Exception as e:
            logger.error(
                f"Redis pipelined SET failed for {len(items)} keys: {e}",
                extra={"key_count": len(items), "namespace": self.namespace, "ttl": ttl, "error": str(e)},
                exc_info=True,
            )
            return False

        stored = sum(1 for result in results if result)
        self._sets += stored
        return stored == len(items)

    def delete(self, key: str) -> bool:
        try:
            removed = self._client.delete(self._make_key(key))
        except Exception as e:
            logger.error(
                f"Redis DEL failed for '{key}': {e}",
                extra={"key": key, "namespace": self.namespace, "error": str(e)},
                exc_info=True,
            )
            return False

        self._deletes += removed
        return removed > 0

    def flush(self) -> bool:
        """Delete every key under this store's namespace, leaving the rest of the database alone."""
        removed = 0
        batch: list[bytes] = []
        try:
            for raw_key in self._client.scan_iter(match=f"{self.namespace}:*", count=_SCAN_BATCH):
                batch.append(raw_key)
                if len(batch) >= _SCAN_BATCH:
                    removed += self._client.delete(*batch)
                    batch.clear()
            if batch:
                removed += self._client.delete(*batch)
        except Exception as e:
            logger.error(
                f"Redis flush of namespace '{self.namespace}' failed: {e}",
                extra={"namespace": self.namespace, "error": str(e)},
                exc_info=True,
            )
            return False

        self._deletes += removed
        logger.info(f"Flushed {removed} keys from Redis namespace '{self.namespace}'")
        return True

    def ping(self) -> bool:
        try:
            return bool(self._client.ping())
        except Exception as e:
            logger.warning(f"Redis ping failed: {e}", extra={"namespace": self.namespace, "error": str(e)})
            return False

    def get_stats(self) -> dict[str, Any]:
        """Client-side counters; nothing is read from the server."""
        lookups = self._hits + self._misses
        return {
            "backend": "redis",
            "namespace": self.namespace,
            "default_ttl": self.default_ttl,
            "hits": self._hits,
            "misses": self._misses,
            "hit_rate": round(self._hits / lookups * 100, 2) if lookups else 0.0,
            "sets": self._sets,
            "deletes": self._deletes,
        }

    def close(self) -> None:
        try:
            self._client.close()
        except Exception as e:
            logger.error(
                f"Failed to close Redis client: {e}", extra={"namespace": self.namespace, "error": str(e)}, exc_info=True
            )
        else:
            logger.info(f"Redis backend for namespace '{self.namespace}' closed")
