"""
Tagcache — Dummy Cache Backend

A backend that stores nothing. Every write reports success and every read
is a miss. Used when caching is disabled and as the replacement store once
a cache instance's liveness guard has tripped.
"""

from typing import Any

from ..interface import CacheBackend


class DummyCacheBackend(CacheBackend):
    """No-op backend."""

    def get(self, key: str) -> Any | None:
        return None

    def get_multi(self, keys: list[str]) -> dict[str, Any]:
        return {}

    def set(self, key: str, value: Any, ttl: int = 0) -> bool:
        return True

    def set_multi(self, items: dict[str, Any], ttl: int = 0) -> bool:
        return True

    def delete(self, key: str) -> bool:
        return True

    def flush(self) -> bool:
        return True
