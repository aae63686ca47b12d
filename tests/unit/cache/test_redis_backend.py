"""
Tagcache — Redis Cache Backend Tests

Test suite for the Redis cache backend.
Tests all interface methods, TTL handling, namespace isolation, and error conditions.

Requires Redis server running on localhost:6379 (or TEST_REDIS_URL env var).
"""

import time
from collections.abc import Generator

import pytest

from tagcache.cache.backends.redis import RedisCacheBackend
from tagcache.config import CacheConfig
from tagcache.core import TaggedCache

from ...conftest import redis_available
from ...helpers import User

pytestmark = redis_available


class TestRedisCacheBackend:
    """Test suite for RedisCacheBackend."""

    @pytest.fixture
    def cache(self, test_redis_url: str) -> Generator[RedisCacheBackend, None, None]:
        """Create a fresh Redis cache instance for each test."""
        cache = RedisCacheBackend(
            redis_url=test_redis_url,
            namespace="test",
            max_connections=5,
            socket_timeout=2,
        )
        cache.flush()
        yield cache
        cache.flush()
        cache.close()

    def test_initialization(self, test_redis_url: str) -> None:
        """Test cache initialization with custom parameters."""
        cache = RedisCacheBackend(redis_url=test_redis_url, namespace="custom", default_ttl=1800)

        assert cache.namespace == "custom"
        assert cache.default_ttl == 1800
        assert cache.ping() is True

        stats = cache.get_stats()
        assert stats["backend"] == "redis"
        assert stats["namespace"] == "custom"

        cache.close()

    def test_requires_url(self) -> None:
        with pytest.raises(ValueError):
            RedisCacheBackend(redis_url="")

    def test_set_and_get(self, cache: RedisCacheBackend) -> None:
        """Test basic set and get operations."""
        assert cache.set("key1", b"value1") is True
        assert cache.get("key1") == b"value1"
        assert cache.get_stats()["hits"] == 1

    def test_get_nonexistent_key(self, cache: RedisCacheBackend) -> None:
        assert cache.get("nonexistent") is None

    def test_values_round_trip(self, cache: RedisCacheBackend) -> None:
        """Test that pickled values come back unchanged."""
        values = {"int": 7, "dict": {"a": [1, 2]}, "bytes": b"\x00\xff", "unicode": "ключ"}
        for key, value in values.items():
            cache.set(key, value)

        for key, value in values.items():
            assert cache.get(key) == value

    def test_delete(self, cache: RedisCacheBackend) -> None:
        cache.set("key1", "value1")

        assert cache.delete("key1") is True
        assert cache.get("key1") is None
        assert cache.delete("key1") is False

    def test_ttl_expiration(self, cache: RedisCacheBackend) -> None:
        cache.set("ttl_key", "value", ttl=1)
        assert cache.get("ttl_key") == "value"

        time.sleep(1.5)

        assert cache.get("ttl_key") is None

    def test_zero_ttl_no_expiry(self, cache: RedisCacheBackend) -> None:
        cache.set("forever", "value", ttl=0)

        assert cache._client.ttl(cache._make_key("forever")) == -1

    def test_get_multi(self, cache: RedisCacheBackend) -> None:
        cache.set_multi({"key1": 1, "key2": 2})

        assert cache.get_multi(["key1", "key2", "missing"]) == {"key1": 1, "key2": 2}
        assert cache.get_multi([]) == {}

    def test_set_multi_with_ttl(self, cache: RedisCacheBackend) -> None:
        assert cache.set_multi({"key1": 1, "key2": 2}, ttl=60) is True

        assert 0 < cache._client.ttl(cache._make_key("key1")) <= 60

    def test_flush_only_touches_namespace(self, cache: RedisCacheBackend, test_redis_url: str) -> None:
        """Test namespace isolation of flush."""
        other = RedisCacheBackend(redis_url=test_redis_url, namespace="other")
        other.set("key", "kept")
        cache.set("key", "dropped")

        assert cache.flush() is True

        assert cache.get("key") is None
        assert other.get("key") == "kept"
        other.flush()
        other.close()

    def test_unreadable_value_is_a_miss(self, cache: RedisCacheBackend) -> None:
        cache._client.set(cache._make_key("junk"), b"not a pickle")

        assert cache.get("junk") is None

    def test_connection_error_handling(self) -> None:
        """Test that an unreachable server degrades to misses instead of raising."""
        cache = RedisCacheBackend(redis_url="redis://localhost:1/0", socket_timeout=0.5)

        assert cache.ping() is False
        assert cache.get("key") is None
        assert cache.set("key", "value") is False
        assert cache.get_multi(["key"]) == {}
        cache.close()

    def test_tagged_cache_over_redis(self, cache: RedisCacheBackend) -> None:
        """Test the full tag invalidation flow against a real server."""
        tagged = TaggedCache(CacheConfig(prefix="redis-test")).connect(cache)
        user = User(id=42, name="Alice")

        tagged.set(user)
        assert tagged.get("user@42") == user

        tagged.reset_tags("user-list")
        assert tagged.get("user@42") is None
