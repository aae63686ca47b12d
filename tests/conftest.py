"""
Tagcache — Test Configuration and Shared Fixtures

Provides pytest configuration and shared fixtures for unit and integration tests.
"""

import os
from collections.abc import Generator

import pytest

from tagcache.config import CacheConfig
from tagcache.core import TaggedCache

from .helpers import FakeMonitor, RecordingBackend, User

# Set test environment
os.environ["TAGCACHE_ENVIRONMENT"] = "test"
os.environ["TAGCACHE_LOG_LEVEL"] = "DEBUG"


# Redis availability checker
def is_redis_available() -> bool:
    """Check if Redis server is available for testing."""
    import socket

    try:
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        sock.settimeout(1)
        result = sock.connect_ex(("localhost", 6379))
        sock.close()
        return result == 0
    except OSError:
        return False


redis_available = pytest.mark.skipif(not is_redis_available(), reason="Redis server not available")


@pytest.fixture
def cache_config() -> CacheConfig:
    """Memory-backed configuration with a short liveness threshold."""
    return CacheConfig(prefix="test", force_timeout=0.5)


@pytest.fixture
def backend() -> RecordingBackend:
    return RecordingBackend()


@pytest.fixture
def monitor() -> FakeMonitor:
    return FakeMonitor()


@pytest.fixture
def cache(cache_config: CacheConfig, backend: RecordingBackend, monitor: FakeMonitor) -> TaggedCache:
    """Connected tagged cache over a recording backend."""
    return TaggedCache(cache_config, monitor=monitor).connect(backend)


@pytest.fixture
def user() -> User:
    return User(id=42, name="Alice")


@pytest.fixture(autouse=True)
def reset_global_state() -> Generator[None, None, None]:
    """Reset factory and config singletons after each test to prevent state leakage."""
    yield
    from tagcache.cache.factory import reset_backend_factory
    from tagcache.config import reset_config

    reset_backend_factory()
    reset_config()


@pytest.fixture
def mock_env_memory(monkeypatch: pytest.MonkeyPatch) -> None:
    """Set environment variables for memory cache backend."""
    monkeypatch.setenv("TAGCACHE_BACKEND", "memory")
    monkeypatch.setenv("TAGCACHE_PREFIX", "envtest")
    monkeypatch.setenv("TAGCACHE_MAX_SIZE", "100")
    monkeypatch.setenv("TAGCACHE_FORCE_TIMEOUT", "0.25")


@pytest.fixture
def test_redis_url() -> str:
    """Get Redis URL for testing (database 15 for isolation)."""
    return os.environ.get("TEST_REDIS_URL", "redis://localhost:6379/15")
