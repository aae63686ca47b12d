"""
Tagcache — Configuration Tests
"""

from pathlib import Path

import pytest
from pydantic import ValidationError

from tagcache.config import CacheConfig, get_config, load_config, reload_config
from tagcache.config.schemas import CacheBackendType
from tagcache.errors import ConfigurationError


class TestCacheConfig:
    def test_defaults(self) -> None:
        config = CacheConfig()

        assert config.backend == CacheBackendType.MEMORY
        assert config.prefix == "tagcache"
        assert config.force_timeout == 1.0
        assert not config.is_disabled()

    def test_redis_url(self) -> None:
        config = CacheConfig(backend="redis", host=" cache.local ", port=6380, db=2)

        assert config.redis_url == "redis://cache.local:6380/2"

    def test_redis_requires_host(self) -> None:
        with pytest.raises(ValidationError):
            CacheConfig(backend="redis", host="  ")

    @pytest.mark.parametrize("field,value", [("force_timeout", 0), ("port", 70000), ("max_size", 0)])
    def test_out_of_range(self, field: str, value: float) -> None:
        with pytest.raises(ValidationError):
            CacheConfig(**{field: value})


class TestLoadConfig:
    """Environment-driven loading."""

    def test_from_environment(self, mock_env_memory: None) -> None:
        config = load_config(reload=True)

        assert config.environment == "test"
        assert config.cache.prefix == "envtest"
        assert config.cache.max_size == 100
        assert config.cache.force_timeout == 0.25

    def test_disabled_flag(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("TAGCACHE_DISABLED", "yes")

        assert load_config(reload=True).cache.is_disabled()

    def test_cached_instance(self) -> None:
        assert get_config() is get_config()

    def test_reload_picks_up_changes(self, monkeypatch: pytest.MonkeyPatch) -> None:
        get_config()
        monkeypatch.setenv("TAGCACHE_PREFIX", "changed")

        assert reload_config().cache.prefix == "changed"

    def test_non_numeric_value(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("TAGCACHE_PORT", "not-a-port")

        with pytest.raises(ConfigurationError):
            load_config(reload=True)

    def test_invalid_value(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("TAGCACHE_BACKEND", "memcached")

        with pytest.raises(ConfigurationError) as exc_info:
            load_config(reload=True)
        assert "validation_errors" in exc_info.value.details

    def test_env_file(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        # Registered first so teardown restores what the .env file overrides
        monkeypatch.setenv("TAGCACHE_PREFIX", "before")
        env_file = tmp_path / ".env"
        env_file.write_text("TAGCACHE_PREFIX=fromfile\n")

        assert load_config(env_file=str(env_file), reload=True).cache.prefix == "fromfile"
