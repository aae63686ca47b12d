"""
Tagcache — Configuration Schemas

Defines typed configuration models using Pydantic for validation and type safety.
All configuration must be defined here and validated at startup.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Environment(str, Enum):
    """Runtime environment."""

    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"
    TEST = "test"


class CacheBackendType(str, Enum):
    """Supported cache backends."""

    MEMORY = "memory"
    REDIS = "redis"


class LogLevel(str, Enum):
    """Log levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class CacheConfig(BaseModel):
    """Cache store configuration."""

    backend: CacheBackendType = Field(default=CacheBackendType.MEMORY, description="Cache backend to use")
    prefix: str = Field(default="tagcache", description="Project prefix mixed into every hashed key")
    host: str = Field(default="localhost", description="Cache server host")
    port: int = Field(default=6379, ge=1, le=65535, description="Cache server port")
    db: int = Field(default=0, ge=0, description="Redis database index")
    disabled: bool = Field(default=False, description="Replace the backend with a no-op store")

    force_timeout: float = Field(
        default=1.0,
        gt=0,
        description="Seconds a single backend call may take before the instance degrades to a no-op store",
    )
    default_ttl: int = Field(default=0, ge=0, description="Default TTL in seconds used by backends (0 = no expiry)")
    max_size: int = Field(default=10000, ge=1, description="Max cache entries (memory backend)")

    # Redis-specific settings (only used when backend=redis)
    max_connections: int = Field(default=10, ge=1, description="Redis connection pool size")
    socket_timeout: float = Field(default=5.0, gt=0, description="Redis socket timeout in seconds")

    @field_validator("host")
    @classmethod
    def validate_host(cls, v: str, info: Any) -> str:
        """Ensure a host is provided when the backend is remote."""
        backend = info.data.get("backend")
        if backend == CacheBackendType.REDIS and not v.strip():
            raise ValueError("host is required when cache backend is 'redis'")
        return v.strip()

    def is_disabled(self) -> bool:
        """Whether caching is switched off for this store."""
        return self.disabled

    @property
    def redis_url(self) -> str:
        """Connection URL assembled from host, port and db."""
        return f"redis://{self.host}:{self.port}/{self.db}"


class ObservabilityConfig(BaseModel):
    """Observability and monitoring configuration."""

    enable_metrics: bool = Field(default=False, description="Persist cache call timings")
    metrics_db_path: str = Field(default="./data/metrics.db", description="SQLite file for metric records")


class TagcacheConfig(BaseModel):
    """Root configuration for tagcache."""

    environment: Environment = Field(default=Environment.DEVELOPMENT, description="Runtime environment")
    log_level: LogLevel = Field(default=LogLevel.INFO, description="Logging level")

    cache: CacheConfig = Field(default_factory=CacheConfig)
    observability: ObservabilityConfig = Field(default_factory=ObservabilityConfig)

    model_config = ConfigDict(use_enum_values=True, validate_assignment=True)
