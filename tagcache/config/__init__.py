"""
Tagcache — Configuration Module

Provides typed configuration loading and validation.
"""

from .loader import get_config, load_config, reload_config, reset_config
from .schemas import (
    CacheBackendType,
    CacheConfig,
    Environment,
    LogLevel,
    ObservabilityConfig,
    TagcacheConfig,
)

__all__ = [
    # Loader functions
    "load_config",
    "get_config",
    "reload_config",
    "reset_config",
    # Main config
    "TagcacheConfig",
    # Enums
    "Environment",
    "CacheBackendType",
    "LogLevel",
    # Config sections
    "CacheConfig",
    "ObservabilityConfig",
]
