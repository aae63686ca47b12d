"""
Tagcache — Configuration Loader

Loads and validates configuration from environment variables and .env files.
Provides a singleton configuration instance for the runtime.
"""

import logging
import os
from pathlib import Path

from dotenv import load_dotenv
from pydantic import ValidationError

from ..errors import ConfigurationError
from .schemas import TagcacheConfig

logger = logging.getLogger(__name__)

_config_instance: TagcacheConfig | None = None


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes", "on")


def load_config(
    env_file: str | None = None,
    reload: bool = False,
) -> TagcacheConfig:
    """
    Load configuration from environment variables and .env file.

    Args:
        env_file: Path to .env file (default: .env in the working directory)
        reload: Force reload even if config already loaded

    Returns:
        Validated TagcacheConfig instance

    Raises:
        ConfigurationError: If configuration is invalid
    """
    global _config_instance

    if _config_instance is not None and not reload:
        return _config_instance

    if env_file:
        env_path = Path(env_file)
    else:
        env_path = Path.cwd() / ".env"

    if env_path.exists():
        logger.info(f"Loading environment from {env_path}")
        try:
            load_dotenv(env_path, override=True)
        except Exception as e:
            logger.error(
                f"Failed to load .env file from {env_path}: {e}",
                extra={"path": str(env_path), "error": str(e)},
                exc_info=True,
            )
            raise ConfigurationError(
                f"Failed to load environment file: {e}",
                details={"path": str(env_path), "error": str(e)},
            ) from e
    else:
        logger.debug("No .env file found, using environment variables only")

    try:
        config_dict = {
            "environment": os.getenv("TAGCACHE_ENVIRONMENT", "development"),
            "log_level": os.getenv("TAGCACHE_LOG_LEVEL", "INFO"),
            "cache": {
                "backend": os.getenv("TAGCACHE_BACKEND", "memory"),
                "prefix": os.getenv("TAGCACHE_PREFIX", "tagcache"),
                "host": os.getenv("TAGCACHE_HOST", "localhost"),
                "port": int(os.getenv("TAGCACHE_PORT", "6379")),
                "db": int(os.getenv("TAGCACHE_DB", "0")),
                "disabled": _env_bool("TAGCACHE_DISABLED"),
                "force_timeout": float(os.getenv("TAGCACHE_FORCE_TIMEOUT", "1.0")),
                "default_ttl": int(os.getenv("TAGCACHE_DEFAULT_TTL", "0")),
                "max_size": int(os.getenv("TAGCACHE_MAX_SIZE", "10000")),
                "max_connections": int(os.getenv("TAGCACHE_MAX_CONNECTIONS", "10")),
                "socket_timeout": float(os.getenv("TAGCACHE_SOCKET_TIMEOUT", "5.0")),
            },
            "observability": {
                "enable_metrics": _env_bool("TAGCACHE_ENABLE_METRICS"),
                "metrics_db_path": os.getenv("TAGCACHE_METRICS_DB_PATH", "./data/metrics.db"),
            },
        }
    except ValueError as e:
        raise ConfigurationError(
            f"Invalid numeric value in environment: {e}",
            details={"error": str(e)},
        ) from e

    try:
        _config_instance = TagcacheConfig(**config_dict)  # type: ignore[arg-type]
        logger.info(
            f"Configuration loaded successfully (environment: {_config_instance.environment})",
            extra={"environment": _config_instance.environment, "cache_backend": str(_config_instance.cache.backend)},
        )
        return _config_instance
    except ValidationError as e:
        logger.error(
            f"Configuration validation failed: {e}",
            extra={"validation_errors": e.errors(), "config_dict_keys": list(config_dict.keys())},
            exc_info=True,
        )
        raise ConfigurationError(
            "Configuration validation failed. Check your environment variables and configuration.",
            details={"validation_errors": e.errors()},
        ) from e


def get_config() -> TagcacheConfig:
    """
    Get the current configuration instance, loading it on first access.

    Returns:
        Current TagcacheConfig instance
    """
    if _config_instance is None:
        return load_config()

    return _config_instance


def reload_config(env_file: str | None = None) -> TagcacheConfig:
    """
    Force reload configuration.

    Args:
        env_file: Optional path to .env file

    Returns:
        Reloaded TagcacheConfig instance
    """
    return load_config(env_file=env_file, reload=True)


def reset_config() -> None:
    """Drop the cached configuration instance. Used by tests."""
    global _config_instance
    _config_instance = None
