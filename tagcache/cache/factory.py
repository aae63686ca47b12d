"""
Tagcache — Backend Factory

Canonical factory for creating raw cache backends based on configuration.
Tagged cache instances obtain their backend through connect(), which calls
into this module.

Key points:
- Select backend with TAGCACHE_BACKEND=memory|redis (memory by default)
- TAGCACHE_DISABLED=true swaps in the no-op backend regardless of type
- Remote backends are pinged once at creation; an unreachable server is fatal
- Backends are registered under a name derived from their configuration,
  so per-request cache instances with equal configs share one connection
  pool; reusing an explicit name with a different config is an error

Examples:
    from tagcache.cache.factory import create_backend

    backend = create_backend()

    from tagcache.config import CacheConfig, CacheBackendType
    cfg = CacheConfig(backend=CacheBackendType.MEMORY, prefix="test")
    mem = create_backend(cfg, name="test")
"""

from __future__ import annotations

import logging

from ..config import CacheBackendType, CacheConfig, get_config
from ..errors import CacheConnectionError, ConfigurationError
from .backends.dummy import DummyCacheBackend
from .backends.memory import MemoryCacheBackend
from .interface import CacheBackend

logger = logging.getLogger(__name__)

# Global backend instances registry
_backend_instances: dict[str, CacheBackend] = {}
# name -> backend_name() of the config each instance was built from
_backend_signatures: dict[str, str] = {}


def _create_memory_backend(config: CacheConfig) -> CacheBackend:
    """Internal helper to construct a memory backend."""
    return MemoryCacheBackend(
        max_size=config.max_size,
        default_ttl=config.default_ttl,
    )


def _create_redis_backend(config: CacheConfig) -> CacheBackend:
    """Internal helper to construct a redis backend with lazy import and a connectivity check."""
    try:
        from .backends.redis import RedisCacheBackend
    except ImportError as e:
        logger.error(
            "Redis backend selected but redis client is not installed",
            extra={"package": "redis>=5.0.0", "error": str(e)},
        )
        raise ConfigurationError(
            "Redis backend selected but redis client is unavailable. Install with: pip install 'redis>=5.0.0'",
            details={"package": "redis>=5.0.0", "error": str(e), "backend": "redis"},
        ) from e

    backend = RedisCacheBackend(
        redis_url=config.redis_url,
        namespace=config.prefix,
        default_ttl=config.default_ttl,
        max_connections=config.max_connections,
        socket_timeout=config.socket_timeout,
    )

    if not backend.ping():
        backend.close()
        raise CacheConnectionError(
            f"redis://{config.host}:{config.port}",
            details={"host": config.host, "port": config.port, "db": config.db},
        )

    return backend


def backend_name(config: CacheConfig) -> str:
    """
    Registry name for the backend ``config`` builds.

    Configs that would build the same backend map to the same name, so
    per-request caches share one backend while differently configured
    stores never do.
    """
    if config.is_disabled():
        return "disabled"

    backend = CacheBackendType(config.backend).value
    if backend == CacheBackendType.REDIS.value:
        return (
            f"redis://{config.host}:{config.port}/{config.db}"
            f"?namespace={config.prefix}&ttl={config.default_ttl}"
            f"&pool={config.max_connections}&timeout={config.socket_timeout}"
        )
    return f"{backend}?max_size={config.max_size}&ttl={config.default_ttl}"


def create_backend(
    config: CacheConfig | None = None,
    name: str | None = None,
) -> CacheBackend:
    """
    Create a backend instance based on configuration, or return the one
    already registered under ``name``.

    Args:
        config: Cache configuration (uses global config if not provided)
        name: Registry name (defaults to backend_name(config))

    Returns:
        Configured backend instance

    Raises:
        ConfigurationError: If configuration is invalid, the backend is
            unavailable, or ``name`` is registered for a different configuration
        CacheConnectionError: If the remote store cannot be reached
    """
    if config is None:
        config = get_config().cache

    signature = backend_name(config)
    if name is None:
        name = signature

    if name in _backend_instances:
        if _backend_signatures[name] != signature:
            raise ConfigurationError(
                f"Backend '{name}' is already registered with a different configuration",
                details={"backend_name": name, "registered": _backend_signatures[name], "requested": signature},
            )
        logger.debug("Returning existing backend instance: %s", name)
        return _backend_instances[name]

    logger.info(
        "Creating backend instance '%s' with backend: %s",
        name,
        config.backend,
        extra={"backend_name": name, "backend": str(config.backend), "disabled": config.is_disabled()},
    )

    if config.is_disabled():
        backend: CacheBackend = DummyCacheBackend()
    elif config.backend == CacheBackendType.MEMORY:
        backend = _create_memory_backend(config)
    elif config.backend == CacheBackendType.REDIS:
        backend = _create_redis_backend(config)
    else:
        raise ConfigurationError(
            f"Unknown cache backend: {config.backend}",
            details={
                "backend": str(config.backend),
                "supported": ["memory", "redis"],
            },
        )

    _backend_instances[name] = backend
    _backend_signatures[name] = signature

    logger.info(
        "Backend instance '%s' created successfully",
        name,
        extra={"backend_name": name, "backend_class": type(backend).__name__},
    )

    return backend


def get_backend(name: str | None = None) -> CacheBackend:
    """
    Get an existing backend instance by name, creating it from the global
    configuration if needed. Without a name, the backend for the global
    configuration is returned.
    """
    if name is None or name not in _backend_instances:
        logger.debug("Backend instance '%s' not found, creating new instance", name)
        return create_backend(name=name)

    return _backend_instances[name]


def close_all_backends() -> None:
    """
    Close all backend instances and release resources.

    Should be called during graceful shutdown.
    """
    if not _backend_instances:
        logger.debug("No backend instances to close")
        return

    logger.info("Closing %d backend instance(s)...", len(_backend_instances))

    for name, backend in list(_backend_instances.items()):
        try:
            backend.close()
            logger.info("Closed backend instance: %s", name)
        except Exception as e:
            logger.error(
                "Error closing backend instance '%s': %s",
                name,
                e,
                extra={"backend_name": name, "error": str(e)},
                exc_info=True,
            )

    _backend_instances.clear()
    _backend_signatures.clear()


def reset_backend_factory() -> None:
    """
    Clear all instance references without closing them.

    Warning: Only use this in testing contexts.
    """
    count = len(_backend_instances)
    _backend_instances.clear()
    _backend_signatures.clear()
    logger.debug("Reset backend factory, cleared %d instance reference(s)", count)


def list_backend_instances() -> list[str]:
    """List all registered backend instance names."""
    return list(_backend_instances.keys())
