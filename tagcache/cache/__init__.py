"""
Tagcache — Raw Cache Layer

Backend contract, backend implementations and the factory that builds them.

Usage:
    from tagcache.cache import create_backend

    backend = create_backend()
    backend.set("key", b"value", ttl=3600)
    value = backend.get("key")
"""

from .factory import (
    backend_name,
    close_all_backends,
    create_backend,
    get_backend,
    list_backend_instances,
    reset_backend_factory,
)
from .interface import CacheBackend, Cacheable

__all__ = [
    # Factory functions
    "backend_name",
    "create_backend",
    "get_backend",
    "close_all_backends",
    "list_backend_instances",
    "reset_backend_factory",
    # Interfaces
    "CacheBackend",
    "Cacheable",
]
