"""
Tagcache — tag-invalidated cache for memcache-style stores.

Usage:
    from tagcache import TaggedCache
    from tagcache.config import get_config

    cache = TaggedCache(get_config().cache).connect()
"""

from .cache import CacheBackend, Cacheable
from .core import LivenessState, TaggedCache

__all__ = [
    "TaggedCache",
    "LivenessState",
    "CacheBackend",
    "Cacheable",
]
