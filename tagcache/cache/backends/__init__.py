"""
Tagcache — Cache Backends

Exports available cache backend implementations.

Redis backend is lazy-loaded via factory.py to avoid import overhead.
"""

from .dummy import DummyCacheBackend
from .memory import MemoryCacheBackend

__all__ = [
    "DummyCacheBackend",
    "MemoryCacheBackend",
]
