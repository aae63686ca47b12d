"""
Tagcache — Core

Tagged cache front-end: key namespacing, tag stamps, entry validity,
liveness guard and transaction buffering.
"""

from .cache import TaggedCache
from .liveness import LivenessGuard, LivenessState
from .records import Entry
from .tags import StampGenerator, TagStore
from .transaction import CacheTransaction

__all__ = [
    "TaggedCache",
    "TagStore",
    "StampGenerator",
    "Entry",
    "LivenessGuard",
    "LivenessState",
    "CacheTransaction",
]
