"""
Tagcache — Backend Interface

Defines the raw key/value contract every cache backend must implement,
and the contract values must satisfy to be stored through the tagged cache.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional, Protocol, runtime_checkable


class CacheBackend(ABC):
    """
    Abstract base class for raw cache backends.

    Backends follow memcache semantics: keys are opaque strings, values are
    opaque, each entry has an optional TTL and there is no native tagging.
    Failures are reported through the return value (None / False / empty
    dict) and never raised.
    """

    @abstractmethod
    def get(self, key: str) -> Optional[Any]:
        """
        Retrieve a value.

        Args:
            key: Backend key

        Returns:
            Stored value, or None on a miss
        """
        pass

    @abstractmethod
    def get_multi(self, keys: list[str]) -> dict[str, Any]:
        """
        Retrieve several values in one call.

        Args:
            keys: Backend keys

        Returns:
            Mapping of found keys to values (missing keys are omitted)
        """
        pass

    @abstractmethod
    def set(self, key: str, value: Any, ttl: int = 0) -> bool:
        """
        Store a value.

        Args:
            key: Backend key
            value: Value to store
            ttl: Time-to-live in seconds (0 = no expiry)

        Returns:
            True if stored successfully, False otherwise
        """
        pass

    @abstractmethod
    def set_multi(self, items: dict[str, Any], ttl: int = 0) -> bool:
        """
        Store several values in one call with a shared TTL.

        Returns:
            True if every item was stored, False otherwise
        """
        pass

    @abstractmethod
    def delete(self, key: str) -> bool:
        """
        Delete a key.

        Returns:
            True if the key was deleted, False if it was absent or the call failed
        """
        pass

    @abstractmethod
    def flush(self) -> bool:
        """
        Remove every entry from the store.

        Returns:
            True if the store was flushed
        """
        pass

    def ping(self) -> bool:
        """Check that the backend is reachable."""
        return True

    def close(self) -> None:
        """Release resources held by the backend."""
        return None


@runtime_checkable
class Cacheable(Protocol):
    """What the tagged cache needs from a value it stores."""

    def get_cache_key(self) -> str: ...

    def get_cache_tags(self) -> list[str]: ...

    def get_expires(self) -> int: ...


@runtime_checkable
class TimerHandle(Protocol):
    """Running timer returned by a monitor."""

    def stop(self) -> Any: ...


@runtime_checkable
class Monitor(Protocol):
    """Timing collector wrapped around every backend call."""

    def create_timer(self, tags: dict[str, str]) -> TimerHandle: ...
