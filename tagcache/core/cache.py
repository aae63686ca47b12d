"""
Tagcache — Tagged Cache

Cache front-end for memcache-style stores that adds:

- Tag invalidation: entries carry the stamps of their tags and are
  discarded on read once any tag has been reset.
- A liveness guard: one backend call slower than ``force_timeout`` swaps
  this instance's backend for a no-op store for the rest of its life.
- Transactions: writes and deletes are staged and applied on commit.

Entries written with a non-zero TTL are left to the backend to expire and
skip the tag check.

Example:
    cache = TaggedCache(CacheConfig(prefix="shop")).connect()
    cache.set(user)                       # stored under user.get_cache_key()
    cache.get("User@42")                  # -> user
    cache.reset_tags(["user-list"])       # every zero-TTL entry tagged user-list is now stale
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Generator, Iterable
from contextlib import contextmanager
from typing import Any, TypeVar

from ..cache.backends.dummy import DummyCacheBackend
from ..cache.factory import create_backend
from ..cache.interface import CacheBackend, Cacheable, Monitor
from ..config import CacheConfig
from ..errors import MissingConfigurationError
from .keys import namespaced_key
from .liveness import DEFAULT_FORCE_TIMEOUT, LivenessGuard, LivenessState
from .records import Entry, decode_entry, dump_payload, encode_entry, load_payload
from .tags import StampGenerator, TagStore
from .transaction import CacheTransaction

logger = logging.getLogger(__name__)

T = TypeVar("T")

_MISS = object()


class TaggedCache:
    """
    Tagged cache over a raw backend.

    One instance per logical execution context (e.g. per request). Not
    thread-safe, and holds no locks.
    """

    def __init__(
        self,
        config: CacheConfig | None = None,
        monitor: Monitor | None = None,
        stamps: StampGenerator | None = None,
    ):
        """
        Args:
            config: Store configuration; may also be supplied later through init()
            monitor: Optional timing collector wrapped around every backend call
            stamps: Tag stamp source (defaults to the process-wide generator)
        """
        self._config: CacheConfig | None = None
        self._backend: CacheBackend | None = None
        self._monitor = monitor
        self._liveness = LivenessGuard(DEFAULT_FORCE_TIMEOUT, on_degrade=self._degrade)
        self._tags = TagStore(self, stamps)
        self._transaction = CacheTransaction(self)

        if config is not None:
            self.init(config)

    # ------------ Setup ------------

    def init(self, config: CacheConfig) -> TaggedCache:
        self._config = config
        self._liveness.threshold = config.force_timeout
        return self

    def connect(self, backend: CacheBackend | None = None, name: str | None = None) -> TaggedCache:
        """
        Attach a backend.

        A disabled configuration always gets the no-op backend. Otherwise the
        given backend is used, or one is obtained from the factory registry:
        under ``name`` if given, else under a name derived from the config.

        Raises:
            MissingConfigurationError: If no configuration was supplied
            ConfigurationError: If ``name`` is registered for a different configuration
            CacheConnectionError: If the configured store cannot be reached
        """
        if self._config is None:
            raise MissingConfigurationError("TaggedCache is not configured")

        if self._config.is_disabled():
            self._backend = DummyCacheBackend()
        elif backend is not None:
            self._backend = backend
        else:
            self._backend = create_backend(self._config, name=name)

        return self

    def set_monitor(self, monitor: Monitor | None) -> None:
        self._monitor = monitor

    @property
    def config(self) -> CacheConfig | None:
        return self._config

    @property
    def backend(self) -> CacheBackend | None:
        """Backend currently in use (the no-op backend once degraded)."""
        return self._backend

    @property
    def liveness_state(self) -> LivenessState:
        return self._liveness.state

    @property
    def is_degraded(self) -> bool:
        return self._liveness.is_degraded

    @property
    def tags(self) -> TagStore:
        return self._tags

    # ------------ Reads ------------

    def get(self, key: str) -> Any | None:
        """
        Value stored under ``key``, or None on a miss.

        An entry whose tags have been reset since it was written (and that
        has no TTL of its own) is a miss and is deleted from the backend.
        """
        if self._transaction.is_started() and self._transaction.is_key_deleted(key):
            return None

        entry = decode_entry(self._get(key))
        if entry is None:
            return None

        if not entry.is_valid(self._tags.resolve(entry.tags.keys())):
            # Best effort; a failed delete is harmless
            self._delete(key)
            return None

        value = self._load(key, entry)
        return None if value is _MISS else value

    def get_multi(self, keys: Iterable[str]) -> list[Any]:
        """
        Valid values for ``keys``, in request order.

        Stale entries are skipped but not deleted. Returns an empty list when
        nothing valid was found, including when no keys were requested.
        """
        keys = list(dict.fromkeys(keys))
        if self._transaction.is_started():
            keys = [key for key in keys if not self._transaction.is_key_deleted(key)]
        if not keys:
            return []

        found = self._get_multi(keys)
        entries: list[tuple[str, Entry]] = []
        for key in keys:
            if key not in found:
                continue
            entry = decode_entry(found[key])
            if entry is not None:
                entries.append((key, entry))

        if not entries:
            return []

        current = self._tags.resolve(dict.fromkeys(tag for _, entry in entries for tag in entry.tags))

        result = []
        for key, entry in entries:
            if not entry.is_valid({tag: current[tag] for tag in entry.tags}):
                continue
            value = self._load(key, entry)
            if value is not _MISS:
                result.append(value)
        return result

    def get_raw(self, key: str) -> Any | None:
        """Value written with set_raw(), without any tag checks."""
        if self._transaction.is_started() and self._transaction.is_key_deleted(key):
            return None
        return self._get(key)

    # ------------ Writes ------------

    def set(self, value: Cacheable) -> bool:
        """
        Store ``value`` under its cache key, snapshotting its tags' current stamps.

        Inside a transaction the value is pickled now and written on commit.

        Raises:
            SerializationError: If the value cannot be pickled
        """
        key = value.get_cache_key()
        payload = dump_payload(value)
        tags = list(value.get_cache_tags() or [])
        expires = int(value.get_expires() or 0)

        if self._transaction.is_started():
            return self._transaction.log_business(key, payload, tags, expires)

        return self._write_entry(key, payload, tags, expires)

    def set_raw(self, key: str, value: Any, ttl: int = 0) -> bool:
        """Store ``value`` as-is, outside the entry format."""
        if self._transaction.is_started():
            return self._transaction.log_raw(key, value, ttl)

        return self._set(key, value, ttl, operation="setRaw")

    def set_multi(self, items: Iterable[Cacheable], ttl: int = 0) -> bool:
        """
        Store several values in one backend call with a shared TTL.

        Existing tag stamps are not reset. Nothing is written or staged if
        any value cannot be pickled.
        """
        prepared = [
            (item.get_cache_key(), dump_payload(item), list(item.get_cache_tags() or [])) for item in items
        ]

        if self._transaction.is_started():
            return self._transaction.log_multi(prepared, ttl)

        return self._write_entries(prepared, ttl)

    def delete(self, key: str) -> bool:
        """
        Delete ``key``. Inside a transaction the key is only marked deleted
        and reads of it miss until commit or rollback.
        """
        if self._transaction.is_started():
            return self._transaction.log_deleted(key)

        return self._delete(key)

    def reset_tags(self, tags: str | Iterable[str]) -> dict[str, int]:
        """Invalidate every entry carrying any of ``tags``; returns the new stamps."""
        return self._tags.reset(tags)

    def flush(self) -> bool:
        """Flush the whole backend. For debugging and tests."""
        return self._call("flush", lambda backend: backend.flush())

    # ------------ Transactions ------------

    def begin_transaction(self) -> None:
        """
        Raises:
            CacheTransactionError: If a transaction is already open
        """
        with self._timed("beginTransaction"):
            self._transaction.begin()

    def commit_transaction(self) -> None:
        with self._timed("commitTransaction"):
            self._transaction.commit()

    def rollback_transaction(self) -> None:
        with self._timed("rollbackTransaction"):
            self._transaction.rollback()

    def is_transaction(self) -> bool:
        return self._transaction.is_started()

    @contextmanager
    def transaction(self) -> Generator[TaggedCache, None, None]:
        """
        Commit on normal exit, roll back if the block raises.

        Example:
            with cache.transaction():
                cache.delete("User@42")
                cache.set(other_user)
        """
        self.begin_transaction()
        try:
            yield self
        except BaseException:
            self.rollback_transaction()
            raise
        self.commit_transaction()

    # ------------ Backend calls ------------

    def _write_entry(self, key: str, payload: bytes, tags: list[str], expires: int) -> bool:
        entry = Entry(value=payload, tags=self._tags.resolve(tags), expires=expires)
        return self._set(key, encode_entry(entry), expires)

    def _write_entries(self, prepared: list[tuple[str, bytes, list[str]]], ttl: int) -> bool:
        """One batched write of pickled values, resolving the union of their tags once."""
        if not prepared:
            return True

        current = self._tags.resolve(dict.fromkeys(tag for _, _, tags in prepared for tag in tags))
        records = {
            key: encode_entry(Entry(value=payload, tags={tag: current[tag] for tag in tags}, expires=ttl))
            for key, payload, tags in prepared
        }
        return self._set_multi(records, ttl)

    def _key(self, key: str) -> str:
        if self._config is None:
            raise MissingConfigurationError("TaggedCache is not configured")
        return namespaced_key(self._config.prefix, key)

    def _get(self, key: str) -> Any | None:
        nkey = self._key(key)
        return self._call("get", lambda backend: backend.get(nkey))

    def _get_multi(self, keys: list[str]) -> dict[str, Any]:
        """Batch read keyed by logical key."""
        if not keys:
            return {}

        logical = {self._key(key): key for key in keys}
        found = self._call("getMulti", lambda backend: backend.get_multi(list(logical)))
        return {logical[nkey]: value for nkey, value in (found or {}).items() if nkey in logical}

    def _set(self, key: str, value: Any, ttl: int = 0, operation: str = "set") -> bool:
        nkey = self._key(key)
        return self._call(operation, lambda backend: backend.set(nkey, value, ttl))

    def _set_multi(self, items: dict[str, Any], ttl: int = 0) -> bool:
        if not items:
            return True

        records = {self._key(key): value for key, value in items.items()}
        return self._call("setMulti", lambda backend: backend.set_multi(records, ttl))

    def _delete(self, key: str) -> bool:
        nkey = self._key(key)
        return self._call("delete", lambda backend: backend.delete(nkey))

    def _call(self, operation: str, call: Callable[[CacheBackend], T]) -> T:
        """Run one backend call under the monitor timer and the liveness guard."""
        if self._backend is None:
            raise MissingConfigurationError("TaggedCache is not connected", details={"operation": operation})

        backend = self._backend
        with self._timed(operation):
            start = time.perf_counter()
            try:
                return call(backend)
            finally:
                self._liveness.observe(operation, time.perf_counter() - start)

    @contextmanager
    def _timed(self, operation: str) -> Generator[None, None, None]:
        if self._monitor is None:
            yield
            return

        timer = self._monitor.create_timer({"db": type(self).__name__, "operation": operation})
        try:
            yield
        finally:
            timer.stop()

    def _degrade(self, operation: str, elapsed: float) -> None:
        self._backend = DummyCacheBackend()

        event = getattr(self._monitor, "event", None)
        if callable(event):
            event("cache.degraded", {"db": type(self).__name__, "operation": operation, "elapsed": round(elapsed, 3)})

    def _load(self, key: str, entry: Entry) -> Any:
        try:
            return load_payload(entry.value)
        except Exception as e:
            logger.debug(f"Discarding undecodable payload for key '{key}': {e}", extra={"key": key, "error": str(e)})
            return _MISS
