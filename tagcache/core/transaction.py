"""
Tagcache — Cache Transaction

Write buffer for a tagged cache. While a transaction is open the cache
stages writes and deletes here instead of sending them to the backend.
Commit replays the log in order through the cache; rollback drops it.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from ..errors import CacheTransactionError

if TYPE_CHECKING:
    from .cache import TaggedCache

logger = logging.getLogger(__name__)

OP_SET = "set"
OP_SET_RAW = "set_raw"
OP_SET_MULTI = "set_multi"
OP_DELETE = "delete"

OPERATION_KINDS = frozenset((OP_SET, OP_SET_RAW, OP_SET_MULTI, OP_DELETE))

# (key, pickled value, tags) as prepared by TaggedCache.set_multi
StagedEntry = tuple[str, bytes, list[str]]


@dataclass
class LoggedOperation:
    """
    One staged call.

    Entry writes carry the already pickled value, so a value that cannot be
    stored is rejected when staged and later mutations of it are not seen.
    """

    kind: str
    key: str | None = None
    value: Any = None
    tags: list[str] = field(default_factory=list)
    items: list[StagedEntry] = field(default_factory=list)
    ttl: int = 0

    def __post_init__(self) -> None:
        if self.kind not in OPERATION_KINDS:
            raise CacheTransactionError(f"Unknown cache operation '{self.kind}'", details={"kind": self.kind})


class CacheTransaction:
    """
    Operation log owned by one TaggedCache.

    Not reentrant: begin() on an open transaction raises.
    """

    def __init__(self, cache: "TaggedCache"):
        self._cache = cache
        self._started = False
        self._log: list[LoggedOperation] = []
        self._deleted: set[str] = set()

    def is_started(self) -> bool:
        return self._started

    def begin(self) -> None:
        if self._started:
            raise CacheTransactionError("Cache transaction already started")
        self._started = True
        self._log = []
        self._deleted = set()

    def commit(self) -> None:
        """
        Close the transaction, then apply every staged operation in order.

        The log is checked before anything is applied; a bad entry leaves the
        transaction open for rollback.
        """
        if not self._started:
            raise CacheTransactionError("No cache transaction to commit")

        unknown = [op.kind for op in self._log if op.kind not in OPERATION_KINDS]
        if unknown:
            raise CacheTransactionError("Cannot commit unknown cache operations", details={"kinds": unknown})

        log = self._log
        self._reset()

        logger.debug("Committing cache transaction", extra={"operation_count": len(log)})
        for op in log:
            if op.kind == OP_SET:
                self._cache._write_entry(op.key, op.value, op.tags, op.ttl)
            elif op.kind == OP_SET_RAW:
                self._cache.set_raw(op.key, op.value, op.ttl)
            elif op.kind == OP_SET_MULTI:
                self._cache._write_entries(op.items, op.ttl)
            else:
                self._cache.delete(op.key)

    def rollback(self) -> None:
        if not self._started:
            raise CacheTransactionError("No cache transaction to roll back")

        logger.debug("Rolling back cache transaction", extra={"operation_count": len(self._log)})
        self._reset()

    def log_business(self, key: str, payload: bytes, tags: list[str], expires: int = 0) -> bool:
        self._require_started()
        self._deleted.discard(key)
        self._log.append(LoggedOperation(OP_SET, key=key, value=payload, tags=list(tags), ttl=expires))
        return True

    def log_raw(self, key: str, value: Any, ttl: int = 0) -> bool:
        self._require_started()
        self._deleted.discard(key)
        self._log.append(LoggedOperation(OP_SET_RAW, key=key, value=value, ttl=ttl))
        return True

    def log_multi(self, items: Iterable[StagedEntry], ttl: int = 0) -> bool:
        self._require_started()
        items = list(items)
        for key, _, _ in items:
            self._deleted.discard(key)
        self._log.append(LoggedOperation(OP_SET_MULTI, items=items, ttl=ttl))
        return True

    def log_deleted(self, key: str) -> bool:
        self._require_started()
        self._deleted.add(key)
        self._log.append(LoggedOperation(OP_DELETE, key=key))
        return True

    def is_key_deleted(self, key: str) -> bool:
        return self._started and key in self._deleted

    def __len__(self) -> int:
        return len(self._log)

    def _require_started(self) -> None:
        if not self._started:
            raise CacheTransactionError("No cache transaction is open")

    def _reset(self) -> None:
        self._started = False
        self._log = []
        self._deleted = set()
