"""
Tagcache — Tag Versions

A tag is an invalidation group. Its state is a single stamp stored as an
ordinary backend entry. Entries remember the stamps of their tags at write
time; resetting a tag gives it a fresh stamp, which makes every entry
written against the old one stale the next time it is read.

Stamps are nanoseconds since the epoch, forced strictly increasing within
the process so that two resets inside one clock tick stay distinguishable.
Two processes resetting the same tag in the same nanosecond may produce
equal stamps; readers then keep trusting entries until the next reset.
Tag resets and entry writes are separate backend calls, so a concurrent
reader can see an entry next to a stamp from before or after the reset.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Iterable
from typing import TYPE_CHECKING

from .keys import tag_storage_key
from .records import dump_stamp, load_stamp

if TYPE_CHECKING:
    from .cache import TaggedCache


class StampGenerator:
    """Strictly increasing wall-clock stamps."""

    def __init__(self) -> None:
        self._last = 0
        self._lock = threading.Lock()

    def next(self) -> int:
        with self._lock:
            self._last = max(time.time_ns(), self._last + 1)
            return self._last


_default_stamps = StampGenerator()


def default_stamp_generator() -> StampGenerator:
    """Process-wide generator shared by cache instances that are not given one."""
    return _default_stamps


def _as_tag_list(tags: str | Iterable[str] | None) -> list[str]:
    if tags is None:
        return []
    if isinstance(tags, str):
        return [tags]
    # Drop duplicates, keep first-seen order
    return list(dict.fromkeys(tags))


class TagStore:
    """
    Reads and resets tag stamps through a cache instance's timed backend
    calls, so they share its key namespace and its liveness guard.
    """

    def __init__(self, cache: "TaggedCache", stamps: StampGenerator | None = None):
        self._cache = cache
        self._stamps = stamps or default_stamp_generator()

    def resolve(self, tags: str | Iterable[str] | None) -> dict[str, int]:
        """
        Current stamp of each tag.

        Tags with no stamp yet (or an unreadable one) get a fresh stamp,
        written back at once so that concurrent readers converge on it.
        """
        tag_list = _as_tag_list(tags)
        if not tag_list:
            return {}

        storage_keys = {tag: tag_storage_key(tag) for tag in tag_list}
        found = self._cache._get_multi(list(storage_keys.values()))

        versions: dict[str, int] = {}
        created: dict[str, bytes] = {}
        for tag, storage_key in storage_keys.items():
            stamp = load_stamp(found.get(storage_key))
            if stamp is None:
                stamp = self._stamps.next()
                created[storage_key] = dump_stamp(stamp)
            versions[tag] = stamp

        if created:
            self._cache._set_multi(created)

        return versions

    def reset(self, tags: str | Iterable[str] | None) -> dict[str, int]:
        """Give each tag a new stamp in one batched write and return the new stamps."""
        tag_list = _as_tag_list(tags)
        if not tag_list:
            return {}

        versions = {tag: self._stamps.next() for tag in tag_list}
        self._cache._set_multi({tag_storage_key(tag): dump_stamp(stamp) for tag, stamp in versions.items()})
        return versions
