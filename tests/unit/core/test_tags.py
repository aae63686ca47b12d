"""
Tagcache — Tag Store Tests
"""

import pytest

from tagcache.core import StampGenerator, TaggedCache
from tagcache.core.keys import tag_key
from tagcache.core.records import load_stamp

from ...helpers import RecordingBackend


class TestStampGenerator:
    def test_strictly_increasing(self) -> None:
        stamps = StampGenerator()
        values = [stamps.next() for _ in range(1000)]

        assert values == sorted(set(values))

    def test_increasing_with_frozen_clock(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test that stamps still advance when the clock does not."""
        monkeypatch.setattr("tagcache.core.tags.time.time_ns", lambda: 1_000)
        stamps = StampGenerator()

        assert [stamps.next() for _ in range(3)] == [1_000, 1_001, 1_002]


class TestTagStore:
    """Resolving and resetting tag stamps."""

    def test_resolve_nothing(self, cache: TaggedCache, backend: RecordingBackend) -> None:
        assert cache.tags.resolve([]) == {}
        assert cache.tags.resolve(None) == {}
        assert backend.calls == []

    def test_resolve_creates_missing_stamps(self, cache: TaggedCache, backend: RecordingBackend) -> None:
        """Test that unknown tags get a stamp written back in one batch."""
        stamps = cache.tags.resolve(["a", "b"])

        assert set(stamps) == {"a", "b"}
        assert backend.names() == ["get_multi", "set_multi"]
        assert load_stamp(backend.get(tag_key("test", "a"))) == stamps["a"]

    def test_resolve_is_stable(self, cache: TaggedCache, backend: RecordingBackend) -> None:
        first = cache.tags.resolve(["a"])
        backend.reset_calls()

        assert cache.tags.resolve(["a"]) == first
        assert backend.names() == ["get_multi"]

    def test_resolve_accepts_single_tag(self, cache: TaggedCache) -> None:
        assert list(cache.tags.resolve("a")) == ["a"]

    def test_duplicate_tags_collapse(self, cache: TaggedCache, backend: RecordingBackend) -> None:
        cache.tags.resolve(["a", "a", "b"])

        assert len(backend.calls[0][1]) == 2

    def test_reset_gives_newer_stamps(self, cache: TaggedCache, backend: RecordingBackend) -> None:
        before = cache.tags.resolve(["a", "b"])
        backend.reset_calls()

        after = cache.reset_tags(["a", "b"])

        assert after["a"] > before["a"]
        assert after["b"] > before["b"]
        assert backend.names() == ["set_multi"]
        assert cache.tags.resolve(["a", "b"]) == after

    def test_reset_nothing(self, cache: TaggedCache, backend: RecordingBackend) -> None:
        assert cache.reset_tags([]) == {}
        assert backend.calls == []

    def test_unreadable_stamp_is_replaced(self, cache: TaggedCache, backend: RecordingBackend) -> None:
        """Test that a corrupted stamp is treated as missing."""
        backend.set(tag_key("test", "a"), b"garbage")

        stamp = cache.tags.resolve(["a"])["a"]

        assert isinstance(stamp, int)
        assert load_stamp(backend.get(tag_key("test", "a"))) == stamp

    def test_tag_and_object_keys_do_not_collide(self, cache: TaggedCache) -> None:
        """Test that an object named like a tag leaves the tag stamp alone."""
        stamps = cache.reset_tags(["user-list"])
        cache.set_raw("user-list", "object value")

        assert cache.tags.resolve(["user-list"]) == stamps
        assert cache.get_raw("user-list") == "object value"
