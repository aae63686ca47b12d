"""
Tagcache — Test Doubles

Cached value type, recording backends and a monitor double shared by the
test suite.
"""

import time
from dataclasses import dataclass, field
from typing import Any

from tagcache.cache.backends.memory import MemoryCacheBackend


@dataclass
class User:
    """Cached value used across tests."""

    id: int
    name: str
    tags: list[str] = field(default_factory=lambda: ["user-list"])
    expires: int = 0

    def get_cache_key(self) -> str:
        return f"user@{self.id}"

    def get_cache_tags(self) -> list[str]:
        return self.tags

    def get_expires(self) -> int:
        return self.expires


class RecordingBackend(MemoryCacheBackend):
    """Memory backend that records every call made to it."""

    def __init__(self) -> None:
        super().__init__(max_size=1000)
        self.calls: list[tuple[str, Any]] = []

    def get(self, key: str) -> Any | None:
        self.calls.append(("get", key))
        return super().get(key)

    def get_multi(self, keys: list[str]) -> dict[str, Any]:
        self.calls.append(("get_multi", list(keys)))
        return super().get_multi(keys)

    def set(self, key: str, value: Any, ttl: int = 0) -> bool:
        self.calls.append(("set", key))
        return super().set(key, value, ttl)

    def set_multi(self, items: dict[str, Any], ttl: int = 0) -> bool:
        self.calls.append(("set_multi", list(items)))
        return super().set_multi(items, ttl)

    def delete(self, key: str) -> bool:
        self.calls.append(("delete", key))
        return super().delete(key)

    def flush(self) -> bool:
        self.calls.append(("flush", None))
        return super().flush()

    def names(self) -> list[str]:
        return [name for name, _ in self.calls]

    def reset_calls(self) -> None:
        self.calls.clear()


class SlowBackend(RecordingBackend):
    """Recording backend whose calls can be made to stall."""

    def __init__(self, delay: float = 0.0) -> None:
        super().__init__()
        self.delay = delay

    def get(self, key: str) -> Any | None:
        time.sleep(self.delay)
        return super().get(key)

    def set(self, key: str, value: Any, ttl: int = 0) -> bool:
        time.sleep(self.delay)
        return super().set(key, value, ttl)


class FakeTimer:
    def __init__(self, monitor: "FakeMonitor", tags: dict[str, str]):
        self.monitor = monitor
        self.tags = tags
        self.stopped = False

    def stop(self) -> float:
        self.stopped = True
        self.monitor.stopped.append(self.tags["operation"])
        return 0.0


class FakeMonitor:
    """Monitor double that remembers started and stopped timers."""

    def __init__(self) -> None:
        self.timers: list[FakeTimer] = []
        self.stopped: list[str] = []
        self.events: list[tuple[str, dict[str, Any]]] = []

    def create_timer(self, tags: dict[str, str]) -> FakeTimer:
        timer = FakeTimer(self, tags)
        self.timers.append(timer)
        return timer

    def event(self, name: str, payload: dict[str, Any]) -> None:
        self.events.append((name, payload))

    @property
    def operations(self) -> list[str]:
        return [timer.tags["operation"] for timer in self.timers]


