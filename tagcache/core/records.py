"""
Tagcache — Stored Records

Layout of what the tagged cache writes to a backend:

    entry = pickle({"value": pickle(obj), "tags": {tag: stamp}, "expires": ttl})
    stamp = pickle(int)

Anything read back that does not match this layout is treated as a miss.
"""

from __future__ import annotations

import logging
import pickle
from dataclasses import dataclass, field
from typing import Any

from ..errors import SerializationError

logger = logging.getLogger(__name__)

KEY_VALUE = "value"
KEY_TAGS = "tags"
KEY_EXPIRES = "expires"


@dataclass
class Entry:
    """A cached value plus the tag versions it was written against."""

    value: bytes
    tags: dict[str, int] = field(default_factory=dict)
    expires: int = 0

    def is_valid(self, current_tags: dict[str, int]) -> bool:
        """
        An entry is valid when its tag snapshot still matches, or when it has
        its own expiry and is left to the backend to expire.
        """
        return self.tags == current_tags or bool(self.expires)

    def to_dict(self) -> dict[str, Any]:
        return {KEY_VALUE: self.value, KEY_TAGS: dict(self.tags), KEY_EXPIRES: self.expires}


def dump_payload(obj: Any) -> bytes:
    """Serialize a cached object."""
    try:
        return pickle.dumps(obj, protocol=pickle.HIGHEST_PROTOCOL)
    except (pickle.PicklingError, TypeError, AttributeError) as e:
        raise SerializationError(f"Cannot serialize value: {e}", value_type=type(obj).__name__) from e


def load_payload(data: bytes) -> Any:
    return pickle.loads(data)


def encode_entry(entry: Entry) -> bytes:
    return pickle.dumps(entry.to_dict(), protocol=pickle.HIGHEST_PROTOCOL)


def decode_entry(raw: Any) -> Entry | None:
    """Rebuild an Entry from backend data, or None if the data is not one."""
    if not isinstance(raw, (bytes, bytearray)):
        return None

    try:
        data = pickle.loads(raw)
    except Exception as e:
        logger.debug(f"Discarding undecodable cache record: {e}", extra={"error": str(e)})
        return None

    if not isinstance(data, dict) or not {KEY_VALUE, KEY_TAGS, KEY_EXPIRES} <= data.keys():
        logger.debug("Discarding cache record with unexpected shape", extra={"record_type": type(data).__name__})
        return None

    tags = data[KEY_TAGS] or {}
    if not isinstance(tags, dict) or not isinstance(data[KEY_VALUE], (bytes, bytearray)):
        return None

    try:
        expires = int(data[KEY_EXPIRES] or 0)
    except (TypeError, ValueError):
        return None

    return Entry(value=bytes(data[KEY_VALUE]), tags=dict(tags), expires=expires)


def dump_stamp(stamp: int) -> bytes:
    return pickle.dumps(stamp, protocol=pickle.HIGHEST_PROTOCOL)


def load_stamp(raw: Any) -> int | None:
    """Decode a stored tag stamp; None when absent or unreadable."""
    if not isinstance(raw, (bytes, bytearray)):
        return None

    try:
        stamp = pickle.loads(raw)
    except Exception:
        return None

    if isinstance(stamp, bool) or not isinstance(stamp, int):
        return None
    return stamp
