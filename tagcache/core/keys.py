"""
Tagcache — Key Namespacing

Every logical key is mixed with the project prefix and hashed, so backend
keys have a fixed length and stores shared between projects do not clash.
Tag stamps live under an extra reserved segment and can never collide with
an object key, even when a tag and an object share a name.
"""

import hashlib

KEY_DELIMITER = "@"
TAG_NAMESPACE = "Tag"


def namespaced_key(prefix: str, key: str) -> str:
    """Hash ``prefix@key`` into the key sent to the backend."""
    return hashlib.md5(f"{prefix}{KEY_DELIMITER}{key}".encode("utf-8")).hexdigest()


def tag_storage_key(tag: str) -> str:
    """Logical key under which a tag's stamp is stored."""
    return f"{TAG_NAMESPACE}{KEY_DELIMITER}{tag}"


def tag_key(prefix: str, tag: str) -> str:
    """Backend key holding the stamp of ``tag``."""
    return namespaced_key(prefix, tag_storage_key(tag))
