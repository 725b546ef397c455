"""Key to values-set name resolution."""

import hashlib
from typing import Any

from .codec import Codec

HASH_HEX_CHARS = 32


def key_hash(key_state: bytes) -> str:
    """Deterministic 128-bit hex digest of an encoded key."""
    return hashlib.sha256(key_state).hexdigest()[:HASH_HEX_CHARS]


def values_name(name: str, hash_token: str) -> str:
    """Name of the values set for a key of multimap ``name``.

    The braces keep every derived name distinct from ``name`` itself;
    distinct hashes keep keys apart.
    """
    return "{%s}:%s" % (name, hash_token)


def resolve_hash(codec: Codec, key: Any) -> tuple[bytes, str]:
    """Encode ``key`` and hash it. Returns ``(key_state, hash_token)``."""
    key_state = codec.encode_key(key)
    return key_state, key_hash(key_state)
