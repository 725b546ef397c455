"""Codecs: encode/decode for keys and values."""

from __future__ import annotations

import json
import pickle
from dataclasses import dataclass
from typing import Any, Callable

from .errors import EncodingError

PICKLE_PROTOCOL = 4


@dataclass(frozen=True)
class Codec:
    """A pair of encode/decode functions between objects and bytes.

    Failures of either function are re-raised as ``EncodingError``.
    Keys must encode deterministically: equal keys have to produce
    equal bytes, otherwise independent clients derive different
    values-set names for the same key.
    """

    encode: Callable[[Any], bytes]
    decode: Callable[[bytes], Any]

    def encode_key(self, key: Any) -> bytes:
        return self._encode(key, "key")

    def encode_value(self, value: Any) -> bytes:
        return self._encode(value, "value")

    def decode_key(self, raw: bytes) -> Any:
        return self._decode(raw, "key")

    def decode_value(self, raw: bytes) -> Any:
        return self._decode(raw, "value")

    def _encode(self, obj: Any, what: str) -> bytes:
        try:
            raw = self.encode(obj)
        except Exception as e:
            raise EncodingError(f"Cannot encode {what} {obj!r}: {e}") from e
        if not isinstance(raw, bytes):
            raise EncodingError(
                f"Encoder returned {type(raw).__name__} for {what}, expected bytes"
            )
        return raw

    def _decode(self, raw: bytes, what: str) -> Any:
        try:
            return self.decode(raw)
        except Exception as e:
            raise EncodingError(f"Cannot decode {what}: {e}") from e


def pickle_codec(protocol: int = PICKLE_PROTOCOL) -> Codec:
    """Pickle codec with a pinned protocol (the default)."""
    return Codec(
        encode=lambda v: pickle.dumps(v, protocol=protocol),
        decode=pickle.loads,
    )


def json_codec() -> Codec:
    """JSON codec with sorted keys, so equal dicts encode equally."""

    def encode(val: Any) -> bytes:
        return json.dumps(val, sort_keys=True, separators=(",", ":")).encode("utf-8")

    def decode(raw: bytes) -> Any:
        return json.loads(raw.decode("utf-8"))

    return Codec(encode=encode, decode=decode)


def string_codec(encoding: str = "utf-8") -> Codec:
    """Plain text codec. Only accepts ``str``."""

    def encode(val: str) -> bytes:
        if not isinstance(val, str):
            raise TypeError(f"Expected str, got {type(val).__name__}")
        return val.encode(encoding)

    return Codec(encode=encode, decode=lambda raw: raw.decode(encoding))


def bytes_codec() -> Codec:
    """Identity codec for callers that already hold bytes."""

    def encode(val: bytes) -> bytes:
        if not isinstance(val, bytes):
            raise TypeError(f"Expected bytes, got {type(val).__name__}")
        return val

    return Codec(encode=encode, decode=lambda raw: raw)
