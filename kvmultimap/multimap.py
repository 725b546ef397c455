"""SetMultimap: a remote mapping from keys to sets of values."""

from __future__ import annotations

from typing import Any, Iterable

from .codec import Codec, pickle_codec
from .collection import KeyedCollectionView
from .executor import CommandExecutor
from .naming import resolve_hash, values_name
from .scripts import (
    CONTAINS_KEY,
    CONTAINS_VALUE,
    DELETE,
    ENTRIES,
    FAST_REMOVE,
    PUT,
    REMOVE_ALL,
    REMOVE_ENTRY,
    REPLACE_VALUES,
    SIZE,
)


class SetMultimap:
    """A multimap whose state lives entirely in a KV store.

    Layout: a hash ``name`` maps each encoded key to a hash token,
    and the key's values live in the set ``values_name(name, token)``.
    The token is a pure function of the encoded key, so the set name
    is derived locally without a round trip. Mutations that touch both
    the hash and a set run as one script.

    Args:
        executor: Executor the commands go through.
        name: Name of the multimap's hash in the store.
        codec: Value codec (default pickle).
        key_codec: Key codec (defaults to ``codec``). Must be deterministic.
    """

    def __init__(
        self,
        executor: CommandExecutor,
        name: str,
        codec: Codec | None = None,
        key_codec: Codec | None = None,
    ) -> None:
        self.executor = executor
        self.name = name
        self.codec = codec if codec is not None else pickle_codec()
        self.key_codec = key_codec if key_codec is not None else self.codec

    def __repr__(self) -> str:
        return f"SetMultimap({self.name!r})"

    def _resolve(self, key: Any) -> tuple[bytes, str, str]:
        key_state, token = resolve_hash(self.key_codec, key)
        return key_state, token, values_name(self.name, token)

    def _decode_values(self, members: Iterable[bytes]) -> set[Any]:
        return {self.codec.decode_value(m) for m in members}

    # -- Per-key operations --

    def get(self, key: Any) -> KeyedCollectionView:
        """View of the values set for ``key``. Does not touch the store."""
        _, _, set_name = self._resolve(key)
        return KeyedCollectionView(self, key, set_name)

    async def get_all(self, key: Any) -> set[Any]:
        """All values for ``key``; empty if it has none."""
        _, _, set_name = self._resolve(key)
        members = await self.executor.read(self.name, "smembers", set_name)
        return self._decode_values(members)

    async def remove_all(self, key: Any) -> set[Any]:
        """Atomically remove ``key`` and return the values it had."""
        key_state, _, set_name = self._resolve(key)
        members = await self.executor.eval_write(
            self.name, REMOVE_ALL, [self.name, set_name], [key_state]
        )
        return self._decode_values(members)

    async def replace_values(self, key: Any, values: Iterable[Any]) -> set[Any]:
        """Atomically replace the values of ``key``; returns the previous ones.

        With no new values the set is left absent. Every value is
        encoded before anything is sent to the store.
        """
        key_state, token, set_name = self._resolve(key)
        args = [key_state, token.encode("ascii")]
        args.extend(self.codec.encode_value(v) for v in values)
        members = await self.executor.eval_write(
            self.name, REPLACE_VALUES, [self.name, set_name], args
        )
        return self._decode_values(members)

    async def put(self, key: Any, value: Any) -> bool:
        """Add ``value`` under ``key``. Returns True if it was new."""
        return await self.put_all(key, [value])

    async def put_all(self, key: Any, values: Iterable[Any]) -> bool:
        """Add several values under ``key``. Returns True if any was new."""
        key_state, token, set_name = self._resolve(key)
        encoded = [self.codec.encode_value(v) for v in values]
        if not encoded:
            return False
        return await self.executor.eval_write(
            self.name, PUT, [self.name, set_name], [key_state, token.encode("ascii"), *encoded]
        )

    async def remove(self, key: Any, value: Any) -> bool:
        """Remove one value; the key goes away with its last value."""
        key_state, _, set_name = self._resolve(key)
        encoded = self.codec.encode_value(value)
        return await self.executor.eval_write(
            self.name, REMOVE_ENTRY, [self.name, set_name], [key_state, encoded]
        )

    async def contains_key(self, key: Any) -> bool:
        key_state, _, _ = self._resolve(key)
        return await self.executor.eval_read(self.name, CONTAINS_KEY, [self.name], [key_state])

    async def contains_entry(self, key: Any, value: Any) -> bool:
        _, _, set_name = self._resolve(key)
        encoded = self.codec.encode_value(value)
        return await self.executor.read(self.name, "sismember", set_name, encoded)

    async def fast_remove(self, *keys: Any) -> int:
        """Remove several keys at once. Returns how many had values."""
        if not keys:
            return 0
        key_states: list[bytes] = []
        set_names: list[str] = []
        for key in keys:
            key_state, _, set_name = self._resolve(key)
            key_states.append(key_state)
            set_names.append(set_name)
        return await self.executor.eval_write(
            self.name, FAST_REMOVE, [self.name, *set_names], key_states
        )

    # -- Whole-multimap operations --

    async def contains_value(self, value: Any) -> bool:
        encoded = self.codec.encode_value(value)
        return await self.executor.eval_read(self.name, CONTAINS_VALUE, [self.name], [encoded])

    async def size(self) -> int:
        """Total number of values across all keys."""
        return await self.executor.eval_read(self.name, SIZE, [self.name])

    async def key_size(self) -> int:
        """Number of keys."""
        return await self.executor.read(self.name, "hlen", self.name)

    async def read_all_key_set(self) -> set[Any]:
        fields = await self.executor.read(self.name, "hkeys", self.name)
        return {self.key_codec.decode_key(f) for f in fields}

    async def entries(self) -> list[tuple[Any, Any]]:
        pairs = await self.executor.eval_read(self.name, ENTRIES, [self.name])
        return [
            (self.key_codec.decode_key(k), self.codec.decode_value(v)) for k, v in pairs
        ]

    async def delete(self) -> bool:
        """Delete the multimap and all of its values sets."""
        return await self.executor.eval_write(self.name, DELETE, [self.name])
