"""Server-side scripts for multimap mutations.

A script is a named, versioned function run by the executor inside a
single store transaction, so every command it issues lands together
or not at all. ``keys`` are structure names; ``args`` are encoded
keys, hash tokens and values. By convention ``keys[0]`` is the
multimap's own hash (encoded key -> hash token) and ``keys[1:]`` are
values sets.
"""

from dataclasses import dataclass
from typing import Any, Callable, Sequence

from .kv.base import KVStore
from .naming import values_name

ScriptBody = Callable[[KVStore, Sequence[str], Sequence[bytes]], Any]


@dataclass(frozen=True)
class Script:
    """A fixed unit of work run atomically against a store."""

    name: str
    version: int
    body: ScriptBody
    readonly: bool = False

    @property
    def ident(self) -> str:
        return f"{self.name}@v{self.version}"

    def __call__(self, store: KVStore, keys: Sequence[str], args: Sequence[bytes]) -> Any:
        return self.body(store, keys, args)


def script(name: str, version: int = 1, *, readonly: bool = False) -> Callable[[ScriptBody], Script]:
    def wrap(body: ScriptBody) -> Script:
        return Script(name=name, version=version, body=body, readonly=readonly)

    return wrap


def _sets_of(store: KVStore, name: str) -> list[str]:
    return [values_name(name, token.decode("ascii")) for token in store.hvals(name)]


@script("remove_all")
def REMOVE_ALL(store: KVStore, keys: Sequence[str], args: Sequence[bytes]) -> set[bytes]:
    """keys: [hash, values set]; args: [key_state]. Returns prior members."""
    store.hdel(keys[0], args[0])
    members = store.smembers(keys[1])
    store.delete(keys[1])
    return members


@script("replace_values")
def REPLACE_VALUES(store: KVStore, keys: Sequence[str], args: Sequence[bytes]) -> set[bytes]:
    """keys: [hash, values set]; args: [key_state, hash token, *values]."""
    store.hset(keys[0], args[0], args[1])
    members = store.smembers(keys[1])
    store.delete(keys[1])
    if len(args) > 2:
        store.sadd(keys[1], *args[2:])
    return members


@script("put")
def PUT(store: KVStore, keys: Sequence[str], args: Sequence[bytes]) -> bool:
    """keys: [hash, values set]; args: [key_state, hash token, *values].

    Returns True if at least one value was new.
    """
    store.hset(keys[0], args[0], args[1])
    return store.sadd(keys[1], *args[2:]) > 0


@script("remove_entry")
def REMOVE_ENTRY(store: KVStore, keys: Sequence[str], args: Sequence[bytes]) -> bool:
    """keys: [hash, values set]; args: [key_state, value]."""
    removed = store.srem(keys[1], args[1])
    if removed and store.scard(keys[1]) == 0:
        store.hdel(keys[0], args[0])
    return removed > 0


@script("fast_remove")
def FAST_REMOVE(store: KVStore, keys: Sequence[str], args: Sequence[bytes]) -> int:
    """keys: [hash, *values sets]; args: [*key_states], pairwise with sets.

    Returns how many keys had a hash entry or a values set. A set
    without a hash entry is still deleted.
    """
    removed = 0
    for key_state, set_name in zip(args, keys[1:]):
        had_entry = store.hdel(keys[0], key_state) > 0
        had_set = store.delete(set_name) > 0
        if had_entry or had_set:
            removed += 1
    return removed


@script("delete")
def DELETE(store: KVStore, keys: Sequence[str], args: Sequence[bytes]) -> bool:
    """keys: [hash]. Deletes the hash and every values set it names."""
    return store.delete(keys[0], *_sets_of(store, keys[0])) > 0


@script("contains_key", readonly=True)
def CONTAINS_KEY(store: KVStore, keys: Sequence[str], args: Sequence[bytes]) -> bool:
    """keys: [hash]; args: [key_state]."""
    token = store.hget(keys[0], args[0])
    if token is None:
        return False
    return store.scard(values_name(keys[0], token.decode("ascii"))) > 0


@script("contains_value", readonly=True)
def CONTAINS_VALUE(store: KVStore, keys: Sequence[str], args: Sequence[bytes]) -> bool:
    """keys: [hash]; args: [value]."""
    return any(store.sismember(name, args[0]) for name in _sets_of(store, keys[0]))


@script("size", readonly=True)
def SIZE(store: KVStore, keys: Sequence[str], args: Sequence[bytes]) -> int:
    """keys: [hash]. Total number of values across all keys."""
    return sum(store.scard(name) for name in _sets_of(store, keys[0]))


@script("entries", readonly=True)
def ENTRIES(store: KVStore, keys: Sequence[str], args: Sequence[bytes]) -> list[tuple[bytes, bytes]]:
    """keys: [hash]. Every (key_state, value) pair."""
    result: list[tuple[bytes, bytes]] = []
    for key_state, token in store.hgetall(keys[0]).items():
        for member in store.smembers(values_name(keys[0], token.decode("ascii"))):
            result.append((key_state, member))
    return result
