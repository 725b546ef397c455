"""Disk-backed structured KV store using diskcache."""

import time
from contextlib import AbstractContextManager
from typing import Iterable, cast

from .base import KVStore, Structure

ONE_GB = 1024 * 1024 * 1024


def _remaining(deadline: float | None) -> float | None:
    if deadline is None:
        return None
    return max(deadline - time.time(), 0.0)


class Disk(KVStore):
    """KV store backed by diskcache (SQLite + mmap).

    Each name maps to one cache entry holding the pickled structure.
    Expiry uses diskcache's own expire times and ``transaction()``
    is ``Cache.transact()``, which rolls back when the block raises.
    """

    def __init__(self, directory: str, size_limit: int = ONE_GB) -> None:
        from diskcache import Cache as DiskCache

        self.store = DiskCache(directory, size_limit=size_limit)

    def load(self, name: str) -> Structure | None:
        return cast(Structure | None, self.store.get(name))

    def save(self, name: str, value: Structure) -> None:
        if not isinstance(value, (dict, set)):
            raise TypeError(f"Expected dict or set, got {type(value).__name__}")
        with self.store.transact():
            self.store.set(name, value, expire=_remaining(self.deadline(name)))

    def drop(self, name: str) -> bool:
        return bool(self.store.delete(name))

    def deadline(self, name: str) -> float | None:
        value, expire_time = self.store.get(name, expire_time=True)
        if value is None:
            return None
        return cast(float | None, expire_time)

    def set_deadline(self, name: str, deadline: float | None) -> bool:
        return bool(self.store.touch(name, expire=_remaining(deadline)))

    def names(self) -> Iterable[str]:
        for key in self.store.iterkeys():
            if key in self.store:
                yield str(key)

    def transaction(self) -> AbstractContextManager:
        return self.store.transact()

    def clear(self) -> None:
        self.store.clear()

    def close(self) -> None:
        self.store.close()
