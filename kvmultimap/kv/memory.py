"""In-memory structured KV store."""

import threading
import time
from contextlib import contextmanager
from typing import Iterable, Iterator

from .base import KVStore, Structure


class Memory(KVStore):
    """A memory-backed KV store.

    All operations are protected by a single reentrant lock, so a
    ``transaction()`` block is atomic with respect to every other
    caller. Changes made inside a transaction are journaled and
    rolled back if the block raises.
    """

    def __init__(self) -> None:
        self.memory: dict[str, Structure] = {}
        self._deadlines: dict[str, float] = {}
        self._journal: dict[str, tuple[Structure | None, float | None]] | None = None
        self._lock = threading.RLock()

    def _purge(self, name: str) -> None:
        deadline = self._deadlines.get(name)
        if deadline is not None and deadline <= time.time():
            self.memory.pop(name, None)
            self._deadlines.pop(name, None)

    def _record(self, name: str) -> None:
        if self._journal is not None and name not in self._journal:
            self._journal[name] = (self.memory.get(name), self._deadlines.get(name))

    def load(self, name: str) -> Structure | None:
        with self._lock:
            self._purge(name)
            return self.memory.get(name)

    def save(self, name: str, value: Structure) -> None:
        if not isinstance(value, (dict, set)):
            raise TypeError(f"Expected dict or set, got {type(value).__name__}")
        with self._lock:
            self._purge(name)
            self._record(name)
            self.memory[name] = value

    def drop(self, name: str) -> bool:
        with self._lock:
            self._purge(name)
            if name not in self.memory:
                return False
            self._record(name)
            del self.memory[name]
            self._deadlines.pop(name, None)
            return True

    def deadline(self, name: str) -> float | None:
        with self._lock:
            self._purge(name)
            return self._deadlines.get(name)

    def set_deadline(self, name: str, deadline: float | None) -> bool:
        with self._lock:
            self._purge(name)
            if name not in self.memory:
                return False
            self._record(name)
            if deadline is None:
                self._deadlines.pop(name, None)
            else:
                self._deadlines[name] = deadline
            return True

    def names(self) -> Iterable[str]:
        with self._lock:
            for name in list(self.memory):
                self._purge(name)
            return list(self.memory)

    @contextmanager
    def transaction(self) -> Iterator[None]:
        with self._lock:
            if self._journal is not None:
                # Nested: the outermost block owns the journal.
                yield
                return
            self._journal = {}
            try:
                yield
            except BaseException:
                for name, (value, deadline) in self._journal.items():
                    if value is None:
                        self.memory.pop(name, None)
                    else:
                        self.memory[name] = value
                    if deadline is None:
                        self._deadlines.pop(name, None)
                    else:
                        self._deadlines[name] = deadline
                raise
            finally:
                self._journal = None

    def clear(self) -> None:
        with self._lock:
            self.memory.clear()
            self._deadlines.clear()
