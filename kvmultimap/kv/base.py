"""Abstract structured KV store interface."""

import time
from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from typing import Iterable

from ..errors import NoSuchKeyError, WrongTypeError

Structure = dict[bytes, bytes] | set[bytes]
"""A stored structure: a hash (field -> value) or a set of members."""


class KVStore(ABC):
    """Store of named hashes and sets holding bytes only.

    Subclasses provide the storage primitives. The Redis-style
    commands (``hget``, ``sadd``, ``expire``, ...) are built on them
    here. Empty structures are never stored: removing the last field
    or member removes the name. Writing to an existing name keeps its
    time-to-live; a freshly created name has none. Each mutating
    command runs inside ``transaction()``, so it is atomic on its own
    and joins an enclosing transaction when there is one.

    Serialization is handled at higher layers (see ``Codec``).
    """

    # -- Storage primitives --

    @abstractmethod
    def load(self, name: str) -> Structure | None:
        """Get the structure stored under name, or None if absent/expired."""

    @abstractmethod
    def save(self, name: str, value: Structure) -> None:
        """Store a structure, keeping the deadline of an existing name."""

    @abstractmethod
    def drop(self, name: str) -> bool:
        """Remove a name. Returns True if it existed."""

    @abstractmethod
    def deadline(self, name: str) -> float | None:
        """Absolute expiry timestamp for name, or None if it never expires."""

    @abstractmethod
    def set_deadline(self, name: str, deadline: float | None) -> bool:
        """Set or clear (None) the expiry of an existing name.

        Returns True if the name exists.
        """

    @abstractmethod
    def names(self) -> Iterable[str]:
        """Iterate over all live names."""

    @abstractmethod
    def transaction(self) -> AbstractContextManager:
        """Context in which a sequence of commands runs atomically.

        If the block raises, no change made inside it is kept.
        """

    @abstractmethod
    def clear(self) -> None:
        """Remove everything from the store."""

    def close(self) -> None:
        """Release backend resources."""

    # -- Hash commands --

    def _hash(self, name: str) -> dict[bytes, bytes]:
        value = self.load(name)
        if value is None:
            return {}
        if not isinstance(value, dict):
            raise WrongTypeError(name, "hash")
        return value

    def hget(self, name: str, field: bytes) -> bytes | None:
        return self._hash(name).get(field)

    def hexists(self, name: str, field: bytes) -> bool:
        return field in self._hash(name)

    def hkeys(self, name: str) -> list[bytes]:
        return list(self._hash(name))

    def hvals(self, name: str) -> list[bytes]:
        return list(self._hash(name).values())

    def hlen(self, name: str) -> int:
        return len(self._hash(name))

    def hgetall(self, name: str) -> dict[bytes, bytes]:
        return dict(self._hash(name))

    def hset(self, name: str, field: bytes, value: bytes) -> bool:
        """Set a hash field. Returns True if the field is new."""
        with self.transaction():
            current = dict(self._hash(name))
            created = field not in current
            current[field] = value
            self.save(name, current)
            return created

    def hdel(self, name: str, *fields: bytes) -> int:
        with self.transaction():
            current = dict(self._hash(name))
            removed = 0
            for field in fields:
                if current.pop(field, None) is not None:
                    removed += 1
            if removed:
                self._store(name, current)
            return removed

    # -- Set commands --

    def _set(self, name: str) -> set[bytes]:
        value = self.load(name)
        if value is None:
            return set()
        if not isinstance(value, set):
            raise WrongTypeError(name, "set")
        return value

    def smembers(self, name: str) -> set[bytes]:
        return set(self._set(name))

    def sismember(self, name: str, member: bytes) -> bool:
        return member in self._set(name)

    def scard(self, name: str) -> int:
        return len(self._set(name))

    def sadd(self, name: str, *members: bytes) -> int:
        """Add members. Returns how many were not already present."""
        with self.transaction():
            current = set(self._set(name))
            added = {m for m in members if m not in current}
            if added:
                self.save(name, current | added)
            return len(added)

    def srem(self, name: str, *members: bytes) -> int:
        with self.transaction():
            current = set(self._set(name))
            removed = current.intersection(members)
            if removed:
                self._store(name, current - removed)
            return len(removed)

    # -- Generic commands --

    def _store(self, name: str, value: Structure) -> None:
        if value:
            self.save(name, value)
        else:
            self.drop(name)

    def exists(self, *names: str) -> int:
        return sum(1 for name in names if self.load(name) is not None)

    def delete(self, *names: str) -> int:
        with self.transaction():
            return sum(1 for name in names if self.drop(name))

    def expire(self, name: str, seconds: float) -> bool:
        return self.set_deadline(name, time.time() + seconds)

    def expire_at(self, name: str, timestamp: float) -> bool:
        return self.set_deadline(name, timestamp)

    def persist(self, name: str) -> bool:
        """Clear the expiry. Returns True if one was set."""
        with self.transaction():
            if self.deadline(name) is None:
                return False
            return self.set_deadline(name, None)

    def pttl(self, name: str) -> int:
        """Remaining time to live in milliseconds.

        Returns -2 if the name does not exist and -1 if it has no expiry.
        """
        if self.load(name) is None:
            return -2
        deadline = self.deadline(name)
        if deadline is None:
            return -1
        return max(int((deadline - time.time()) * 1000), 0)

    def rename(self, name: str, new_name: str) -> None:
        """Move a structure (and its expiry), replacing ``new_name``."""
        with self.transaction():
            value = self.load(name)
            if value is None:
                raise NoSuchKeyError(name)
            if new_name == name:
                return
            deadline = self.deadline(name)
            self.drop(new_name)
            self.save(new_name, value)
            self.set_deadline(new_name, deadline)
            self.drop(name)

    def renamenx(self, name: str, new_name: str) -> bool:
        """Rename only if ``new_name`` does not exist."""
        with self.transaction():
            if self.load(name) is None:
                raise NoSuchKeyError(name)
            if self.load(new_name) is not None:
                return False
            self.rename(name, new_name)
            return True
