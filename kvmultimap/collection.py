"""Remote set collections and the multimap's per-key view."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Any, AsyncIterator, Iterable

from .codec import Codec
from .executor import CommandExecutor

if TYPE_CHECKING:
    from .multimap import SetMultimap

MEMBER_OPERATIONS = frozenset({
    "add",
    "add_all",
    "contains",
    "delete",
    "is_exists",
    "read_all",
    "remove",
    "size",
})

LIFECYCLE_OPERATIONS = frozenset({
    "clear_expire",
    "expire",
    "expire_at",
    "remain_time_to_live",
    "rename",
    "renamenx",
})


@dataclass(frozen=True)
class UnsupportedOperation:
    """Outcome of an operation the collection does not declare.

    Returned in place of a result, without contacting the store.
    Always falsy.
    """

    operation: str
    reason: str

    def __bool__(self) -> bool:
        return False


class RemoteSet:
    """A set of values stored remotely under ``name``.

    Every operation is a coroutine resolving after one round trip to
    the store. Operations missing from ``capabilities`` resolve to an
    ``UnsupportedOperation`` instead, with no round trip.

    Args:
        executor: Executor the commands go through.
        name: Name of the set in the store.
        codec: Value codec.
    """

    capabilities: frozenset[str] = MEMBER_OPERATIONS | LIFECYCLE_OPERATIONS
    unsupported_reason = "not supported by this collection"

    def __init__(self, executor: CommandExecutor, name: str, codec: Codec) -> None:
        self._executor = executor
        self._name = name
        self.codec = codec

    @property
    def name(self) -> str:
        return self._name

    def supports(self, operation: str) -> bool:
        return operation in self.capabilities

    def _unsupported(self, operation: str) -> UnsupportedOperation:
        return UnsupportedOperation(operation, self.unsupported_reason)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._name!r})"

    # -- Read operations --

    async def contains(self, value: Any) -> bool:
        encoded = self.codec.encode_value(value)
        return await self._executor.read(self._name, "sismember", self._name, encoded)

    async def read_all(self) -> set[Any]:
        members = await self._executor.read(self._name, "smembers", self._name)
        return {self.codec.decode_value(m) for m in members}

    async def size(self) -> int:
        return await self._executor.read(self._name, "scard", self._name)

    async def is_exists(self) -> bool:
        return await self._executor.read(self._name, "exists", self._name) > 0

    async def __aiter__(self) -> AsyncIterator[Any]:
        for value in await self.read_all():
            yield value

    # -- Write operations --

    async def add(self, value: Any) -> bool:
        encoded = self.codec.encode_value(value)
        return await self._executor.write(self._name, "sadd", self._name, encoded) > 0

    async def add_all(self, values: Iterable[Any]) -> bool:
        encoded = [self.codec.encode_value(v) for v in values]
        if not encoded:
            return False
        return await self._executor.write(self._name, "sadd", self._name, *encoded) > 0

    async def remove(self, value: Any) -> bool:
        encoded = self.codec.encode_value(value)
        return await self._executor.write(self._name, "srem", self._name, encoded) > 0

    async def delete(self) -> bool:
        return await self._executor.write(self._name, "delete", self._name) > 0

    # -- Lifecycle operations --

    async def clear_expire(self) -> bool | UnsupportedOperation:
        if not self.supports("clear_expire"):
            return self._unsupported("clear_expire")
        return await self._executor.write(self._name, "persist", self._name)

    async def expire(self, ttl: float | timedelta) -> bool | UnsupportedOperation:
        """Expire after ``ttl`` (seconds or a timedelta)."""
        if not self.supports("expire"):
            return self._unsupported("expire")
        if isinstance(ttl, timedelta):
            ttl = ttl.total_seconds()
        return await self._executor.write(self._name, "expire", self._name, ttl)

    async def expire_at(self, timestamp: float | datetime) -> bool | UnsupportedOperation:
        """Expire at a unix ``timestamp`` or an aware datetime."""
        if not self.supports("expire_at"):
            return self._unsupported("expire_at")
        if isinstance(timestamp, datetime):
            timestamp = timestamp.timestamp()
        return await self._executor.write(self._name, "expire_at", self._name, timestamp)

    async def remain_time_to_live(self) -> int | UnsupportedOperation:
        """Milliseconds left; -1 without expiry, -2 if the set is absent."""
        if not self.supports("remain_time_to_live"):
            return self._unsupported("remain_time_to_live")
        return await self._executor.read(self._name, "pttl", self._name)

    async def rename(self, new_name: str) -> None | UnsupportedOperation:
        if not self.supports("rename"):
            return self._unsupported("rename")
        await self._executor.write(self._name, "rename", self._name, new_name)
        self._name = new_name
        return None

    async def renamenx(self, new_name: str) -> bool | UnsupportedOperation:
        if not self.supports("renamenx"):
            return self._unsupported("renamenx")
        renamed = await self._executor.write(self._name, "renamenx", self._name, new_name)
        if renamed:
            self._name = new_name
        return renamed


class KeyedCollectionView(RemoteSet):
    """The values set of one multimap key, as returned by ``SetMultimap.get``.

    Bound to the derived name for its whole life and holds no cached
    members. Writes and ``delete`` go through the multimap so the
    multimap's hash entry for the key changes together with the set.
    Expiry and rename would only touch the set, so the view does not
    declare them.
    """

    capabilities = MEMBER_OPERATIONS
    unsupported_reason = "not supported for the values set of a multimap key"

    def __init__(
        self,
        multimap: SetMultimap,
        key: Any,
        name: str,
    ) -> None:
        super().__init__(multimap.executor, name, multimap.codec)
        self._multimap = multimap
        self.key = key

    async def add(self, value: Any) -> bool:
        return await self._multimap.put(self.key, value)

    async def add_all(self, values: Iterable[Any]) -> bool:
        return await self._multimap.put_all(self.key, values)

    async def remove(self, value: Any) -> bool:
        return await self._multimap.remove(self.key, value)

    async def delete(self) -> bool:
        """Remove the key's hash entry together with this set."""
        return await self._multimap.fast_remove(self.key) > 0
