"""Command executor: asyncio round trips to a KV store."""

import asyncio
import logging
from typing import Any, Sequence

from .kv.base import KVStore
from .scripts import Script

logger = logging.getLogger(__name__)

READ_COMMANDS = frozenset({
    "exists",
    "hexists",
    "hget",
    "hgetall",
    "hkeys",
    "hlen",
    "hvals",
    "pttl",
    "scard",
    "sismember",
    "smembers",
})

WRITE_COMMANDS = frozenset({
    "delete",
    "expire",
    "expire_at",
    "hdel",
    "hset",
    "persist",
    "rename",
    "renamenx",
    "sadd",
    "srem",
})


class CommandExecutor:
    """Runs commands and scripts against a backend without blocking.

    Every call is one round trip, executed in a worker thread via
    ``asyncio.to_thread`` and awaited by the caller. Scripts run
    inside ``backend.transaction()``. Backend errors propagate to the
    awaiting caller unchanged; nothing is retried.

    Args:
        backend: The store commands are sent to.
    """

    def __init__(self, backend: KVStore) -> None:
        self.backend = backend

    async def read(self, name: str, command: str, *args: Any) -> Any:
        """Run a side-effect-free command on behalf of ``name``."""
        if command not in READ_COMMANDS:
            raise ValueError(f"Not a read command: {command!r}")
        return await self._call(name, command, args)

    async def write(self, name: str, command: str, *args: Any) -> Any:
        """Run a mutating command on behalf of ``name``."""
        if command not in WRITE_COMMANDS:
            raise ValueError(f"Not a write command: {command!r}")
        return await self._call(name, command, args)

    async def eval_read(
        self, name: str, script: Script, keys: Sequence[str], args: Sequence[bytes] = ()
    ) -> Any:
        if not script.readonly:
            raise ValueError(f"Script {script.ident} writes; use eval_write")
        return await self._eval(name, script, keys, args)

    async def eval_write(
        self, name: str, script: Script, keys: Sequence[str], args: Sequence[bytes] = ()
    ) -> Any:
        return await self._eval(name, script, keys, args)

    async def _call(self, name: str, command: str, args: tuple) -> Any:
        logger.debug("%s: %s %d arg(s)", name, command, len(args))
        return await asyncio.to_thread(getattr(self.backend, command), *args)

    async def _eval(
        self, name: str, script: Script, keys: Sequence[str], args: Sequence[bytes]
    ) -> Any:
        logger.debug("%s: eval %s keys=%s", name, script.ident, list(keys))
        return await asyncio.to_thread(self._run_script, script, list(keys), list(args))

    def _run_script(self, script: Script, keys: list[str], args: list[bytes]) -> Any:
        with self.backend.transaction():
            return script(self.backend, keys, args)
