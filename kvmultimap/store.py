"""Client and factory function."""

import logging
from typing import Literal

from .codec import Codec, pickle_codec
from .collection import RemoteSet
from .executor import CommandExecutor
from .kv.base import KVStore
from .multimap import SetMultimap

logger = logging.getLogger(__name__)


class Client:
    """Hands out collections that share one backend.

    Args:
        backend: The store all collections live in.
        codec: Default codec for collections created without one.
    """

    def __init__(self, backend: KVStore, codec: Codec | None = None) -> None:
        self.backend = backend
        self.executor = CommandExecutor(backend)
        self.codec = codec

    def get_set_multimap(self, name: str, codec: Codec | None = None) -> SetMultimap:
        return SetMultimap(self.executor, name, codec=codec or self.codec)

    def get_set(self, name: str, codec: Codec | None = None) -> RemoteSet:
        return RemoteSet(self.executor, name, codec or self.codec or pickle_codec())

    def close(self) -> None:
        self.backend.close()


def client(
    storage: Literal["memory", "disk"] = "memory",
    *,
    path: str | None = None,
    codec: Codec | None = None,
) -> Client:
    """Create a Client with sensible defaults.

    Args:
        storage: ``"memory"`` (default) or ``"disk"``.
        path: Required when ``storage="disk"``. Directory path for
            the disk backend.
        codec: Default codec (``pickle_codec()`` when omitted).

    Returns:
        A ``Client`` instance.
    """
    # Build backend
    if storage == "memory":
        from .kv.memory import Memory

        backend: KVStore = Memory()
    elif storage == "disk":
        if path is None:
            raise ValueError("path is required when storage='disk'")
        from .kv.disk import Disk

        backend = Disk(path)
    else:
        raise ValueError(f"Unknown storage: {storage!r}")

    logger.info("Opened %s backend%s", storage, f" at {path}" if path else "")
    return Client(backend, codec=codec)
