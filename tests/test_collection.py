"""Tests for RemoteSet and the multimap's keyed view."""

import asyncio
import time
from datetime import timedelta

import pytest

from kvmultimap import (
    KeyedCollectionView,
    NoSuchKeyError,
    RemoteSet,
    SetMultimap,
    UnsupportedOperation,
    string_codec,
)
from kvmultimap.collection import LIFECYCLE_OPERATIONS
from kvmultimap.executor import CommandExecutor
from kvmultimap.kv.memory import Memory

LIFECYCLE_CALLS = [
    ("clear_expire", ()),
    ("expire", (60,)),
    ("expire_at", (4_000_000_000,)),
    ("remain_time_to_live", ()),
    ("rename", ("elsewhere",)),
    ("renamenx", ("elsewhere",)),
]


class SlowLoadMemory(Memory):
    """Memory whose reads stall, widening any read-modify-write window."""

    def load(self, name):
        value = super().load(name)
        time.sleep(0.001)
        return value


def make_set(name="s"):
    backend = Memory()
    return RemoteSet(CommandExecutor(backend), name, string_codec()), backend


def make_multimap():
    backend = Memory()
    return SetMultimap(CommandExecutor(backend), "mm", codec=string_codec()), backend


class TestRemoteSetMembers:
    def test_add_contains_read_all(self):
        s, _ = make_set()

        async def go():
            assert await s.add("a")
            assert not await s.add("a")
            assert await s.add_all(["b", "c"])
            assert not await s.add_all([])
            assert await s.contains("b")
            assert await s.size() == 3
            return await s.read_all()

        assert asyncio.run(go()) == {"a", "b", "c"}

    def test_iteration(self):
        s, _ = make_set()

        async def go():
            await s.add_all(["a", "b"])
            return {v async for v in s}

        assert asyncio.run(go()) == {"a", "b"}

    def test_concurrent_adds_are_not_lost(self):
        s = RemoteSet(CommandExecutor(SlowLoadMemory()), "s", string_codec())

        async def go():
            await asyncio.gather(*(s.add(f"v{i}") for i in range(50)))
            return await s.size()

        assert asyncio.run(go()) == 50

    def test_concurrent_removes_are_not_lost(self):
        backend = SlowLoadMemory()
        backend.sadd("s", *(f"v{i}".encode() for i in range(30)))
        s = RemoteSet(CommandExecutor(backend), "s", string_codec())

        async def go():
            await asyncio.gather(*(s.remove(f"v{i}") for i in range(30)))
            return await s.is_exists()

        assert asyncio.run(go()) is False

    def test_remove_and_delete(self):
        s, _ = make_set()

        async def go():
            await s.add_all(["a", "b"])
            assert await s.remove("a")
            assert not await s.remove("a")
            assert await s.is_exists()
            assert await s.delete()
            assert not await s.is_exists()

        asyncio.run(go())


class TestRemoteSetLifecycle:
    def test_expire_and_clear(self):
        s, backend = make_set()

        async def go():
            await s.add("a")
            assert await s.remain_time_to_live() == -1
            assert await s.expire(timedelta(seconds=100))
            assert await s.remain_time_to_live() > 0
            assert await s.clear_expire()
            assert await s.remain_time_to_live() == -1

        asyncio.run(go())
        assert backend.pttl("s") == -1

    def test_rename_rebinds(self):
        s, backend = make_set("old")

        async def go():
            await s.add("a")
            await s.rename("new")
            return await s.read_all()

        assert asyncio.run(go()) == {"a"}
        assert s.name == "new"
        assert backend.exists("old") == 0

    def test_renamenx_conflict(self):
        s, backend = make_set("a")
        backend.sadd("a", b"1")
        backend.sadd("b", b"2")
        assert asyncio.run(s.renamenx("b")) is False
        assert s.name == "a"

    def test_rename_missing_raises(self):
        s, _ = make_set()
        with pytest.raises(NoSuchKeyError):
            asyncio.run(s.rename("new"))

    def test_full_capabilities(self):
        s, _ = make_set()
        assert LIFECYCLE_OPERATIONS <= s.capabilities


class TestKeyedViewCapabilities:
    def test_declares_no_lifecycle(self):
        mm, _ = make_multimap()
        view = mm.get("u1")
        assert isinstance(view, KeyedCollectionView)
        assert not (view.capabilities & LIFECYCLE_OPERATIONS)

    @pytest.mark.parametrize("operation,args", LIFECYCLE_CALLS)
    def test_lifecycle_unsupported_without_store_change(self, operation, args):
        mm, backend = make_multimap()
        asyncio.run(mm.replace_values("u1", ["a"]))
        view = mm.get("u1")
        before = (dict(backend.memory), dict(backend._deadlines))

        result = asyncio.run(getattr(view, operation)(*args))

        assert isinstance(result, UnsupportedOperation)
        assert result.operation == operation
        assert not result
        assert (dict(backend.memory), dict(backend._deadlines)) == before
        assert view.name == mm.get("u1").name

    def test_unsupported_never_reaches_executor(self):
        mm, _ = make_multimap()
        view = mm.get("u1")

        async def boom(*args, **kwargs):
            raise AssertionError("store contacted")

        mm.executor.read = boom
        mm.executor.write = boom
        mm.executor.eval_write = boom
        for operation, args in LIFECYCLE_CALLS:
            assert isinstance(asyncio.run(getattr(view, operation)(*args)), UnsupportedOperation)


class TestKeyedViewOperations:
    def test_reads_pass_through(self):
        mm, _ = make_multimap()

        async def go():
            await mm.replace_values("u1", ["a", "b"])
            view = mm.get("u1")
            assert await view.contains("a")
            assert await view.size() == 2
            assert {v async for v in view} == {"a", "b"}
            return await view.read_all()

        assert asyncio.run(go()) == {"a", "b"}

    def test_delete_removes_hash_entry_too(self):
        mm, backend = make_multimap()

        async def go():
            await mm.replace_values("u1", ["a"])
            await mm.replace_values("u2", ["b"])
            assert await mm.get("u1").delete()
            assert not await mm.get("u1").delete()
            assert await mm.read_all_key_set() == {"u2"}

        asyncio.run(go())
        assert backend.hget("mm", b"u1") is None

    def test_delete_goes_through_fast_remove(self):
        mm, _ = make_multimap()
        removed_keys = []
        fast_remove = mm.fast_remove

        async def recording_fast_remove(*keys):
            removed_keys.extend(keys)
            return await fast_remove(*keys)

        mm.fast_remove = recording_fast_remove

        async def go():
            await mm.replace_values("u1", ["a"])
            return await mm.get("u1").delete()

        assert asyncio.run(go()) is True
        assert removed_keys == ["u1"]

    def test_writes_keep_hash_entry_in_step(self):
        mm, backend = make_multimap()
        view = mm.get("u1")

        async def go():
            assert await view.add("a")
            assert await view.add_all(["b"])
            assert await mm.contains_key("u1")
            assert await view.remove("a")
            assert await view.remove("b")
            assert not await mm.contains_key("u1")

        asyncio.run(go())
        assert backend.hlen("mm") == 0

    def test_view_carries_no_cached_members(self):
        mm, _ = make_multimap()
        view = mm.get("u1")

        async def go():
            assert await view.read_all() == set()
            await mm.replace_values("u1", ["x"])
            return await view.read_all()

        assert asyncio.run(go()) == {"x"}
