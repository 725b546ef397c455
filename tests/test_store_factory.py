"""Tests for the kvmultimap.client() factory function."""

import asyncio
import shutil
import tempfile

import pytest

from kvmultimap import Client, RemoteSet, SetMultimap, client, json_codec
from kvmultimap.kv.disk import Disk
from kvmultimap.kv.memory import Memory


class TestClientFactory:
    def test_default_is_memory(self):
        c = client()
        assert isinstance(c, Client)
        assert isinstance(c.backend, Memory)

    def test_invalid_storage(self):
        with pytest.raises(ValueError, match="Unknown storage"):
            client(storage="redis")  # type: ignore

    def test_disk_requires_path(self):
        with pytest.raises(ValueError, match="path is required"):
            client(storage="disk")

    def test_disk(self):
        tmpdir = tempfile.mkdtemp()
        try:
            c = client(storage="disk", path=tmpdir)
            assert isinstance(c.backend, Disk)
            c.close()
        finally:
            shutil.rmtree(tmpdir, ignore_errors=True)


class TestClientCollections:
    def test_get_set_multimap(self):
        mm = client().get_set_multimap("mm")
        assert isinstance(mm, SetMultimap)
        assert mm.name == "mm"

    def test_default_codec_applies(self):
        c = client(codec=json_codec())
        assert c.get_set_multimap("mm").codec is c.codec
        assert c.get_set("s").codec is c.codec

    def test_get_set(self):
        s = client().get_set("s")
        assert isinstance(s, RemoteSet)

    def test_shared_backend(self):
        c = client()
        mm = c.get_set_multimap("mm")

        async def go():
            await mm.replace_values("k", ["v"])
            return await c.get_set(mm.get("k").name).read_all()

        assert asyncio.run(go()) == {"v"}


class TestDiskRoundTrip:
    def test_scenario_on_disk(self):
        tmpdir = tempfile.mkdtemp()
        c = client(storage="disk", path=tmpdir)
        mm = c.get_set_multimap("mm")

        async def go():
            assert await mm.replace_values("u1", {"a", "b"}) == set()
            assert await mm.replace_values("u1", {"c"}) == {"a", "b"}
            assert await mm.remove_all("u1") == {"c"}
            assert await mm.get_all("u1") == set()

        try:
            asyncio.run(go())
        finally:
            c.close()
            shutil.rmtree(tmpdir, ignore_errors=True)
