"""Tests for destination registries — in-memory and StoragePort-backed."""

import asyncio
import tempfile

import pytest

from memecast.adapters.storage.json_store import JsonStorage
from memecast.domain.errors import ConfigurationError
from memecast.domain.models import Destination
from memecast.domain.registry import InMemoryDestinationRegistry, StorageDestinationRegistry


@pytest.fixture
def tmp_dir():
    with tempfile.TemporaryDirectory() as d:
        yield d


@pytest.fixture(params=["memory", "json"])
def registry(request, tmp_dir):
    if request.param == "memory":
        return InMemoryDestinationRegistry()
    return StorageDestinationRegistry(JsonStorage(tmp_dir))


class TestRegistryContract:
    @pytest.mark.asyncio
    async def test_enroll_adds_channel(self, registry):
        assert await registry.enroll("G1", "C1") is True
        assert await registry.list_channels("G1") == {"C1"}

    @pytest.mark.asyncio
    async def test_enroll_twice_keeps_one_entry(self, registry):
        await registry.enroll("G1", "C1")
        assert await registry.enroll("G1", "C1") is False
        assert await registry.all_destinations() == [Destination("G1", "C1")]

    @pytest.mark.asyncio
    async def test_owners_are_independent(self, registry):
        await registry.enroll("G1", "C1")
        await registry.enroll("G2", "C1")
        assert await registry.list_channels("G1") == {"C1"}
        assert await registry.list_channels("G2") == {"C1"}
        assert len(await registry.all_destinations()) == 2

    @pytest.mark.asyncio
    async def test_unknown_owner_has_no_channels(self, registry):
        assert await registry.list_channels("nobody") == set()

    @pytest.mark.asyncio
    async def test_all_destinations_keeps_enrollment_order(self, registry):
        await registry.enroll("G1", "C2")
        await registry.enroll("G1", "C1")
        assert [d.channel_id for d in await registry.all_destinations()] == ["C2", "C1"]

    @pytest.mark.asyncio
    async def test_remove(self, registry):
        await registry.enroll("G1", "C1")
        assert await registry.remove("G1", "C1") is True
        assert await registry.remove("G1", "C1") is False
        assert await registry.all_destinations() == []

    @pytest.mark.asyncio
    async def test_missing_ids_rejected(self, registry):
        with pytest.raises(ConfigurationError):
            await registry.enroll("", "C1")
        with pytest.raises(ConfigurationError):
            await registry.enroll("G1", "")

    @pytest.mark.asyncio
    async def test_concurrent_enrolls_not_lost(self, registry):
        results = await asyncio.gather(*[registry.enroll("G1", f"C{i}") for i in range(10)])
        assert all(results)
        assert await registry.list_channels("G1") == {f"C{i}" for i in range(10)}

    @pytest.mark.asyncio
    async def test_concurrent_duplicate_enrolls(self, registry):
        results = await asyncio.gather(*[registry.enroll("G1", "C1") for _ in range(5)])
        assert results.count(True) == 1
        assert len(await registry.all_destinations()) == 1


class TestStorageRegistryPersistence:
    @pytest.mark.asyncio
    async def test_survives_reload(self, tmp_dir):
        await StorageDestinationRegistry(JsonStorage(tmp_dir)).enroll("G1", "C1")
        reloaded = StorageDestinationRegistry(JsonStorage(tmp_dir))
        assert await reloaded.list_channels("G1") == {"C1"}

    @pytest.mark.asyncio
    async def test_ignores_malformed_rows(self, tmp_dir):
        storage = JsonStorage(tmp_dir)
        storage.save("destinations", [{"owner_id": "G1"}, "junk", {"owner_id": "G1", "channel_id": "C1"}])
        registry = StorageDestinationRegistry(storage)
        assert await registry.all_destinations() == [Destination("G1", "C1")]
