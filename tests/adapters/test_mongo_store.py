"""Tests for the MongoDB workspace store and destination registry."""

from datetime import datetime, timezone
from unittest.mock import MagicMock, patch

import pytest
from pymongo.errors import PyMongoError

from memecast.adapters.storage.mongo_store import (
    MongoDestinationRegistry,
    MongoWorkspaceStore,
    connect_collection,
)
from memecast.domain.errors import ConfigurationError, ExternalCallFailure
from memecast.domain.models import Destination, WorkspaceRecord


def _update_result(matched=1, modified=1):
    result = MagicMock()
    result.matched_count = matched
    result.modified_count = modified
    return result


def _doc(team_id="T1", channels=("C1",), token="xoxb-1"):
    return {
        "teamId": team_id,
        "teamName": "Acme",
        "accessToken": token,
        "botUserId": "UBOT",
        "installedAt": datetime(2025, 1, 1, tzinfo=timezone.utc),
        "channels": list(channels),
    }


class TestConnect:
    def test_missing_uri(self):
        with pytest.raises(ConfigurationError):
            connect_collection("")

    def test_ping_failure_is_configuration_error(self):
        with patch("memecast.adapters.storage.mongo_store.MongoClient") as client_cls:
            client_cls.return_value.admin.command.side_effect = PyMongoError("no servers")
            with pytest.raises(ConfigurationError, match="no servers"):
                connect_collection("mongodb://localhost")

    def test_returns_workspace_collection(self):
        with patch("memecast.adapters.storage.mongo_store.MongoClient") as client_cls:
            client = client_cls.return_value
            connect_collection("mongodb://localhost", "magic_hour_bot")
        client.__getitem__.assert_called_with("magic_hour_bot")
        client.__getitem__.return_value.__getitem__.assert_called_with("workspace_tokens")


class TestMongoWorkspaceStore:
    @pytest.mark.asyncio
    async def test_upsert_keyed_by_team(self):
        collection = MagicMock()
        store = MongoWorkspaceStore(collection)
        await store.upsert(WorkspaceRecord(team_id="T1", team_name="Acme", access_token="xoxb-1"))

        query, update = collection.update_one.call_args.args
        assert query == {"teamId": "T1"}
        assert update["$set"]["accessToken"] == "xoxb-1"
        assert update["$set"]["installedAt"] is not None
        assert update["$setOnInsert"] == {"channels": []}
        assert collection.update_one.call_args.kwargs["upsert"] is True

    @pytest.mark.asyncio
    async def test_find(self):
        collection = MagicMock()
        collection.find_one.return_value = _doc()
        record = await MongoWorkspaceStore(collection).find("T1")
        assert record.team_name == "Acme"
        assert record.channels == ["C1"]

    @pytest.mark.asyncio
    async def test_find_missing(self):
        collection = MagicMock()
        collection.find_one.return_value = None
        assert await MongoWorkspaceStore(collection).find("T9") is None

    @pytest.mark.asyncio
    async def test_list_and_count(self):
        collection = MagicMock()
        collection.find.return_value = [_doc("T1"), _doc("T2")]
        collection.count_documents.return_value = 2
        store = MongoWorkspaceStore(collection)
        assert [r.team_id for r in await store.list_all()] == ["T1", "T2"]
        assert await store.count() == 2

    @pytest.mark.asyncio
    async def test_driver_error_wrapped(self):
        collection = MagicMock()
        collection.find_one.side_effect = PyMongoError("timeout")
        with pytest.raises(ExternalCallFailure, match="timeout"):
            await MongoWorkspaceStore(collection).find("T1")


class TestMongoDestinationRegistry:
    @pytest.mark.asyncio
    async def test_enroll_uses_add_to_set(self):
        collection = MagicMock()
        collection.update_one.return_value = _update_result(modified=1)
        assert await MongoDestinationRegistry(collection).enroll("T1", "C1") is True
        collection.update_one.assert_called_once_with({"teamId": "T1"}, {"$addToSet": {"channels": "C1"}})

    @pytest.mark.asyncio
    async def test_enroll_existing_is_noop(self):
        collection = MagicMock()
        collection.update_one.return_value = _update_result(modified=0)
        assert await MongoDestinationRegistry(collection).enroll("T1", "C1") is False

    @pytest.mark.asyncio
    async def test_enroll_unknown_workspace(self):
        collection = MagicMock()
        collection.update_one.return_value = _update_result(matched=0, modified=0)
        with pytest.raises(ConfigurationError, match="not installed"):
            await MongoDestinationRegistry(collection).enroll("T9", "C1")

    @pytest.mark.asyncio
    async def test_enroll_requires_ids(self):
        with pytest.raises(ConfigurationError):
            await MongoDestinationRegistry(MagicMock()).enroll("T1", "")

    @pytest.mark.asyncio
    async def test_remove(self):
        collection = MagicMock()
        collection.update_one.return_value = _update_result(modified=1)
        assert await MongoDestinationRegistry(collection).remove("T1", "C1") is True
        collection.update_one.assert_called_once_with({"teamId": "T1"}, {"$pull": {"channels": "C1"}})

    @pytest.mark.asyncio
    async def test_list_channels(self):
        collection = MagicMock()
        collection.find_one.return_value = {"channels": ["C1", "C2"]}
        assert await MongoDestinationRegistry(collection).list_channels("T1") == {"C1", "C2"}

    @pytest.mark.asyncio
    async def test_all_destinations_carry_workspace_token(self):
        collection = MagicMock()
        collection.find.return_value = [_doc("T1", ["C1", "C2"], "xoxb-1"), _doc("T2", [], "xoxb-2")]
        destinations = await MongoDestinationRegistry(collection).all_destinations()
        assert destinations == [
            Destination("T1", "C1", access_token="xoxb-1"),
            Destination("T1", "C2", access_token="xoxb-1"),
        ]
