"""MongoDB adapters — durable workspace installs and channel enrollment.

Documents in the workspace collection look like:

    {teamId, teamName, accessToken, botUserId, installedAt, channels: [...]}

pymongo is blocking, so every call runs in a worker thread.
"""

import asyncio
import sys
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Set

from pymongo import MongoClient
from pymongo.collection import Collection
from pymongo.errors import PyMongoError

from memecast.domain.errors import ConfigurationError, ExternalCallFailure
from memecast.domain.models import Destination, WorkspaceRecord

WORKSPACE_COLLECTION = "workspace_tokens"


def _log(msg: str):
    print(msg, file=sys.stderr)


def connect_collection(mongo_uri: str, db_name: str = "magic_hour_bot") -> Collection:
    """Connect, verify with a ping and return the workspace collection."""
    if not mongo_uri:
        raise ConfigurationError("MONGO_URI is not set")
    _log("[mongo] connecting...")
    client = MongoClient(mongo_uri, serverSelectionTimeoutMS=5000)
    try:
        client.admin.command("ping")
    except PyMongoError as e:
        raise ConfigurationError(f"MongoDB connection failed: {e}") from e
    _log("[mongo] connected")
    return client[db_name][WORKSPACE_COLLECTION]


def _to_record(doc: Dict[str, Any]) -> WorkspaceRecord:
    return WorkspaceRecord(
        team_id=str(doc.get("teamId", "")),
        team_name=str(doc.get("teamName", "")),
        access_token=str(doc.get("accessToken", "")),
        bot_user_id=str(doc.get("botUserId", "")),
        installed_at=doc.get("installedAt"),
        channels=[str(c) for c in doc.get("channels", [])],
    )


class MongoWorkspaceStore:
    """WorkspaceStorePort over a pymongo collection."""

    def __init__(self, collection: Collection):
        self._collection = collection

    async def _call(self, operation: str, fn, *args, **kwargs):
        try:
            return await asyncio.to_thread(fn, *args, **kwargs)
        except PyMongoError as e:
            raise ExternalCallFailure(f"mongo {operation}", str(e)) from e

    async def upsert(self, record: WorkspaceRecord) -> None:
        installed_at = record.installed_at or datetime.now(timezone.utc)
        await self._call(
            "upsert",
            self._collection.update_one,
            {"teamId": record.team_id},
            {
                "$set": {
                    "teamId": record.team_id,
                    "teamName": record.team_name,
                    "accessToken": record.access_token,
                    "botUserId": record.bot_user_id,
                    "installedAt": installed_at,
                },
                # Reinstalling keeps enrolled channels
                "$setOnInsert": {"channels": list(record.channels)},
            },
            upsert=True,
        )
        _log(f"[mongo] workspace saved: {record.team_name} ({record.team_id})")

    async def find(self, team_id: str) -> Optional[WorkspaceRecord]:
        doc = await self._call("find", self._collection.find_one, {"teamId": team_id})
        if not doc:
            _log(f"[mongo] no workspace for teamId={team_id}")
            return None
        return _to_record(doc)

    async def list_all(self) -> List[WorkspaceRecord]:
        docs = await self._call("list", lambda: list(self._collection.find({})))
        return [_to_record(d) for d in docs]

    async def count(self) -> int:
        return await self._call("count", self._collection.count_documents, {})


class MongoDestinationRegistry:
    """DestinationRegistryPort storing channels on the workspace document.

    $addToSet makes enrollment an atomic append-if-absent, so concurrent
    enroll commands for one workspace never lose an update.
    """

    def __init__(self, collection: Collection):
        self._collection = collection

    async def _call(self, operation: str, fn, *args, **kwargs):
        try:
            return await asyncio.to_thread(fn, *args, **kwargs)
        except PyMongoError as e:
            raise ExternalCallFailure(f"mongo {operation}", str(e)) from e

    async def enroll(self, owner_id: str, channel_id: str) -> bool:
        if not owner_id or not channel_id:
            raise ConfigurationError(
                f"enrollment needs both owner and channel ids (owner={owner_id!r}, channel={channel_id!r})"
            )
        result = await self._call(
            "enroll",
            self._collection.update_one,
            {"teamId": owner_id},
            {"$addToSet": {"channels": channel_id}},
        )
        if result.matched_count == 0:
            raise ConfigurationError(f"workspace {owner_id} is not installed")
        return result.modified_count > 0

    async def remove(self, owner_id: str, channel_id: str) -> bool:
        result = await self._call(
            "remove",
            self._collection.update_one,
            {"teamId": owner_id},
            {"$pull": {"channels": channel_id}},
        )
        return result.modified_count > 0

    async def list_channels(self, owner_id: str) -> Set[str]:
        doc = await self._call("find", self._collection.find_one, {"teamId": owner_id}, {"channels": 1})
        if not doc:
            return set()
        return {str(c) for c in doc.get("channels", [])}

    async def all_destinations(self) -> List[Destination]:
        docs = await self._call("list", lambda: list(self._collection.find({})))
        destinations = []
        for doc in docs:
            record = _to_record(doc)
            for channel_id in record.channels:
                destinations.append(Destination(
                    owner_id=record.team_id,
                    channel_id=channel_id,
                    access_token=record.access_token or None,
                ))
        return destinations
