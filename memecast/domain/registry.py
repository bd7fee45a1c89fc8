"""Destination registry — which channels receive auto-posted memes.

Enrollment is idempotent: re-enrolling a channel is a no-op that returns False.
Writes are serialized with an asyncio.Lock so two racing enroll commands
cannot lose each other's update.
"""

import asyncio
import sys
from typing import Dict, List, Set

from memecast.domain.errors import ConfigurationError
from memecast.domain.models import Destination
from memecast.ports.outbound import StoragePort


def _log(msg: str):
    print(msg, file=sys.stderr)


def _require_ids(owner_id: str, channel_id: str):
    if not owner_id or not channel_id:
        raise ConfigurationError(
            f"enrollment needs both owner and channel ids (owner={owner_id!r}, channel={channel_id!r})"
        )


class InMemoryDestinationRegistry:
    """Process-lifetime registry: owner id → ordered channel ids."""

    def __init__(self):
        self._channels: Dict[str, List[str]] = {}
        self._lock = asyncio.Lock()

    async def enroll(self, owner_id: str, channel_id: str) -> bool:
        _require_ids(owner_id, channel_id)
        async with self._lock:
            channels = self._channels.setdefault(owner_id, [])
            if channel_id in channels:
                return False
            channels.append(channel_id)
            return True

    async def remove(self, owner_id: str, channel_id: str) -> bool:
        async with self._lock:
            channels = self._channels.get(owner_id, [])
            if channel_id not in channels:
                return False
            channels.remove(channel_id)
            if not channels:
                del self._channels[owner_id]
            return True

    async def list_channels(self, owner_id: str) -> Set[str]:
        return set(self._channels.get(owner_id, []))

    async def all_destinations(self) -> List[Destination]:
        return [
            Destination(owner_id=owner_id, channel_id=channel_id)
            for owner_id, channels in self._channels.items()
            for channel_id in channels
        ]


class StorageDestinationRegistry:
    """Registry persisted through a StoragePort (JSON files by default)."""

    KEY = "destinations"

    def __init__(self, storage: StoragePort):
        self._storage = storage
        self._lock = asyncio.Lock()

    def _load(self) -> List[Dict[str, str]]:
        rows = []
        for item in self._storage.load(self.KEY):
            if isinstance(item, dict) and item.get("owner_id") and item.get("channel_id"):
                rows.append({"owner_id": str(item["owner_id"]), "channel_id": str(item["channel_id"])})
        return rows

    async def enroll(self, owner_id: str, channel_id: str) -> bool:
        _require_ids(owner_id, channel_id)
        async with self._lock:
            rows = self._load()
            if any(r["owner_id"] == owner_id and r["channel_id"] == channel_id for r in rows):
                return False
            rows.append({"owner_id": owner_id, "channel_id": channel_id})
            self._storage.save(self.KEY, rows)
            _log(f"[registry] enrolled channel {channel_id} for {owner_id}")
            return True

    async def remove(self, owner_id: str, channel_id: str) -> bool:
        async with self._lock:
            rows = self._load()
            kept = [r for r in rows if not (r["owner_id"] == owner_id and r["channel_id"] == channel_id)]
            if len(kept) == len(rows):
                return False
            self._storage.save(self.KEY, kept)
            return True

    async def list_channels(self, owner_id: str) -> Set[str]:
        return {r["channel_id"] for r in self._load() if r["owner_id"] == owner_id}

    async def all_destinations(self) -> List[Destination]:
        return [Destination(owner_id=r["owner_id"], channel_id=r["channel_id"]) for r in self._load()]
