"""Outbound ports — interfaces for external system adapters."""

from typing import List, Optional, Protocol, Set, runtime_checkable

from memecast.domain.models import (
    ChannelMessage,
    Destination,
    GenerationResult,
    MessageRef,
    WorkspaceRecord,
)


@runtime_checkable
class ChatPort(Protocol):
    """Interface for reading from and posting to a chat platform."""

    async def fetch_recent_messages(self, destination: Destination, limit: int = 50) -> List[ChannelMessage]: ...

    async def post_message(
        self,
        destination: Destination,
        text: str,
        image_url: Optional[str] = None,
    ) -> MessageRef: ...

    async def update_message(self, ref: MessageRef, text: str, image_url: Optional[str] = None) -> None: ...

    async def delete_message(self, ref: MessageRef) -> None: ...

    async def replace_placeholder(self, ref: MessageRef, text: str, image_url: str) -> MessageRef: ...


@runtime_checkable
class GeneratorPort(Protocol):
    """Interface for the image/meme generation service."""

    async def generate(self, prompt: str) -> GenerationResult: ...


@runtime_checkable
class DestinationRegistryPort(Protocol):
    """Interface for channel enrollment."""

    async def enroll(self, owner_id: str, channel_id: str) -> bool: ...
    async def remove(self, owner_id: str, channel_id: str) -> bool: ...
    async def list_channels(self, owner_id: str) -> Set[str]: ...
    async def all_destinations(self) -> List[Destination]: ...


@runtime_checkable
class WorkspaceStorePort(Protocol):
    """Interface for durable workspace installs."""

    async def upsert(self, record: WorkspaceRecord) -> None: ...
    async def find(self, team_id: str) -> Optional[WorkspaceRecord]: ...
    async def list_all(self) -> List[WorkspaceRecord]: ...
    async def count(self) -> int: ...


@runtime_checkable
class StoragePort(Protocol):
    """Interface for persistent storage."""

    def load(self, key: str) -> list: ...
    def save(self, key: str, data: list) -> None: ...
