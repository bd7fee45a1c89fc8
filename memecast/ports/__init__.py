"""Port interfaces (Hexagonal Architecture)."""

from memecast.ports.inbound import IncomingMessage
from memecast.ports.outbound import (
    ChatPort,
    DestinationRegistryPort,
    GeneratorPort,
    StoragePort,
    WorkspaceStorePort,
)

__all__ = [
    "IncomingMessage",
    "ChatPort",
    "DestinationRegistryPort",
    "GeneratorPort",
    "StoragePort",
    "WorkspaceStorePort",
]
