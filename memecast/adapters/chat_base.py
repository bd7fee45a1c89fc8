"""Shared placeholder handling for chat adapters."""

from typing import List, Optional

from memecast.domain.models import ChannelMessage, Destination, MessageRef

PLACEHOLDER_DELETE = "delete"  # delete the placeholder, then post the image
PLACEHOLDER_EDIT = "edit"  # edit the placeholder in place to carry the image


class BaseChatAdapter:
    """ChatPort skeleton. Subclasses implement the four platform primitives."""

    def __init__(self, placeholder_mode: str = PLACEHOLDER_DELETE):
        if placeholder_mode not in (PLACEHOLDER_DELETE, PLACEHOLDER_EDIT):
            raise ValueError(f"unknown placeholder mode: {placeholder_mode!r}")
        self.placeholder_mode = placeholder_mode

    async def fetch_recent_messages(self, destination: Destination, limit: int = 50) -> List[ChannelMessage]:
        raise NotImplementedError

    async def post_message(self, destination: Destination, text: str, image_url: Optional[str] = None) -> MessageRef:
        raise NotImplementedError

    async def update_message(self, ref: MessageRef, text: str, image_url: Optional[str] = None) -> None:
        raise NotImplementedError

    async def delete_message(self, ref: MessageRef) -> None:
        raise NotImplementedError

    async def replace_placeholder(self, ref: MessageRef, text: str, image_url: str) -> MessageRef:
        if self.placeholder_mode == PLACEHOLDER_EDIT:
            await self.update_message(ref, text, image_url=image_url)
            return ref
        await self.delete_message(ref)
        return await self.post_message(ref.destination, text, image_url=image_url)
