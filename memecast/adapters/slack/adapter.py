"""Slack chat adapter — implements ChatPort with slack_sdk's AsyncWebClient.

Each call runs with the bot token of the workspace it targets: the token
carried by the destination, else the one stored for the workspace, else
the single-workspace SLACK_BOT_TOKEN.
"""

import sys
from typing import Any, Awaitable, Callable, Dict, List, Optional

from slack_sdk.web.async_client import AsyncWebClient

from memecast.adapters.chat_base import PLACEHOLDER_DELETE, BaseChatAdapter
from memecast.domain.errors import ExternalCallFailure
from memecast.domain.models import ChannelMessage, Destination, MessageRef, Reaction

TokenResolver = Callable[[str], Awaitable[Optional[str]]]

# Subtypes that still carry a person's own message; the rest are system lines
_HUMAN_SUBTYPES = {"thread_broadcast", "file_share", "me_message"}


def _log(msg: str):
    print(msg, file=sys.stderr)


def to_channel_message(raw: Dict[str, Any]) -> ChannelMessage:
    """Convert a conversations.history entry to ChannelMessage.

    Bot posts and system lines (channel_join, topic changes, ...) are marked
    is_bot so the engagement scan never picks them.
    """
    subtype = raw.get("subtype")
    return ChannelMessage(
        message_id=str(raw.get("ts", "")),
        author_id=str(raw.get("user") or raw.get("bot_id") or ""),
        is_bot=bool(raw.get("bot_id")) or bool(subtype and subtype not in _HUMAN_SUBTYPES),
        text=raw.get("text") or "",
        reactions=[
            Reaction(emoji=r.get("name", ""), count=int(r.get("count", 0)))
            for r in raw.get("reactions", [])
        ],
    )


def build_blocks(text: str, image_url: Optional[str] = None) -> List[Dict[str, Any]]:
    blocks: List[Dict[str, Any]] = [{"type": "section", "text": {"type": "mrkdwn", "text": text}}]
    if image_url:
        blocks.append({"type": "image", "image_url": image_url, "alt_text": "generated meme"})
    return blocks


class SlackChatAdapter(BaseChatAdapter):
    """ChatPort over the Slack Web API."""

    def __init__(
        self,
        token_resolver: Optional[TokenResolver] = None,
        default_token: str = "",
        placeholder_mode: str = PLACEHOLDER_DELETE,
        client_factory: Callable[[str], AsyncWebClient] = lambda token: AsyncWebClient(token=token),
    ):
        super().__init__(placeholder_mode)
        self._token_resolver = token_resolver
        self._default_token = default_token
        self._client_factory = client_factory

    async def _client(self, destination: Destination) -> AsyncWebClient:
        token = destination.access_token
        if not token and self._token_resolver:
            token = await self._token_resolver(destination.owner_id)
        token = token or self._default_token
        if not token:
            raise ExternalCallFailure("resolve token", f"no bot token for team {destination.owner_id}")
        return self._client_factory(token)

    async def fetch_recent_messages(self, destination: Destination, limit: int = 50) -> List[ChannelMessage]:
        client = await self._client(destination)
        resp = await client.conversations_history(channel=destination.channel_id, limit=limit)
        return [to_channel_message(m) for m in resp.get("messages", [])]

    async def post_message(self, destination: Destination, text: str, image_url: Optional[str] = None) -> MessageRef:
        client = await self._client(destination)
        resp = await client.chat_postMessage(
            channel=destination.channel_id,
            text=text,
            blocks=build_blocks(text, image_url),
        )
        return MessageRef(destination=destination, message_id=str(resp["ts"]))

    async def update_message(self, ref: MessageRef, text: str, image_url: Optional[str] = None) -> None:
        client = await self._client(ref.destination)
        await client.chat_update(
            channel=ref.destination.channel_id,
            ts=ref.message_id,
            text=text,
            blocks=build_blocks(text, image_url),
        )

    async def delete_message(self, ref: MessageRef) -> None:
        client = await self._client(ref.destination)
        await client.chat_delete(channel=ref.destination.channel_id, ts=ref.message_id)
