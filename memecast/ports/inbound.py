"""Inbound port — platform-agnostic message representation."""

from dataclasses import dataclass


@dataclass
class IncomingMessage:
    """Discord/Slack-agnostic mention event."""

    content: str
    channel_id: str
    owner_id: str  # guild id or workspace team id
    author_id: str
    author_name: str = ""
    is_bot: bool = False
    is_mention: bool = True
