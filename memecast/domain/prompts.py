"""Prompt extraction and chat text templates."""

import re

from memecast.domain.models import ChannelMessage

MENTION_RE = re.compile(r"<@[^>]*>")

DISPLAY_QUOTE_LIMIT = 100

GENERATING_TEXT = "🎨 Generating your meme, <@{author}>..."
RESULT_TEXT = "😂 Here's your meme, <@{author}>!"
FAILURE_TEXT = "❌ Sorry, meme generation failed. Try again later."
EMPTY_PROMPT_TEXT = "🤔 <@{author}>, tell me what the meme should be about."
AUTO_POST_TEXT = "🤣 Auto meme time! Inspired by <@{author}>: \"{quote}\""
AUTO_POST_GENERIC_TEXT = "🤣 Auto meme time!"


def extract_prompt(text: str) -> str:
    """Strip mention tokens (<@U123>, <@!123>, <@&role>) and surrounding whitespace."""
    return MENTION_RE.sub("", text or "").strip()


def truncate_text(text: str, limit: int = DISPLAY_QUOTE_LIMIT) -> str:
    if len(text) <= limit:
        return text
    return text[: limit - 3] + "..."


def build_prompt(message: ChannelMessage, template: str = "Based on: {text}") -> str:
    """Fill the prompt template with the full message text and author id."""
    return template.format(text=message.text, author=message.author_id)


def announcement_text(message: ChannelMessage) -> str:
    """Chat text posted next to an auto meme. The quote is shortened for display only."""
    quote = truncate_text(" ".join(message.text.split()))
    return AUTO_POST_TEXT.format(author=message.author_id, quote=quote)
