"""Tests for prompt extraction and chat text templates."""

from memecast.domain.models import ChannelMessage
from memecast.domain.prompts import (
    announcement_text,
    build_prompt,
    extract_prompt,
    truncate_text,
)


class TestExtractPrompt:
    def test_strips_slack_mention(self):
        assert extract_prompt("<@U0BOT> a cat in a hat") == "a cat in a hat"

    def test_strips_discord_nick_and_role_mentions(self):
        assert extract_prompt("<@!123> <@&456> dogs at work") == "dogs at work"

    def test_mention_only_is_empty(self):
        assert extract_prompt("  <@U0BOT>  ") == ""

    def test_none_is_empty(self):
        assert extract_prompt(None) == ""


class TestTemplates:
    def test_truncate(self):
        assert truncate_text("short") == "short"
        out = truncate_text("x" * 150)
        assert len(out) == 100
        assert out.endswith("...")

    def test_build_prompt_default(self):
        msg = ChannelMessage(message_id="1", author_id="U1", is_bot=False, text="mondays again")
        assert build_prompt(msg) == "Based on: mondays again"

    def test_build_prompt_with_author(self):
        msg = ChannelMessage(message_id="1", author_id="U1", is_bot=False, text="hi")
        assert build_prompt(msg, "{author} said {text}") == "U1 said hi"

    def test_build_prompt_keeps_braces_in_text(self):
        msg = ChannelMessage(message_id="1", author_id="U1", is_bot=False, text="json {a: 1}")
        assert build_prompt(msg) == "Based on: json {a: 1}"

    def test_announcement_tags_author(self):
        msg = ChannelMessage(message_id="1", author_id="U7", is_bot=False, text="line one\nline two")
        text = announcement_text(msg)
        assert "<@U7>" in text
        assert "line one line two" in text
