"""Tests for the typed AppConfig dataclass and its start-up validation."""

import pytest

from memecast.config import (
    AppConfig,
    AutoPostConfig,
    DiscordConfig,
    MagicHourConfig,
    SlackConfig,
    StorageConfig,
)
from memecast.domain.errors import ConfigurationError


def _config(**overrides) -> AppConfig:
    c = AppConfig(magic_hour=MagicHourConfig(api_key="mh-key"))
    for name, value in overrides.items():
        setattr(c, name, value)
    return c


class TestDefaults:
    def test_app_config(self):
        c = AppConfig()
        assert c.port == 3000
        assert isinstance(c.magic_hour, MagicHourConfig)
        assert isinstance(c.auto_post, AutoPostConfig)
        assert c.storage.registry_backend == "memory"
        assert c.storage.mongo_db == "magic_hour_bot"

    def test_auto_post(self):
        c = AutoPostConfig()
        assert c.prompt_template == "Based on: {text}"
        assert c.fallback_prompt == ""
        assert c.history_limit == 50

    def test_placeholder_modes(self):
        assert DiscordConfig().placeholder_mode == "edit"
        assert SlackConfig().placeholder_mode == "delete"

    def test_poll_policy(self):
        c = MagicHourConfig()
        assert c.poll_attempts == 20
        assert c.poll_interval == 3.0

    def test_from_env(self):
        c = AppConfig.from_env()
        assert c.storage.registry_backend in ("memory", "json", "mongo")
        assert c.discord.placeholder_mode in ("edit", "delete")


class TestValidateDiscord:
    def test_ok(self):
        _config(discord=DiscordConfig(bot_token="tok")).validate_discord()

    def test_missing_token(self):
        with pytest.raises(ConfigurationError, match="DISCORD_BOT_TOKEN"):
            _config().validate_discord()

    def test_missing_magic_hour_key(self):
        c = AppConfig(discord=DiscordConfig(bot_token="tok"))
        with pytest.raises(ConfigurationError, match="MH_API_KEY"):
            c.validate_discord()

    def test_json_backend_ok(self):
        _config(discord=DiscordConfig(bot_token="tok"), storage=StorageConfig(registry_backend="json")).validate_discord()

    def test_mongo_backend_rejected(self):
        c = _config(
            discord=DiscordConfig(bot_token="tok"),
            storage=StorageConfig(registry_backend="mongo", mongo_uri="mongodb://localhost"),
        )
        with pytest.raises(ConfigurationError, match="Slack-only"):
            c.validate_discord()


class TestValidateCommon:
    def test_mongo_needs_uri(self):
        c = _config(
            slack=SlackConfig(signing_secret="s", client_id="id", client_secret="secret"),
            storage=StorageConfig(registry_backend="mongo"),
        )
        with pytest.raises(ConfigurationError, match="MONGO_URI"):
            c.validate_slack()


class TestValidateSlack:
    def test_single_workspace_ok(self):
        _config(slack=SlackConfig(bot_token="xoxb", signing_secret="s")).validate_slack()

    def test_missing_signing_secret(self):
        with pytest.raises(ConfigurationError, match="SLACK_SIGNING_SECRET"):
            _config(slack=SlackConfig(bot_token="xoxb")).validate_slack()

    def test_single_workspace_needs_bot_token(self):
        with pytest.raises(ConfigurationError, match="SLACK_BOT_TOKEN"):
            _config(slack=SlackConfig(signing_secret="s")).validate_slack()

    def test_multi_workspace_needs_oauth_credentials(self):
        c = _config(
            slack=SlackConfig(signing_secret="s"),
            storage=StorageConfig(registry_backend="mongo", mongo_uri="mongodb://localhost"),
        )
        with pytest.raises(ConfigurationError, match="SLACK_CLIENT_ID"):
            c.validate_slack()

    def test_multi_workspace_ok_without_bot_token(self):
        _config(
            slack=SlackConfig(signing_secret="s", client_id="id", client_secret="secret"),
            storage=StorageConfig(registry_backend="mongo", mongo_uri="mongodb://localhost"),
        ).validate_slack()
