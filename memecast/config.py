"""Configuration and shared settings."""

import os
import sys
from dataclasses import dataclass, field

from dotenv import load_dotenv

from memecast.domain.errors import ConfigurationError

load_dotenv()

_stderr_print = lambda *a, **kw: print(*a, **kw, file=sys.stderr)


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        _stderr_print(f"Invalid {name}={raw!r}, falling back to {default}")
        return default


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        _stderr_print(f"Invalid {name}={raw!r}, falling back to {default}")
        return default


SUPPORTED_REGISTRY_BACKENDS = ("memory", "json", "mongo")
REGISTRY_BACKEND = os.getenv("REGISTRY_BACKEND", "memory").strip().lower()
if REGISTRY_BACKEND not in SUPPORTED_REGISTRY_BACKENDS:
    _stderr_print(f"Unsupported REGISTRY_BACKEND={REGISTRY_BACKEND!r}, falling back to 'memory'")
    REGISTRY_BACKEND = "memory"

SUPPORTED_PLACEHOLDER_MODES = ("delete", "edit")


def _placeholder_mode(name: str, default: str) -> str:
    mode = os.getenv(name, default).strip().lower()
    if mode not in SUPPORTED_PLACEHOLDER_MODES:
        _stderr_print(f"Unsupported {name}={mode!r}, falling back to {default!r}")
        return default
    return mode


CONFIG = {
    "port": _int_env("PORT", 3000),
    # Magic Hour
    "mh_api_key": os.getenv("MH_API_KEY", ""),
    "mh_meme_template": os.getenv("MH_MEME_TEMPLATE", "Random"),
    "mh_poll_attempts": _int_env("MH_POLL_ATTEMPTS", 20),
    "mh_poll_interval": _float_env("MH_POLL_INTERVAL", 3.0),
    # Discord
    "discord_bot_token": os.getenv("DISCORD_BOT_TOKEN", ""),
    "discord_placeholder_mode": _placeholder_mode("DISCORD_PLACEHOLDER_MODE", "edit"),
    # Slack
    "slack_bot_token": os.getenv("SLACK_BOT_TOKEN", ""),
    "slack_signing_secret": os.getenv("SLACK_SIGNING_SECRET", ""),
    "slack_client_id": os.getenv("SLACK_CLIENT_ID", ""),
    "slack_client_secret": os.getenv("SLACK_CLIENT_SECRET", ""),
    "slack_redirect_uri": os.getenv("REDIRECT_URI", ""),
    "slack_placeholder_mode": _placeholder_mode("SLACK_PLACEHOLDER_MODE", "delete"),
    # Storage
    "registry_backend": REGISTRY_BACKEND,
    "storage_dir": os.getenv("STORAGE_DIR", "memory"),
    "mongo_uri": os.getenv("MONGO_URI", ""),
    "mongo_db": os.getenv("MONGO_DB", "magic_hour_bot"),
    # Auto-post cycle
    "auto_post_schedule": os.getenv("AUTO_POST_SCHEDULE", ""),
    "auto_post_timezone": os.getenv("AUTO_POST_TIMEZONE", "UTC"),
    "auto_post_prompt_template": os.getenv("AUTO_POST_PROMPT_TEMPLATE", "Based on: {text}"),
    # Empty disables the context-free fallback meme
    "auto_post_fallback_prompt": os.getenv("AUTO_POST_FALLBACK_PROMPT", ""),
    "auto_post_history_limit": _int_env("AUTO_POST_HISTORY_LIMIT", 50),
    "schedule_tick_seconds": _float_env("SCHEDULE_TICK_SECONDS", 30.0),
}

DEFAULT_DISCORD_SCHEDULE = "every 2h"
DEFAULT_SLACK_SCHEDULE = "every 5m"


# ── Typed config ──────────────────────────────────────


@dataclass
class MagicHourConfig:
    api_key: str = ""
    template: str = "Random"
    poll_attempts: int = 20
    poll_interval: float = 3.0


@dataclass
class AutoPostConfig:
    schedule: str = ""
    timezone: str = "UTC"
    prompt_template: str = "Based on: {text}"
    fallback_prompt: str = ""
    history_limit: int = 50
    tick_seconds: float = 30.0


@dataclass
class DiscordConfig:
    bot_token: str = ""
    placeholder_mode: str = "edit"


@dataclass
class SlackConfig:
    bot_token: str = ""
    signing_secret: str = ""
    client_id: str = ""
    client_secret: str = ""
    redirect_uri: str = ""
    placeholder_mode: str = "delete"


@dataclass
class StorageConfig:
    registry_backend: str = "memory"
    storage_dir: str = "memory"
    mongo_uri: str = ""
    mongo_db: str = "magic_hour_bot"


@dataclass
class AppConfig:
    """Typed configuration built from CONFIG."""

    port: int = 3000
    magic_hour: MagicHourConfig = field(default_factory=MagicHourConfig)
    auto_post: AutoPostConfig = field(default_factory=AutoPostConfig)
    discord: DiscordConfig = field(default_factory=DiscordConfig)
    slack: SlackConfig = field(default_factory=SlackConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)

    @classmethod
    def from_env(cls) -> "AppConfig":
        """Create AppConfig from environment variables."""
        return cls(
            port=CONFIG["port"],
            magic_hour=MagicHourConfig(
                api_key=CONFIG["mh_api_key"],
                template=CONFIG["mh_meme_template"],
                poll_attempts=CONFIG["mh_poll_attempts"],
                poll_interval=CONFIG["mh_poll_interval"],
            ),
            auto_post=AutoPostConfig(
                schedule=CONFIG["auto_post_schedule"],
                timezone=CONFIG["auto_post_timezone"],
                prompt_template=CONFIG["auto_post_prompt_template"],
                fallback_prompt=CONFIG["auto_post_fallback_prompt"],
                history_limit=CONFIG["auto_post_history_limit"],
                tick_seconds=CONFIG["schedule_tick_seconds"],
            ),
            discord=DiscordConfig(
                bot_token=CONFIG["discord_bot_token"],
                placeholder_mode=CONFIG["discord_placeholder_mode"],
            ),
            slack=SlackConfig(
                bot_token=CONFIG["slack_bot_token"],
                signing_secret=CONFIG["slack_signing_secret"],
                client_id=CONFIG["slack_client_id"],
                client_secret=CONFIG["slack_client_secret"],
                redirect_uri=CONFIG["slack_redirect_uri"],
                placeholder_mode=CONFIG["slack_placeholder_mode"],
            ),
            storage=StorageConfig(
                registry_backend=CONFIG["registry_backend"],
                storage_dir=CONFIG["storage_dir"],
                mongo_uri=CONFIG["mongo_uri"],
                mongo_db=CONFIG["mongo_db"],
            ),
        )

    def _validate_common(self):
        if not self.magic_hour.api_key:
            raise ConfigurationError("MH_API_KEY is not set")
        if self.storage.registry_backend == "mongo" and not self.storage.mongo_uri:
            raise ConfigurationError("REGISTRY_BACKEND=mongo requires MONGO_URI")

    def validate_discord(self):
        """Raise ConfigurationError if the Discord variant cannot start."""
        if not self.discord.bot_token:
            raise ConfigurationError("DISCORD_BOT_TOKEN is not set")
        # Workspace documents only come from the Slack OAuth install
        if self.storage.registry_backend == "mongo":
            raise ConfigurationError("REGISTRY_BACKEND=mongo is Slack-only; use memory or json for Discord")
        self._validate_common()

    def validate_slack(self):
        """Raise ConfigurationError if the Slack variant cannot start."""
        if not self.slack.signing_secret:
            raise ConfigurationError("SLACK_SIGNING_SECRET is not set")
        if self.storage.registry_backend == "mongo":
            if not (self.slack.client_id and self.slack.client_secret):
                raise ConfigurationError("OAuth install requires SLACK_CLIENT_ID and SLACK_CLIENT_SECRET")
        elif not self.slack.bot_token:
            raise ConfigurationError("SLACK_BOT_TOKEN is not set (required without REGISTRY_BACKEND=mongo)")
        self._validate_common()
