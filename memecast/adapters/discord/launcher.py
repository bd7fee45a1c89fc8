"""Launcher for the Discord meme bot."""

import asyncio
import sys

from memecast.adapters.discord.adapter import MemeBot
from memecast.adapters.wiring import build_orchestrator, build_registry, resolve_schedule
from memecast.config import DEFAULT_DISCORD_SCHEDULE, AppConfig
from memecast.domain.errors import ConfigurationError


def _log(msg: str):
    print(msg, file=sys.stderr)


def build_bot(config: AppConfig) -> MemeBot:
    """Validate config and wire registry, generator and orchestrator into a MemeBot."""
    config.validate_discord()
    registry = build_registry(config)
    orchestrator = build_orchestrator(config, registry, name="MemeBot")
    schedule = resolve_schedule(config, DEFAULT_DISCORD_SCHEDULE)
    return MemeBot(orchestrator, schedule=schedule, placeholder_mode=config.discord.placeholder_mode)


async def launch(config: AppConfig):
    bot = build_bot(config)
    _log("[launcher] starting Discord meme bot...")
    try:
        await bot.start(config.discord.bot_token)
    finally:
        await bot.orchestrator.stop_schedule_loop()
        if not bot.is_closed():
            await bot.close()


def main():
    try:
        asyncio.run(launch(AppConfig.from_env()))
    except ConfigurationError as e:
        _log(f"[launcher] configuration error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
