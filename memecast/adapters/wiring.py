"""Process wiring shared by the Discord and Slack launchers."""

import sys
from typing import Optional

from memecast.adapters.generation.magic_hour import MagicHourClient, PollPolicy
from memecast.adapters.storage.json_store import JsonStorage
from memecast.config import AppConfig
from memecast.domain.errors import ConfigurationError
from memecast.domain.orchestrator import AutoPostOrchestrator, OrchestratorSettings
from memecast.domain.registry import InMemoryDestinationRegistry, StorageDestinationRegistry
from memecast.domain.schedule import CycleSchedule, parse_schedule
from memecast.ports.outbound import DestinationRegistryPort


def _log(msg: str):
    print(msg, file=sys.stderr)


def build_registry(config: AppConfig, mongo_collection=None) -> DestinationRegistryPort:
    """Pick the registry backend named by REGISTRY_BACKEND."""
    backend = config.storage.registry_backend
    if backend == "mongo":
        if mongo_collection is None:
            raise ConfigurationError("REGISTRY_BACKEND=mongo needs a connected collection")
        from memecast.adapters.storage.mongo_store import MongoDestinationRegistry
        _log("[wiring] registry: mongo")
        return MongoDestinationRegistry(mongo_collection)
    if backend == "json":
        _log(f"[wiring] registry: json ({config.storage.storage_dir})")
        return StorageDestinationRegistry(JsonStorage(config.storage.storage_dir))
    _log("[wiring] registry: in-memory")
    return InMemoryDestinationRegistry()


def build_generator(config: AppConfig) -> MagicHourClient:
    return MagicHourClient(
        api_key=config.magic_hour.api_key,
        template=config.magic_hour.template,
        poll=PollPolicy(
            max_attempts=config.magic_hour.poll_attempts,
            interval=config.magic_hour.poll_interval,
        ),
    )


def build_orchestrator(
    config: AppConfig,
    registry: DestinationRegistryPort,
    generator: Optional[MagicHourClient] = None,
    name: str = "memecast",
) -> AutoPostOrchestrator:
    settings = OrchestratorSettings(
        prompt_template=config.auto_post.prompt_template,
        fallback_prompt=config.auto_post.fallback_prompt,
        history_limit=config.auto_post.history_limit,
        tick_seconds=config.auto_post.tick_seconds,
    )
    return AutoPostOrchestrator(
        registry=registry,
        generator=generator or build_generator(config),
        settings=settings,
        name=name,
    )


def resolve_schedule(config: AppConfig, default: str) -> CycleSchedule:
    """Parse AUTO_POST_SCHEDULE (or the variant default). Bad values are fatal."""
    text = config.auto_post.schedule or default
    try:
        return parse_schedule(text, tz=config.auto_post.timezone)
    except ValueError as e:
        raise ConfigurationError(f"AUTO_POST_SCHEDULE: {e}") from e
