"""Launcher for the Slack meme bot (HTTP events + OAuth install)."""

import sys
from typing import Optional

import uvicorn
from fastapi import FastAPI

from memecast.adapters.slack.adapter import SlackChatAdapter
from memecast.adapters.slack.app import SlackHandlers, build_bolt_app
from memecast.adapters.slack.oauth import SlackOAuthExchanger
from memecast.adapters.web.server import create_app
from memecast.adapters.wiring import build_orchestrator, build_registry, resolve_schedule
from memecast.config import DEFAULT_SLACK_SCHEDULE, AppConfig
from memecast.domain.errors import ConfigurationError
from memecast.ports.outbound import WorkspaceStorePort


def _log(msg: str):
    print(msg, file=sys.stderr)


def _token_resolver(store: Optional[WorkspaceStorePort]):
    if store is None:
        return None

    async def resolve(team_id: str) -> Optional[str]:
        record = await store.find(team_id)
        return record.access_token if record else None

    return resolve


def build_server(config: AppConfig) -> FastAPI:
    """Validate config and wire every Slack-side collaborator into one FastAPI app."""
    config.validate_slack()

    store = None
    collection = None
    if config.storage.registry_backend == "mongo":
        from memecast.adapters.storage.mongo_store import MongoWorkspaceStore, connect_collection
        collection = connect_collection(config.storage.mongo_uri, config.storage.mongo_db)
        store = MongoWorkspaceStore(collection)

    registry = build_registry(config, mongo_collection=collection)
    orchestrator = build_orchestrator(config, registry, name="SlackMemeBot")
    orchestrator.wire(SlackChatAdapter(
        token_resolver=_token_resolver(store),
        default_token=config.slack.bot_token,
        placeholder_mode=config.slack.placeholder_mode,
    ))

    handlers = SlackHandlers(orchestrator, workspace_store=store, fallback_token=config.slack.bot_token)
    bolt_app = build_bolt_app(handlers, config.slack.signing_secret)

    exchanger = None
    if store is not None:
        exchanger = SlackOAuthExchanger(
            client_id=config.slack.client_id,
            client_secret=config.slack.client_secret,
            redirect_uri=config.slack.redirect_uri,
        )

    return create_app(
        orchestrator=orchestrator,
        workspace_store=store,
        oauth_exchanger=exchanger,
        bolt_app=bolt_app,
        schedule=resolve_schedule(config, DEFAULT_SLACK_SCHEDULE),
    )


def main():
    config = AppConfig.from_env()
    try:
        app = build_server(config)
    except ConfigurationError as e:
        _log(f"[launcher] configuration error: {e}")
        sys.exit(1)
    _log(f"[launcher] Slack meme bot listening on port {config.port}")
    uvicorn.run(app, host="0.0.0.0", port=config.port)


if __name__ == "__main__":
    main()
