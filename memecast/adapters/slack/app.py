"""slack_bolt wiring — authorization, app_mention and the /automeme command."""

import re
import sys
from typing import Optional

from slack_bolt.async_app import AsyncApp
from slack_bolt.authorization import AuthorizeResult

from memecast.domain.errors import ConfigurationError
from memecast.domain.orchestrator import AutoPostOrchestrator
from memecast.domain.prompts import extract_prompt
from memecast.ports.inbound import IncomingMessage
from memecast.ports.outbound import WorkspaceStorePort

_CHANNEL_ESCAPED_RE = re.compile(r"<#([A-Z0-9]+)(?:\|[^>]*)?>")
_CHANNEL_ID_RE = re.compile(r"^[CG][A-Z0-9]{6,}$")

USAGE_TEXT = "Usage: `/automeme #channel` (the channel that should get auto memes)."


def _log(msg: str):
    print(msg, file=sys.stderr)


def parse_channel_option(text: str) -> Optional[str]:
    """Extract a channel id from slash command text ("<#C123|general>" or "C123")."""
    text = (text or "").strip()
    m = _CHANNEL_ESCAPED_RE.search(text)
    if m:
        return m.group(1)
    if _CHANNEL_ID_RE.match(text):
        return text
    return None


class SlackHandlers:
    """Listener bodies, kept apart from bolt registration so they can be called directly."""

    def __init__(
        self,
        orchestrator: AutoPostOrchestrator,
        workspace_store: Optional[WorkspaceStorePort] = None,
        fallback_token: str = "",
    ):
        self.orchestrator = orchestrator
        self._store = workspace_store
        self._fallback_token = fallback_token

    async def authorize(self, enterprise_id: Optional[str], team_id: Optional[str]) -> Optional[AuthorizeResult]:
        if self._store and team_id:
            record = await self._store.find(team_id)
            if record:
                return AuthorizeResult(
                    enterprise_id=enterprise_id,
                    team_id=team_id,
                    bot_token=record.access_token,
                    bot_user_id=record.bot_user_id or None,
                )
        if self._fallback_token:
            return AuthorizeResult(enterprise_id=enterprise_id, team_id=team_id, bot_token=self._fallback_token)
        _log(f"[slack] no token for team {team_id}")
        return None

    async def on_app_mention(self, event: dict, team_id: Optional[str] = None):
        text = event.get("text", "")
        _log(f"[slack] app_mention: {text[:80]!r} | user={event.get('user')} | team={event.get('team')}")
        incoming = IncomingMessage(
            content=text,
            channel_id=event.get("channel", ""),
            owner_id=event.get("team") or team_id or "",
            author_id=event.get("user", ""),
            is_bot=bool(event.get("bot_id")),
        )
        outcome = await self.orchestrator.handle_mention(incoming, extract_prompt(text))
        _log(f"[slack] mention handled: {outcome.status}")

    async def on_automeme(self, command: dict) -> str:
        """Enroll the channel named in the command and return the reply text."""
        channel_id = parse_channel_option(command.get("text", ""))
        if not channel_id:
            return USAGE_TEXT
        try:
            added = await self.orchestrator.enroll(command.get("team_id", ""), channel_id)
        except ConfigurationError as e:
            _log(f"[slack] enrollment rejected: {e}")
            return f"❌ Could not enroll channel: {e}"
        except Exception as e:
            _log(f"[slack] enrollment failed: {e}")
            return "❌ Could not enroll channel, try again later."
        if added:
            return f"✅ Auto memes enabled for <#{channel_id}>."
        return f"ℹ️ <#{channel_id}> is already enrolled."


def build_bolt_app(handlers: SlackHandlers, signing_secret: str) -> AsyncApp:
    """Create the bolt app. Tokens come from the authorize callback, never a global token."""

    async def authorize(enterprise_id, team_id, logger):
        return await handlers.authorize(enterprise_id, team_id)

    app = AsyncApp(signing_secret=signing_secret, authorize=authorize)

    @app.event("app_mention")
    async def app_mention(event, context):
        await handlers.on_app_mention(event, team_id=context.team_id)

    @app.command("/automeme")
    async def automeme(ack, command, respond):
        await ack()
        await respond(await handlers.on_automeme(command))

    return app
