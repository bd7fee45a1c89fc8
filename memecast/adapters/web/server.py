"""FastAPI application: health, status, Slack OAuth callback and Slack events."""

import html
import sys
from typing import Dict, Optional

from fastapi import APIRouter, FastAPI, Request
from fastapi.responses import HTMLResponse, PlainTextResponse
from pydantic import BaseModel

from memecast.adapters.slack.oauth import OAuthRejected, SlackOAuthExchanger
from memecast.domain.errors import ConfigurationError
from memecast.domain.orchestrator import AutoPostOrchestrator
from memecast.domain.schedule import CycleSchedule
from memecast.ports.outbound import WorkspaceStorePort

HEALTH_TEXT = "✅ Magic Hour Meme Bot is live and healthy."


def _log(msg: str):
    print(msg, file=sys.stderr)


class StatusResponse(BaseModel):
    lastCycle: Optional[str] = None
    lastCycleCounts: Dict[str, int] = {}
    workspaces: Optional[int] = None


def build_oauth_router(exchanger: SlackOAuthExchanger, store: WorkspaceStorePort) -> APIRouter:
    router = APIRouter(prefix="/slack", tags=["Slack OAuth"])

    @router.get("/oauth_redirect", response_class=HTMLResponse)
    async def oauth_redirect(code: Optional[str] = None):
        _log(f"[oauth] redirect received (code present: {bool(code)})")
        if not code:
            return HTMLResponse("Missing code.", status_code=400)

        try:
            record = await exchanger.exchange(code)
        except OAuthRejected as e:
            _log(f"[oauth] Slack returned an error: {e}")
            return HTMLResponse(f"<h3>Slack OAuth error: {html.escape(str(e))}</h3>", status_code=400)
        except Exception as e:
            _log(f"[oauth] token exchange failed: {e}")
            return HTMLResponse(f"<h3>Installation failed: {html.escape(str(e))}</h3>", status_code=500)

        try:
            await store.upsert(record)
        except Exception as e:
            _log(f"[oauth] saving workspace failed: {e}")
            return HTMLResponse(f"<h3>Installation failed: {html.escape(str(e))}</h3>", status_code=500)

        return HTMLResponse(
            f"<h2>✅ Magic Hour Bot successfully installed to workspace: {html.escape(record.team_name)}</h2>"
        )

    return router


def create_app(
    orchestrator: Optional[AutoPostOrchestrator] = None,
    workspace_store: Optional[WorkspaceStorePort] = None,
    oauth_exchanger: Optional[SlackOAuthExchanger] = None,
    bolt_app=None,
    schedule: Optional[CycleSchedule] = None,
) -> FastAPI:
    """Build the HTTP app. Optional pieces only add their routes when given."""
    app = FastAPI(title="Magic Hour Meme Bot")

    @app.get("/", response_class=PlainTextResponse)
    async def health():
        return HEALTH_TEXT

    @app.get("/status", response_model=StatusResponse)
    async def status():
        report = orchestrator.last_report if orchestrator else None
        workspaces = None
        if workspace_store:
            try:
                workspaces = await workspace_store.count()
            except Exception as e:
                _log(f"[status] workspace count failed: {e}")
        return StatusResponse(
            lastCycle=report.started_at.isoformat() if report else None,
            lastCycleCounts=report.counts() if report else {},
            workspaces=workspaces,
        )

    if oauth_exchanger:
        if workspace_store is None:
            raise ConfigurationError("OAuth install needs a workspace store")
        app.include_router(build_oauth_router(oauth_exchanger, workspace_store))

    if bolt_app is not None:
        from slack_bolt.adapter.fastapi.async_handler import AsyncSlackRequestHandler

        handler = AsyncSlackRequestHandler(bolt_app)

        @app.post("/slack/events")
        async def slack_events(req: Request):
            return await handler.handle(req)

    if orchestrator and schedule:
        @app.on_event("startup")
        async def start_schedule():
            orchestrator.start_schedule_loop(schedule)

        @app.on_event("shutdown")
        async def stop_schedule():
            await orchestrator.stop_schedule_loop()

    return app
