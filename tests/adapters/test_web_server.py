"""Unit tests for the HTTP surface — health, status, Slack OAuth callback."""

from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest
from httpx import AsyncClient, ASGITransport

from memecast.adapters.slack.oauth import OAuthRejected
from memecast.adapters.web.server import HEALTH_TEXT, create_app
from memecast.domain.errors import ConfigurationError
from memecast.domain.models import CycleReport, Destination, DestinationOutcome, WorkspaceRecord


def _store(count=0):
    store = MagicMock()
    store.upsert = AsyncMock()
    store.count = AsyncMock(return_value=count)
    return store


def _exchanger(record=None, error=None):
    exchanger = MagicMock()
    exchanger.exchange = AsyncMock(return_value=record, side_effect=error)
    return exchanger


def _record(team_name="Acme"):
    return WorkspaceRecord(team_id="T1", team_name=team_name, access_token="xoxb-1")


async def _get(app, path):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        return await ac.get(path)


class TestHealth:
    @pytest.mark.asyncio
    async def test_health(self):
        resp = await _get(create_app(), "/")
        assert resp.status_code == 200
        assert resp.text == HEALTH_TEXT


class TestStatus:
    @pytest.mark.asyncio
    async def test_no_cycle_yet(self):
        orchestrator = MagicMock()
        orchestrator.last_report = None
        resp = await _get(create_app(orchestrator=orchestrator), "/status")
        assert resp.json() == {"lastCycle": None, "lastCycleCounts": {}, "workspaces": None}

    @pytest.mark.asyncio
    async def test_last_cycle_and_workspaces(self):
        started = datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc)
        orchestrator = MagicMock()
        orchestrator.last_report = CycleReport(started_at=started, outcomes=[
            DestinationOutcome(Destination("T1", "C1"), "posted"),
            DestinationOutcome(Destination("T1", "C2"), "no_candidate"),
        ])
        resp = await _get(create_app(orchestrator=orchestrator, workspace_store=_store(3)), "/status")
        data = resp.json()
        assert data["lastCycle"] == started.isoformat()
        assert data["lastCycleCounts"] == {"posted": 1, "no_candidate": 1}
        assert data["workspaces"] == 3


class TestOAuthRedirect:
    @pytest.mark.asyncio
    async def test_route_absent_without_exchanger(self):
        resp = await _get(create_app(), "/slack/oauth_redirect?code=abc")
        assert resp.status_code == 404

    def test_exchanger_needs_store(self):
        with pytest.raises(ConfigurationError):
            create_app(oauth_exchanger=_exchanger(_record()))

    @pytest.mark.asyncio
    async def test_missing_code(self):
        exchanger = _exchanger(_record())
        app = create_app(workspace_store=_store(), oauth_exchanger=exchanger)
        resp = await _get(app, "/slack/oauth_redirect")
        assert resp.status_code == 400
        assert "Missing code" in resp.text
        exchanger.exchange.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_slack_rejects_code(self):
        store = _store()
        app = create_app(workspace_store=store, oauth_exchanger=_exchanger(error=OAuthRejected("invalid_code")))
        resp = await _get(app, "/slack/oauth_redirect?code=bad")
        assert resp.status_code == 400
        assert "invalid_code" in resp.text
        store.upsert.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_exchange_transport_failure(self):
        app = create_app(workspace_store=_store(), oauth_exchanger=_exchanger(error=RuntimeError("timeout")))
        resp = await _get(app, "/slack/oauth_redirect?code=abc")
        assert resp.status_code == 500

    @pytest.mark.asyncio
    async def test_store_failure(self):
        store = _store()
        store.upsert.side_effect = RuntimeError("mongo down")
        app = create_app(workspace_store=store, oauth_exchanger=_exchanger(_record()))
        resp = await _get(app, "/slack/oauth_redirect?code=abc")
        assert resp.status_code == 500

    @pytest.mark.asyncio
    async def test_success_saves_workspace(self):
        store = _store()
        record = _record("<Acme & Co>")
        app = create_app(workspace_store=store, oauth_exchanger=_exchanger(record))
        resp = await _get(app, "/slack/oauth_redirect?code=abc")
        assert resp.status_code == 200
        assert "successfully installed" in resp.text
        assert "&lt;Acme &amp; Co&gt;" in resp.text
        store.upsert.assert_awaited_once_with(record)
