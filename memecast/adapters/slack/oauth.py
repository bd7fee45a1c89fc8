"""Slack OAuth v2 code exchange."""

import sys
from datetime import datetime, timezone
from typing import Optional

from slack_sdk.errors import SlackApiError
from slack_sdk.web.async_client import AsyncWebClient

from memecast.domain.models import WorkspaceRecord


def _log(msg: str):
    print(msg, file=sys.stderr)


class OAuthRejected(Exception):
    """Slack refused the exchange (bad code, wrong redirect, ...)."""


class SlackOAuthExchanger:
    """Exchanges an OAuth code for a workspace bot token."""

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        redirect_uri: str = "",
        client: Optional[AsyncWebClient] = None,
    ):
        self._client_id = client_id
        self._client_secret = client_secret
        self._redirect_uri = redirect_uri
        self._client = client or AsyncWebClient()

    async def exchange(self, code: str) -> WorkspaceRecord:
        _log("[oauth] requesting token exchange from Slack...")
        try:
            resp = await self._client.oauth_v2_access(
                client_id=self._client_id,
                client_secret=self._client_secret,
                code=code,
                redirect_uri=self._redirect_uri or None,
            )
        except SlackApiError as e:
            raise OAuthRejected(e.response.get("error", str(e))) from e

        if not resp.get("ok"):
            raise OAuthRejected(resp.get("error", "unknown_error"))

        team = resp.get("team") or {}
        token = resp.get("access_token", "")
        _log(f"[oauth] token issued for team {team.get('id')} ({team.get('name')})")
        return WorkspaceRecord(
            team_id=str(team.get("id", "")),
            team_name=str(team.get("name", "")),
            access_token=token,
            bot_user_id=str(resp.get("bot_user_id", "")),
            installed_at=datetime.now(timezone.utc),
        )
