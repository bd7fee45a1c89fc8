"""Magic Hour meme generator client using aiohttp."""

import asyncio
import sys
from dataclasses import dataclass
from typing import Optional

import aiohttp

from memecast.config import CONFIG
from memecast.domain.models import (
    GENERATION_COMPLETE,
    GENERATION_ERROR,
    GENERATION_PENDING,
    GenerationResult,
)

MAGIC_HOUR_API_BASE = "https://api.magichour.ai/v1"

_ERROR_STATUSES = {"error", "canceled"}


def _log(msg: str):
    print(msg, file=sys.stderr)


@dataclass
class PollPolicy:
    """Bounded polling for job completion: max_attempts checks, interval seconds apart."""

    max_attempts: int = 20
    interval: float = 3.0


class MagicHourClient:
    """Async Magic Hour client (2-step: create project → poll until terminal)."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        template: Optional[str] = None,
        search_web: bool = False,
        poll: Optional[PollPolicy] = None,
        project_name: str = "Chat Meme Generation",
    ):
        self._api_key = api_key if api_key is not None else CONFIG["mh_api_key"]
        self._template = template or CONFIG["mh_meme_template"]
        self._search_web = search_web
        self.poll = poll or PollPolicy(
            max_attempts=CONFIG["mh_poll_attempts"],
            interval=CONFIG["mh_poll_interval"],
        )
        self._project_name = project_name

    @property
    def is_configured(self) -> bool:
        return bool(self._api_key)

    def _headers(self) -> dict:
        return {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
        }

    @staticmethod
    def _error_message(data: dict, status: int) -> str:
        message = data.get("message") or data.get("error")
        if isinstance(message, dict):
            message = message.get("message")
        return str(message or f"HTTP {status}: {data}")

    async def create(self, prompt: str) -> str:
        """Submit a meme project and return its id."""
        payload = {
            "name": self._project_name,
            "style": {
                "topic": prompt,
                "template": self._template,
                "searchWeb": self._search_web,
            },
        }
        async with aiohttp.ClientSession() as session:
            async with session.post(
                f"{MAGIC_HOUR_API_BASE}/ai-meme-generator",
                json=payload,
                headers=self._headers(),
            ) as resp:
                data = await resp.json()
                if resp.status >= 400 or "id" not in data:
                    raise RuntimeError(self._error_message(data, resp.status))
                return data["id"]

    async def get_status(self, job_id: str) -> GenerationResult:
        """Fetch one project status and map it to pending / complete / error."""
        async with aiohttp.ClientSession() as session:
            async with session.get(
                f"{MAGIC_HOUR_API_BASE}/image-projects/{job_id}",
                headers=self._headers(),
            ) as resp:
                data = await resp.json()
                if resp.status >= 400:
                    raise RuntimeError(self._error_message(data, resp.status))

        status = str(data.get("status", "")).lower()
        if status == GENERATION_COMPLETE:
            downloads = data.get("downloads") or []
            url = downloads[0].get("url") if downloads else None
            if not url:
                return GenerationResult(status=GENERATION_ERROR, job_id=job_id,
                                        error="No meme URL returned from Magic Hour")
            return GenerationResult(status=GENERATION_COMPLETE, result_url=url, job_id=job_id)
        if status in _ERROR_STATUSES:
            error = data.get("error") or {}
            detail = error.get("message") if isinstance(error, dict) else str(error)
            return GenerationResult(status=GENERATION_ERROR, job_id=job_id,
                                    error=detail or f"project {status}")
        return GenerationResult(status=GENERATION_PENDING, job_id=job_id)

    async def generate(self, prompt: str) -> GenerationResult:
        """Create a project and wait for it under the poll policy. Never raises."""
        if not self.is_configured:
            return GenerationResult(status=GENERATION_ERROR, error="Magic Hour API key not configured")
        job_id = None
        try:
            job_id = await self.create(prompt)
            _log(f"[MagicHour] project {job_id} created")
            for _ in range(self.poll.max_attempts):
                await asyncio.sleep(self.poll.interval)
                result = await self.get_status(job_id)
                if result.status != GENERATION_PENDING:
                    return result
            return GenerationResult(
                status=GENERATION_ERROR, job_id=job_id,
                error=f"not complete after {self.poll.max_attempts} checks",
            )
        except Exception as e:
            _log(f"[MagicHour] generation failed: {e}")
            return GenerationResult(status=GENERATION_ERROR, job_id=job_id, error=str(e))
