"""AutoPostOrchestrator — meme posting logic, no framework dependencies.

Three entry points share one object:
- handle_mention: a user asked for a meme
- enroll: a user enrolled a channel for auto-posting
- run_cycle: the schedule fired; scan every destination and post

Every external call (fetch, generate, post) is isolated per destination or
per request. Failures are logged and never retried.
"""

import asyncio
import sys
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Optional, Sequence, Set, Tuple

from memecast.domain.engagement import select_most_engaging
from memecast.domain.errors import EmptyInput, ExternalCallFailure, NoCandidateFound
from memecast.domain.models import (
    CycleReport,
    Destination,
    DestinationOutcome,
    GenerationResult,
    OUTCOME_ERROR,
    OUTCOME_FETCH_FAILED,
    OUTCOME_GENERATION_FAILED,
    OUTCOME_IN_FLIGHT,
    OUTCOME_NO_CANDIDATE,
    OUTCOME_POST_FAILED,
    OUTCOME_POSTED,
    PostingOutcome,
)
from memecast.domain.prompts import (
    AUTO_POST_GENERIC_TEXT,
    EMPTY_PROMPT_TEXT,
    FAILURE_TEXT,
    GENERATING_TEXT,
    RESULT_TEXT,
    announcement_text,
    build_prompt,
)
from memecast.domain.schedule import CycleSchedule, is_due
from memecast.ports.inbound import IncomingMessage
from memecast.ports.outbound import ChatPort, DestinationRegistryPort, GeneratorPort


def _log(msg: str):
    print(msg, file=sys.stderr)


@dataclass
class OrchestratorSettings:
    prompt_template: str = "Based on: {text}"
    fallback_prompt: str = ""  # empty disables the context-free fallback meme
    history_limit: int = 50
    tick_seconds: float = 30.0


class AutoPostOrchestrator:
    """Selects, generates and posts memes through injected ports."""

    def __init__(
        self,
        registry: DestinationRegistryPort,
        generator: GeneratorPort,
        chat: Optional[ChatPort] = None,
        settings: Optional[OrchestratorSettings] = None,
        name: str = "memecast",
    ):
        self.name = name
        self._registry = registry
        self._generator = generator
        self._chat = chat
        self.settings = settings or OrchestratorSettings()
        self._in_flight: Set[Tuple[str, str]] = set()
        self._cycle_tasks: set = set()
        self._schedule_task: Optional[asyncio.Task] = None
        self.last_cycle_at: Optional[datetime] = None
        self.last_report: Optional[CycleReport] = None

    @property
    def registry(self) -> DestinationRegistryPort:
        return self._registry

    @property
    def chat(self) -> Optional[ChatPort]:
        return self._chat

    def wire(self, chat: ChatPort):
        """Attach the chat port once the platform connection is up."""
        self._chat = chat

    # -- Enrollment --

    async def enroll(self, owner_id: str, channel_id: str) -> bool:
        """Enroll a channel. Raises ConfigurationError when an id is missing."""
        added = await self._registry.enroll(owner_id, channel_id)
        if added:
            _log(f"[{self.name}] enrolled channel {channel_id} (owner={owner_id})")
        else:
            _log(f"[{self.name}] channel {channel_id} already enrolled (owner={owner_id})")
        return added

    # -- Generation --

    async def _generate(self, prompt: str) -> GenerationResult:
        _log(f"[{self.name}] requesting meme for prompt: {prompt[:80]!r}")
        try:
            result = await self._generator.generate(prompt)
        except Exception as e:
            raise ExternalCallFailure("generate", str(e)) from e
        if not result.succeeded:
            raise ExternalCallFailure("generate", result.error or f"status={result.status}, no result url")
        _log(f"[{self.name}] meme ready: {result.result_url}")
        return result

    # -- Interactive path --

    async def handle_mention(self, message: IncomingMessage, extracted_prompt: str) -> PostingOutcome:
        """Generate a meme for a mention and post it where the mention happened."""
        destination = Destination(owner_id=message.owner_id, channel_id=message.channel_id)
        prompt = (extracted_prompt or "").strip()

        if message.is_bot or not message.is_mention:
            _log(f"[{self.name}] ignoring {message.author_id}: bot={message.is_bot} mention={message.is_mention}")
            return PostingOutcome(status="rejected")

        if not prompt:
            _log(f"[{self.name}] empty prompt from {message.author_id}, rejecting")
            error = EmptyInput("mention carried no prompt text")
            if self._chat:
                try:
                    await self._chat.post_message(destination, EMPTY_PROMPT_TEXT.format(author=message.author_id))
                except Exception as e:
                    _log(f"[{self.name}] could not send empty-prompt notice: {e}")
            return PostingOutcome(status="rejected", error=error)

        if not self._chat:
            _log(f"[{self.name}] mention ignored: no chat port wired")
            return PostingOutcome(status="failed", error=ExternalCallFailure("post", "chat port not wired"))

        try:
            placeholder = await self._chat.post_message(
                destination, GENERATING_TEXT.format(author=message.author_id),
            )
        except Exception as e:
            failure = ExternalCallFailure("post placeholder", str(e))
            _log(f"[{self.name}] {failure}")
            return PostingOutcome(status="failed", error=failure)

        try:
            result = await self._generate(prompt)
        except ExternalCallFailure as failure:
            _log(f"[{self.name}] {failure}")
            try:
                await self._chat.update_message(placeholder, FAILURE_TEXT)
            except Exception as e:
                _log(f"[{self.name}] could not update placeholder: {e}")
            return PostingOutcome(status="failed", message_ref=placeholder, error=failure)

        try:
            ref = await self._chat.replace_placeholder(
                placeholder, RESULT_TEXT.format(author=message.author_id), result.result_url,
            )
        except Exception as e:
            failure = ExternalCallFailure("post result", str(e))
            _log(f"[{self.name}] {failure}")
            return PostingOutcome(status="failed", message_ref=placeholder, error=failure)

        _log(f"[{self.name}] meme posted for {message.author_id} in {message.channel_id}")
        return PostingOutcome(status="posted", message_ref=ref)

    # -- Scheduled path --

    async def run_cycle(self, destinations: Optional[Sequence[Destination]] = None) -> CycleReport:
        """Run one auto-post pass across destinations (default: every enrolled one)."""
        report = CycleReport(started_at=datetime.now(timezone.utc))
        if destinations is None:
            try:
                destinations = await self._registry.all_destinations()
            except Exception as e:
                _log(f"[{self.name}] cycle aborted, could not list destinations: {e}")
                report.finished_at = datetime.now(timezone.utc)
                return report

        _log(f"[{self.name}] cycle start: {len(destinations)} destination(s)")
        for destination in destinations:
            if destination.key in self._in_flight:
                _log(f"[{self.name}] {destination.channel_id} still in flight, skipping")
                report.outcomes.append(DestinationOutcome(destination, OUTCOME_IN_FLIGHT))
                continue
            self._in_flight.add(destination.key)
            try:
                outcome = await self._process_destination(destination)
            except Exception as e:
                _log(f"[{self.name}] {destination.channel_id} unexpected error: {e}")
                outcome = DestinationOutcome(destination, OUTCOME_ERROR, str(e))
            finally:
                self._in_flight.discard(destination.key)
            report.outcomes.append(outcome)

        report.finished_at = datetime.now(timezone.utc)
        self.last_report = report
        _log(f"[{self.name}] cycle done: {report.counts()}")
        return report

    async def _process_destination(self, destination: Destination) -> DestinationOutcome:
        if not self._chat:
            return DestinationOutcome(destination, OUTCOME_FETCH_FAILED, "chat port not wired")

        try:
            messages = await self._chat.fetch_recent_messages(destination, limit=self.settings.history_limit)
        except Exception as e:
            failure = ExternalCallFailure("fetch", str(e))
            _log(f"[{self.name}] {destination.channel_id}: {failure}")
            return DestinationOutcome(destination, OUTCOME_FETCH_FAILED, str(failure))

        pick = select_most_engaging(messages)
        # A zero-score pick has no text to build a prompt from
        if pick is None or not pick.message.text.strip():
            if not self.settings.fallback_prompt:
                skip = NoCandidateFound(f"no human message with text in {destination.channel_id}")
                _log(f"[{self.name}] {skip}")
                return DestinationOutcome(destination, OUTCOME_NO_CANDIDATE, str(skip))
            prompt, text = self.settings.fallback_prompt, AUTO_POST_GENERIC_TEXT
        else:
            prompt = build_prompt(pick.message, self.settings.prompt_template)
            text = announcement_text(pick.message)

        try:
            result = await self._generate(prompt)
        except ExternalCallFailure as failure:
            _log(f"[{self.name}] {destination.channel_id}: {failure}")
            return DestinationOutcome(destination, OUTCOME_GENERATION_FAILED, str(failure))

        try:
            await self._chat.post_message(destination, text, image_url=result.result_url)
        except Exception as e:
            failure = ExternalCallFailure("post", str(e))
            _log(f"[{self.name}] {destination.channel_id}: {failure}")
            return DestinationOutcome(destination, OUTCOME_POST_FAILED, str(failure))

        _log(f"[{self.name}] auto meme posted to {destination.channel_id}")
        return DestinationOutcome(destination, OUTCOME_POSTED, result.result_url or "")

    # -- Schedule loop --

    def start_schedule_loop(self, schedule: CycleSchedule, is_closed: Optional[Callable[[], bool]] = None):
        """Start the recurring cycle trigger (no-op if already running)."""
        if not self._schedule_task or self._schedule_task.done():
            self._schedule_task = asyncio.create_task(self._schedule_loop(schedule, is_closed))

    async def stop_schedule_loop(self):
        if self._schedule_task and not self._schedule_task.done():
            self._schedule_task.cancel()
            try:
                await self._schedule_task
            except asyncio.CancelledError:
                pass
        self._schedule_task = None

        pending = [t for t in self._cycle_tasks if not t.done()]
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
            _log(f"[{self.name}] cancelled {len(pending)} running cycle(s)")
        self._cycle_tasks.clear()

    async def _schedule_loop(self, schedule: CycleSchedule, is_closed: Optional[Callable[[], bool]] = None):
        _log(f"[{self.name}] schedule loop started ({schedule.describe()})")
        is_closed = is_closed or (lambda: False)
        # Interval schedules wait one full interval before the first cycle
        if schedule.schedule_type == "interval" and self.last_cycle_at is None:
            self.last_cycle_at = datetime.now(timezone.utc)
        while not is_closed():
            await asyncio.sleep(self.settings.tick_seconds)
            try:
                now = datetime.now(timezone.utc)
                if not is_due(schedule, now, self.last_cycle_at):
                    continue
                self.last_cycle_at = now
                task = asyncio.create_task(self.run_cycle())
                self._cycle_tasks.add(task)
                task.add_done_callback(self._cycle_tasks.discard)
            except Exception as e:
                _log(f"[{self.name}] schedule loop error: {e}")
