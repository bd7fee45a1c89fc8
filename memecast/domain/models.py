"""Domain data models — pure Python dataclasses."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional, Tuple

GENERATION_PENDING = "pending"
GENERATION_COMPLETE = "complete"
GENERATION_ERROR = "error"

OUTCOME_POSTED = "posted"
OUTCOME_NO_CANDIDATE = "no_candidate"
OUTCOME_FETCH_FAILED = "fetch_failed"
OUTCOME_GENERATION_FAILED = "generation_failed"
OUTCOME_POST_FAILED = "post_failed"
OUTCOME_IN_FLIGHT = "in_flight"
OUTCOME_ERROR = "error"


@dataclass
class Reaction:
    emoji: str
    count: int = 1


@dataclass
class ChannelMessage:
    """A chat message as seen by the engagement scan."""

    message_id: str
    author_id: str
    is_bot: bool
    text: str = ""
    reactions: List[Reaction] = field(default_factory=list)

    @property
    def reaction_total(self) -> int:
        return sum(r.count for r in self.reactions)


@dataclass
class Destination:
    """A channel enrolled for auto-posting, scoped to a guild or workspace."""

    owner_id: str
    channel_id: str
    access_token: Optional[str] = None

    @property
    def key(self) -> Tuple[str, str]:
        return (self.owner_id, self.channel_id)


@dataclass
class WorkspaceRecord:
    """Installed workspace, persisted keyed by team_id."""

    team_id: str
    team_name: str
    access_token: str
    bot_user_id: str = ""
    installed_at: Optional[datetime] = None
    channels: List[str] = field(default_factory=list)


@dataclass
class GenerationResult:
    status: str  # "pending" | "complete" | "error"
    result_url: Optional[str] = None
    job_id: Optional[str] = None
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.status == GENERATION_COMPLETE and bool(self.result_url)


@dataclass
class MessageRef:
    destination: Destination
    message_id: str


@dataclass
class EngagementPick:
    message: ChannelMessage
    score: float
    is_fallback: bool = False


@dataclass
class DestinationOutcome:
    destination: Destination
    status: str
    detail: str = ""


@dataclass
class CycleReport:
    started_at: datetime
    finished_at: Optional[datetime] = None
    outcomes: List[DestinationOutcome] = field(default_factory=list)

    def counts(self) -> Dict[str, int]:
        totals: Dict[str, int] = {}
        for outcome in self.outcomes:
            totals[outcome.status] = totals.get(outcome.status, 0) + 1
        return totals

    @property
    def posted(self) -> int:
        return self.counts().get(OUTCOME_POSTED, 0)


@dataclass
class PostingOutcome:
    status: str  # "posted" | "rejected" | "failed"
    message_ref: Optional[MessageRef] = None
    error: Optional[Exception] = None
