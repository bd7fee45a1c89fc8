"""Domain layer — pure Python, no framework dependencies."""

from memecast.domain.engagement import engagement_score, select_most_engaging
from memecast.domain.errors import (
    ConfigurationError,
    EmptyInput,
    ExternalCallFailure,
    MemecastError,
    NoCandidateFound,
)
from memecast.domain.models import (
    ChannelMessage,
    CycleReport,
    Destination,
    DestinationOutcome,
    EngagementPick,
    GenerationResult,
    MessageRef,
    PostingOutcome,
    Reaction,
    WorkspaceRecord,
)
from memecast.domain.prompts import build_prompt, extract_prompt
from memecast.domain.schedule import CycleSchedule, parse_schedule

__all__ = [
    "engagement_score",
    "select_most_engaging",
    "ConfigurationError",
    "EmptyInput",
    "ExternalCallFailure",
    "MemecastError",
    "NoCandidateFound",
    "ChannelMessage",
    "CycleReport",
    "Destination",
    "DestinationOutcome",
    "EngagementPick",
    "GenerationResult",
    "MessageRef",
    "PostingOutcome",
    "Reaction",
    "WorkspaceRecord",
    "build_prompt",
    "extract_prompt",
    "CycleSchedule",
    "parse_schedule",
]
