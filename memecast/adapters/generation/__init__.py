"""Generation service adapters."""

from memecast.adapters.generation.magic_hour import MagicHourClient, PollPolicy

__all__ = ["MagicHourClient", "PollPolicy"]
