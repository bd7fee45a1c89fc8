"""Engagement ranking — picks the chat message most worth a meme.

score = total reaction count + text length / 10

Bot-authored messages are never candidates. When nothing scores above zero
the first human message in scan order is used instead, so a quiet channel
still gets a post.
"""

from typing import Optional, Sequence

from memecast.domain.models import ChannelMessage, EngagementPick


def engagement_score(message: ChannelMessage) -> float:
    return message.reaction_total + len(message.text or "") / 10


def select_most_engaging(messages: Sequence[ChannelMessage]) -> Optional[EngagementPick]:
    """Return the highest-scoring human message, a fallback pick, or None.

    Ties keep the message seen first, so the caller's ordering decides.
    None means every message was bot-authored (or there were none).
    """
    candidates = [m for m in messages if not m.is_bot]
    if not candidates:
        return None

    best: Optional[ChannelMessage] = None
    best_score = 0.0
    for message in candidates:
        score = engagement_score(message)
        if score > best_score:
            best, best_score = message, score

    if best is None:
        first = candidates[0]
        return EngagementPick(message=first, score=engagement_score(first), is_fallback=True)
    return EngagementPick(message=best, score=best_score)
