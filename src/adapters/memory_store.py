"""Explicit in-memory state shared by the in-memory repositories.

One ``InMemoryStore`` instance is the whole database of a process (or of a
test). Nothing in the engine holds module-level state; callers create a
store and pass it to ``create_repositories``.
"""

from dataclasses import dataclass, field

from src.config.logging_config import get_logger
from src.domain.models import (
    Flair,
    FlairId,
    FlairSuggestion,
    FlairSuggestionId,
    ReactionType,
    ReputationEvent,
    Sighting,
    SightingFlair,
    SightingId,
    SightingReaction,
    Signal,
    SignalId,
    UserId,
    UserReputation,
)

logger = get_logger(__name__)

ReactionKey = tuple[SightingId, UserId, ReactionType]
SightingFlairKey = tuple[SightingId, FlairId]
VoteKey = tuple[FlairSuggestionId, UserId]


@dataclass
class InMemoryStore:
    """Dict-backed tables. Insertion order doubles as creation order."""

    sightings: dict[SightingId, Sighting] = field(default_factory=dict)
    reactions: dict[ReactionKey, SightingReaction] = field(default_factory=dict)
    reputations: dict[UserId, UserReputation] = field(default_factory=dict)
    reputation_events: list[ReputationEvent] = field(default_factory=list)
    signals: dict[SignalId, Signal] = field(default_factory=dict)
    flairs: dict[FlairId, Flair] = field(default_factory=dict)
    sighting_flairs: dict[SightingFlairKey, SightingFlair] = field(default_factory=dict)
    suggestions: dict[FlairSuggestionId, FlairSuggestion] = field(default_factory=dict)
    suggestion_votes: set[VoteKey] = field(default_factory=set)

    def clear(self) -> None:
        """Drop every record."""
        self.sightings.clear()
        self.reactions.clear()
        self.reputations.clear()
        self.reputation_events.clear()
        self.signals.clear()
        self.flairs.clear()
        self.sighting_flairs.clear()
        self.suggestions.clear()
        self.suggestion_votes.clear()
        logger.debug("memory_store_cleared")
