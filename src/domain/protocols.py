"""Protocol definitions for dependency inversion.

These abstract interfaces define the repository contracts the engine reads
and writes through. All methods are coroutines; implementations raise
``RepositoryError`` (or a subclass) on storage failures and the engine lets
those propagate.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from src.domain.models import (
    Flair,
    FlairId,
    FlairSuggestion,
    FlairSuggestionId,
    ReactionCounts,
    ReactionType,
    ReputationEvent,
    Sighting,
    SightingFlair,
    SightingId,
    SightingReaction,
    Signal,
    SignalId,
    SuggestionStatus,
    UserId,
    UserReputation,
)


class SightingRepositoryProtocol(Protocol):
    """Protocol for sighting storage."""

    async def get_by_id(self, sighting_id: SightingId) -> Sighting | None:
        """Get a sighting by id.

        Args:
            sighting_id: Sighting identifier

        Returns:
            The sighting, or None if unknown
        """
        ...

    async def create(self, sighting: Sighting) -> None:
        """Store a new sighting.

        Raises:
            DuplicateRecordError: If the id is already taken
        """
        ...

    async def update(self, sighting: Sighting) -> None:
        """Replace a stored sighting in one write.

        Callers pass the full recomputed sighting so counters and scores are
        never observable half-updated.

        Raises:
            RepositoryError: If the sighting does not exist or on storage errors
        """
        ...

    async def list_active(self, limit: int) -> list[Sighting]:
        """List active sightings, newest first.

        Args:
            limit: Maximum sightings to return
        """
        ...


class ReactionRepositoryProtocol(Protocol):
    """Protocol for the reaction ledger."""

    async def add(self, reaction: SightingReaction) -> None:
        """Store a reaction.

        Raises:
            DuplicateRecordError: If (sighting, user, type) already exists
        """
        ...

    async def remove(
        self, sighting_id: SightingId, user_id: UserId, reaction_type: ReactionType
    ) -> bool:
        """Delete a reaction.

        Returns:
            True if a reaction was deleted, False if none existed
        """
        ...

    async def get_user_reaction(
        self,
        sighting_id: SightingId,
        user_id: UserId,
        reaction_type: ReactionType | None = None,
    ) -> SightingReaction | None:
        """Get a user's reaction on a sighting.

        Args:
            sighting_id: Sighting identifier
            user_id: Reacting user
            reaction_type: Restrict to this type; None returns any type

        Returns:
            The reaction, or None
        """
        ...

    async def get_counts(self, sighting_id: SightingId) -> ReactionCounts:
        """Aggregate counts per reaction type (zeros for unknown sightings)."""
        ...

    async def get_reactions_for_sighting(
        self, sighting_id: SightingId
    ) -> list[SightingReaction]:
        """All reactions on a sighting, oldest first."""
        ...


class ReputationRepositoryProtocol(Protocol):
    """Protocol for user reputation and its event log."""

    async def get_by_user_id(self, user_id: UserId) -> UserReputation | None:
        """Get a user's reputation, or None if no event was ever recorded."""
        ...

    async def create(self, reputation: UserReputation) -> None:
        """Store a new reputation record.

        Raises:
            DuplicateRecordError: If the user already has one
        """
        ...

    async def update(self, reputation: UserReputation) -> None:
        """Replace a user's reputation record."""
        ...

    async def add_event(self, event: ReputationEvent) -> None:
        """Append an event to the log. Events are never updated or deleted."""
        ...

    async def get_events(self, user_id: UserId, limit: int) -> list[ReputationEvent]:
        """Most recent events for a user, newest first."""
        ...

    async def get_top_users(self, limit: int) -> list[UserReputation]:
        """Highest scores first; ties go to the earliest record."""
        ...


class SignalRepositoryProtocol(Protocol):
    """Protocol for saved signals (read-only to the engine apart from seeding)."""

    async def list(self, is_active: bool | None = None) -> list[Signal]:
        """List signals, optionally filtered by active flag, oldest first."""
        ...

    async def get_by_id(self, signal_id: SignalId) -> Signal | None:
        """Get a signal by id."""
        ...

    async def save(self, signal: Signal) -> None:
        """Insert or replace a signal."""
        ...


class FlairRepositoryProtocol(Protocol):
    """Protocol for the flair taxonomy."""

    async def get_by_id(self, flair_id: FlairId) -> Flair | None:
        """Get a flair by id."""
        ...

    async def get_active_flairs(self) -> list[Flair]:
        """Active flairs sorted by display order."""
        ...

    async def save(self, flair: Flair) -> None:
        """Insert or replace a flair."""
        ...


class SightingFlairRepositoryProtocol(Protocol):
    """Protocol for flair assignments, suggestions and votes."""

    async def has_flair(self, sighting_id: SightingId, flair_id: FlairId) -> bool:
        """True if the flair is attached to the sighting."""
        ...

    async def assign(self, sighting_flair: SightingFlair) -> None:
        """Attach a flair.

        Raises:
            DuplicateRecordError: If the flair is already attached
        """
        ...

    async def remove(self, sighting_id: SightingId, flair_id: FlairId) -> bool:
        """Detach a flair. Returns False if it was not attached."""
        ...

    async def get_flairs_for_sighting(
        self, sighting_id: SightingId
    ) -> list[SightingFlair]:
        """All flair assignments on a sighting."""
        ...

    async def create_suggestion(self, suggestion: FlairSuggestion) -> None:
        """Store a new suggestion."""
        ...

    async def get_suggestion(
        self, suggestion_id: FlairSuggestionId
    ) -> FlairSuggestion | None:
        """Get a suggestion by id."""
        ...

    async def get_suggestions_for_sighting(
        self, sighting_id: SightingId
    ) -> list[FlairSuggestion]:
        """All suggestions on a sighting, oldest first."""
        ...

    async def get_user_suggestion(
        self, sighting_id: SightingId, flair_id: FlairId, user_id: UserId
    ) -> FlairSuggestion | None:
        """The suggestion a user made for this (sighting, flair), if any."""
        ...

    async def update_suggestion_votes(
        self, suggestion_id: FlairSuggestionId, vote_count: int
    ) -> None:
        """Overwrite the vote count of a suggestion."""
        ...

    async def update_suggestion_status(
        self, suggestion_id: FlairSuggestionId, status: SuggestionStatus
    ) -> None:
        """Overwrite the status of a suggestion."""
        ...

    async def has_voted(
        self, suggestion_id: FlairSuggestionId, user_id: UserId
    ) -> bool:
        """True if the user already voted on the suggestion."""
        ...

    async def record_vote(
        self, suggestion_id: FlairSuggestionId, user_id: UserId
    ) -> None:
        """Remember that a user voted.

        Raises:
            DuplicateRecordError: If the user already voted
        """
        ...


@dataclass(frozen=True)
class RepositoryBundle:
    """The repositories a use case may need, injected together."""

    sightings: SightingRepositoryProtocol
    reactions: ReactionRepositoryProtocol
    reputation: ReputationRepositoryProtocol
    signals: SignalRepositoryProtocol
    flairs: FlairRepositoryProtocol
    sighting_flairs: SightingFlairRepositoryProtocol
