"""In-memory repository adapters.

Async implementations of the repository protocols over an
``InMemoryStore``. They enforce the same uniqueness rules a database schema
would and raise ``DuplicateRecordError`` / ``RepositoryError`` accordingly.
"""

from __future__ import annotations

from src.adapters.memory_store import InMemoryStore
from src.domain.exceptions import DuplicateRecordError, RepositoryError
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
    SightingStatus,
    Signal,
    SignalId,
    SuggestionStatus,
    UserId,
    UserReputation,
)

_COUNT_FIELDS: dict[ReactionType, str] = {
    ReactionType.UPVOTE: "upvotes",
    ReactionType.DOWNVOTE: "downvotes",
    ReactionType.CONFIRMED: "confirmations",
    ReactionType.DISPUTED: "disputes",
    ReactionType.SPAM: "spam_reports",
}


class InMemorySightingRepository:
    """Sightings keyed by id."""

    def __init__(self, store: InMemoryStore) -> None:
        self._store = store

    async def get_by_id(self, sighting_id: SightingId) -> Sighting | None:
        return self._store.sightings.get(sighting_id)

    async def create(self, sighting: Sighting) -> None:
        if sighting.id in self._store.sightings:
            raise DuplicateRecordError("sighting", sighting.id)
        self._store.sightings[sighting.id] = sighting

    async def update(self, sighting: Sighting) -> None:
        if sighting.id not in self._store.sightings:
            raise RepositoryError(f"Sighting not found: {sighting.id}")
        self._store.sightings[sighting.id] = sighting

    async def list_active(self, limit: int) -> list[Sighting]:
        active = [
            sighting
            for sighting in self._store.sightings.values()
            if sighting.status == SightingStatus.ACTIVE
        ]
        active.sort(key=lambda sighting: sighting.created_at, reverse=True)
        return active[:limit]


class InMemoryReactionRepository:
    """Reaction ledger keyed by (sighting, user, type)."""

    def __init__(self, store: InMemoryStore) -> None:
        self._store = store

    async def add(self, reaction: SightingReaction) -> None:
        key = (reaction.sighting_id, reaction.user_id, reaction.type)
        if key in self._store.reactions:
            raise DuplicateRecordError(
                "reaction",
                f"{reaction.sighting_id}/{reaction.user_id}/{reaction.type.value}",
            )
        self._store.reactions[key] = reaction

    async def remove(
        self, sighting_id: SightingId, user_id: UserId, reaction_type: ReactionType
    ) -> bool:
        return self._store.reactions.pop((sighting_id, user_id, reaction_type), None) is not None

    async def get_user_reaction(
        self,
        sighting_id: SightingId,
        user_id: UserId,
        reaction_type: ReactionType | None = None,
    ) -> SightingReaction | None:
        if reaction_type is not None:
            return self._store.reactions.get((sighting_id, user_id, reaction_type))
        for reaction in self._store.reactions.values():
            if reaction.sighting_id == sighting_id and reaction.user_id == user_id:
                return reaction
        return None

    async def get_counts(self, sighting_id: SightingId) -> ReactionCounts:
        tallies = dict.fromkeys(_COUNT_FIELDS.values(), 0)
        for reaction in self._store.reactions.values():
            if reaction.sighting_id == sighting_id:
                tallies[_COUNT_FIELDS[reaction.type]] += 1
        return ReactionCounts(**tallies)

    async def get_reactions_for_sighting(
        self, sighting_id: SightingId
    ) -> list[SightingReaction]:
        return [
            reaction
            for reaction in self._store.reactions.values()
            if reaction.sighting_id == sighting_id
        ]


class InMemoryReputationRepository:
    """Reputation records plus the append-only event log."""

    def __init__(self, store: InMemoryStore) -> None:
        self._store = store

    async def get_by_user_id(self, user_id: UserId) -> UserReputation | None:
        return self._store.reputations.get(user_id)

    async def create(self, reputation: UserReputation) -> None:
        if reputation.user_id in self._store.reputations:
            raise DuplicateRecordError("reputation", reputation.user_id)
        self._store.reputations[reputation.user_id] = reputation

    async def update(self, reputation: UserReputation) -> None:
        if reputation.user_id not in self._store.reputations:
            raise RepositoryError(f"Reputation not found: {reputation.user_id}")
        self._store.reputations[reputation.user_id] = reputation

    async def add_event(self, event: ReputationEvent) -> None:
        if any(existing.id == event.id for existing in self._store.reputation_events):
            raise DuplicateRecordError("reputation_event", event.id)
        self._store.reputation_events.append(event)

    async def get_events(self, user_id: UserId, limit: int) -> list[ReputationEvent]:
        events = [
            event for event in self._store.reputation_events if event.user_id == user_id
        ]
        # stable sort keeps append order for equal timestamps; newest first
        events.reverse()
        events.sort(key=lambda event: event.created_at, reverse=True)
        return events[:limit]

    async def get_top_users(self, limit: int) -> list[UserReputation]:
        ranked = sorted(
            self._store.reputations.values(),
            key=lambda reputation: (-reputation.score, reputation.created_at),
        )
        return ranked[:limit]


class InMemorySignalRepository:
    def __init__(self, store: InMemoryStore) -> None:
        self._store = store

    async def list(self, is_active: bool | None = None) -> list[Signal]:
        signals = list(self._store.signals.values())
        if is_active is None:
            return signals
        return [signal for signal in signals if signal.is_active == is_active]

    async def get_by_id(self, signal_id: SignalId) -> Signal | None:
        return self._store.signals.get(signal_id)

    async def save(self, signal: Signal) -> None:
        self._store.signals[signal.id] = signal


class InMemoryFlairRepository:
    def __init__(self, store: InMemoryStore) -> None:
        self._store = store

    async def get_by_id(self, flair_id: FlairId) -> Flair | None:
        return self._store.flairs.get(flair_id)

    async def get_active_flairs(self) -> list[Flair]:
        active = [flair for flair in self._store.flairs.values() if flair.is_active]
        return sorted(active, key=lambda flair: flair.display_order)

    async def save(self, flair: Flair) -> None:
        self._store.flairs[flair.id] = flair


class InMemorySightingFlairRepository:
    """Flair assignments, suggestions and the voter registry."""

    def __init__(self, store: InMemoryStore) -> None:
        self._store = store

    async def has_flair(self, sighting_id: SightingId, flair_id: FlairId) -> bool:
        return (sighting_id, flair_id) in self._store.sighting_flairs

    async def assign(self, sighting_flair: SightingFlair) -> None:
        key = (sighting_flair.sighting_id, sighting_flair.flair_id)
        if key in self._store.sighting_flairs:
            raise DuplicateRecordError(
                "sighting_flair", f"{sighting_flair.sighting_id}/{sighting_flair.flair_id}"
            )
        self._store.sighting_flairs[key] = sighting_flair

    async def remove(self, sighting_id: SightingId, flair_id: FlairId) -> bool:
        return self._store.sighting_flairs.pop((sighting_id, flair_id), None) is not None

    async def get_flairs_for_sighting(
        self, sighting_id: SightingId
    ) -> list[SightingFlair]:
        return [
            sighting_flair
            for (owner_id, _), sighting_flair in self._store.sighting_flairs.items()
            if owner_id == sighting_id
        ]

    async def create_suggestion(self, suggestion: FlairSuggestion) -> None:
        if suggestion.id in self._store.suggestions:
            raise DuplicateRecordError("flair_suggestion", suggestion.id)
        self._store.suggestions[suggestion.id] = suggestion

    async def get_suggestion(
        self, suggestion_id: FlairSuggestionId
    ) -> FlairSuggestion | None:
        return self._store.suggestions.get(suggestion_id)

    async def get_suggestions_for_sighting(
        self, sighting_id: SightingId
    ) -> list[FlairSuggestion]:
        return [
            suggestion
            for suggestion in self._store.suggestions.values()
            if suggestion.sighting_id == sighting_id
        ]

    async def get_user_suggestion(
        self, sighting_id: SightingId, flair_id: FlairId, user_id: UserId
    ) -> FlairSuggestion | None:
        for suggestion in self._store.suggestions.values():
            if (
                suggestion.sighting_id == sighting_id
                and suggestion.flair_id == flair_id
                and suggestion.suggested_by == user_id
            ):
                return suggestion
        return None

    async def update_suggestion_votes(
        self, suggestion_id: FlairSuggestionId, vote_count: int
    ) -> None:
        suggestion = self._require_suggestion(suggestion_id)
        self._store.suggestions[suggestion_id] = suggestion.model_copy(
            update={"vote_count": vote_count}
        )

    async def update_suggestion_status(
        self, suggestion_id: FlairSuggestionId, status: SuggestionStatus
    ) -> None:
        suggestion = self._require_suggestion(suggestion_id)
        self._store.suggestions[suggestion_id] = suggestion.model_copy(
            update={"status": status}
        )

    async def has_voted(
        self, suggestion_id: FlairSuggestionId, user_id: UserId
    ) -> bool:
        return (suggestion_id, user_id) in self._store.suggestion_votes

    async def record_vote(
        self, suggestion_id: FlairSuggestionId, user_id: UserId
    ) -> None:
        key = (suggestion_id, user_id)
        if key in self._store.suggestion_votes:
            raise DuplicateRecordError("flair_vote", f"{suggestion_id}/{user_id}")
        self._store.suggestion_votes.add(key)

    def _require_suggestion(self, suggestion_id: FlairSuggestionId) -> FlairSuggestion:
        suggestion = self._store.suggestions.get(suggestion_id)
        if suggestion is None:
            raise RepositoryError(f"Flair suggestion not found: {suggestion_id}")
        return suggestion
