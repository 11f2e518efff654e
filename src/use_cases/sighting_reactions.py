"""Sighting reaction use cases.

Records reactions, recomputes the sighting's counters and scores in one
write, and credits the reporter's reputation.
"""

from datetime import datetime

from src.config.logging_config import get_logger
from src.domain.exceptions import DuplicateRecordError
from src.domain.models import (
    ReactionCounts,
    ReactionType,
    ReputationReason,
    Sighting,
    SightingId,
    SightingReaction,
    TriggerType,
    UserId,
    utc_now,
)
from src.domain.protocols import RepositoryBundle
from src.domain.result import Ok, Result, err
from src.observability.metrics import REACTIONS_TOTAL, observe_duration
from src.observability.tracing import operation_scope
from src.services.scoring_engine import recalculate_sighting
from src.use_cases.reputation_events import add_reputation_event_use_case

logger = get_logger(__name__)

REPORTER_REPUTATION_REASONS: dict[ReactionType, ReputationReason] = {
    ReactionType.UPVOTE: ReputationReason.SIGHTING_UPVOTED,
    ReactionType.CONFIRMED: ReputationReason.SIGHTING_CONFIRMED,
    ReactionType.DISPUTED: ReputationReason.SIGHTING_DISPUTED,
}
"""Reaction types that move the reporter's reputation."""

_REACTION_TRIGGERS: dict[ReactionType, TriggerType] = {
    ReactionType.CONFIRMED: TriggerType.SIGHTING_CONFIRMED,
    ReactionType.DISPUTED: TriggerType.SIGHTING_DISPUTED,
}


def trigger_type_for_reaction(reaction_type: ReactionType) -> TriggerType | None:
    """Signal trigger raised by a reaction, if any."""
    return _REACTION_TRIGGERS.get(reaction_type)


def _parse_reaction_type(value: ReactionType | str) -> ReactionType | None:
    try:
        return ReactionType(value)
    except ValueError:
        return None


async def _refresh_scores(
    repositories: RepositoryBundle, sighting: Sighting, now: datetime
) -> Sighting:
    counts = await repositories.reactions.get_counts(sighting.id)
    updated = recalculate_sighting(sighting, counts, now)
    await repositories.sightings.update(updated)
    return updated


async def add_sighting_reaction_use_case(
    repositories: RepositoryBundle,
    sighting_id: SightingId,
    user_id: UserId,
    reaction_type: ReactionType | str,
    *,
    now: datetime | None = None,
    correlation_id: str | None = None,
) -> Result[Sighting]:
    """Add a reaction and recompute the sighting's scores.

    1. Validate the reaction type
    2. Load the sighting; reporters cannot react to their own sighting
    3. Reject a second reaction of the same type by the same user
    4. Store the reaction, then write counters and scores together
    5. Credit the reporter (upvote, confirmed, disputed only)

    Args:
        repositories: Repository bundle
        sighting_id: Sighting being reacted to
        user_id: Reacting user
        reaction_type: One of upvote, downvote, confirmed, disputed, spam
        now: Reference time for the hot score (defaults to current time)
        correlation_id: Correlation id to bind into logs

    Returns:
        Ok with the updated sighting, or Err with reaction.invalid_type,
        sighting.not_found, reaction.cannot_react_to_own or
        reaction.already_exists
    """
    with (
        operation_scope("add_sighting_reaction", correlation_id) as bound_id,
        observe_duration("add_sighting_reaction"),
    ):
        parsed_type = _parse_reaction_type(reaction_type)
        if parsed_type is None:
            return err(
                "reaction.invalid_type",
                f"Unknown reaction type: {reaction_type}",
                field="reaction_type",
            )

        sighting = await repositories.sightings.get_by_id(sighting_id)
        if sighting is None:
            return err("sighting.not_found", "Sighting not found", field="sighting_id")

        if sighting.reporter_id is not None and sighting.reporter_id == user_id:
            return err(
                "reaction.cannot_react_to_own",
                "You cannot react to your own sighting",
                field="user_id",
            )

        existing = await repositories.reactions.get_user_reaction(
            sighting_id, user_id, parsed_type
        )
        if existing is not None:
            return err(
                "reaction.already_exists",
                "You have already reacted to this sighting",
                field="reaction_type",
            )

        current_time = now or utc_now()
        reaction = SightingReaction(
            sighting_id=sighting_id,
            user_id=user_id,
            type=parsed_type,
            created_at=current_time,
        )
        try:
            await repositories.reactions.add(reaction)
        except DuplicateRecordError:
            # lost a race with a concurrent identical reaction
            return err(
                "reaction.already_exists",
                "You have already reacted to this sighting",
                field="reaction_type",
            )

        updated = await _refresh_scores(repositories, sighting, current_time)
        REACTIONS_TOTAL.labels(action="add", type=parsed_type.value).inc()

        logger.info(
            "reaction_added",
            correlation_id=bound_id,
            sighting_id=sighting_id,
            user_id=user_id,
            reaction_type=parsed_type.value,
            score=updated.score,
            hot_score=updated.hot_score,
        )

        reason = REPORTER_REPUTATION_REASONS.get(parsed_type)
        if reason is not None and sighting.reporter_id:
            reputation_result = await add_reputation_event_use_case(
                repositories,
                sighting.reporter_id,
                reason,
                reference_id=sighting_id,
                now=current_time,
                correlation_id=bound_id,
            )
            if not reputation_result.ok:
                logger.warning(
                    "reporter_reputation_skipped",
                    sighting_id=sighting_id,
                    reporter_id=sighting.reporter_id,
                    error_code=reputation_result.error.code,
                )

        return Ok(updated)


async def remove_sighting_reaction_use_case(
    repositories: RepositoryBundle,
    sighting_id: SightingId,
    user_id: UserId,
    reaction_type: ReactionType | str,
    *,
    now: datetime | None = None,
    correlation_id: str | None = None,
) -> Result[None]:
    """Remove a reaction and recompute the sighting's scores.

    Removing a reaction that does not exist is a no-op. Reputation events
    already recorded for the reporter stay in the ledger.
    """
    with (
        operation_scope("remove_sighting_reaction", correlation_id) as bound_id,
        observe_duration("remove_sighting_reaction"),
    ):
        parsed_type = _parse_reaction_type(reaction_type)
        if parsed_type is None:
            return err(
                "reaction.invalid_type",
                f"Unknown reaction type: {reaction_type}",
                field="reaction_type",
            )

        removed = await repositories.reactions.remove(sighting_id, user_id, parsed_type)
        if not removed:
            logger.debug(
                "reaction_remove_noop",
                sighting_id=sighting_id,
                user_id=user_id,
                reaction_type=parsed_type.value,
            )
            return Ok(None)

        REACTIONS_TOTAL.labels(action="remove", type=parsed_type.value).inc()

        sighting = await repositories.sightings.get_by_id(sighting_id)
        if sighting is not None:
            updated = await _refresh_scores(repositories, sighting, now or utc_now())
            logger.info(
                "reaction_removed",
                correlation_id=bound_id,
                sighting_id=sighting_id,
                user_id=user_id,
                reaction_type=parsed_type.value,
                score=updated.score,
            )
        return Ok(None)


async def get_sighting_reactions_use_case(
    repositories: RepositoryBundle,
    sighting_id: SightingId,
) -> Result[ReactionCounts]:
    """Current reaction counts of a sighting."""
    sighting = await repositories.sightings.get_by_id(sighting_id)
    if sighting is None:
        return err("sighting.not_found", "Sighting not found", field="sighting_id")
    return Ok(await repositories.reactions.get_counts(sighting_id))
