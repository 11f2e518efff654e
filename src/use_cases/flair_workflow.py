"""Flair workflow use cases.

Direct assignment, community suggestions with consensus voting, moderator
rejection, removal, and rule-based auto-assignment.
"""

from collections.abc import Sequence
from datetime import datetime
from uuid import uuid4

from src.config.logging_config import get_logger
from src.config.settings import Settings
from src.domain.flair_constants import SUGGESTION_INITIAL_VOTES
from src.domain.models import (
    AssignmentMethod,
    AutoAssignResult,
    Flair,
    FlairId,
    FlairSuggestion,
    FlairSuggestionId,
    Sighting,
    SightingFlair,
    SightingId,
    SuggestionOutcome,
    SuggestionStatus,
    UserId,
    VoteOutcome,
    utc_now,
)
from src.domain.protocols import RepositoryBundle
from src.domain.result import Err, Ok, Result, err
from src.observability.metrics import FLAIR_ASSIGNMENTS_TOTAL, observe_duration
from src.observability.tracing import operation_scope
from src.services.flair_rules import (
    can_user_assign_flair,
    can_user_remove_flair,
    consensus_threshold,
    is_flair_applicable,
    meets_auto_assign_conditions,
    should_auto_apply_suggestion,
)
from src.services.scoring_engine import total_engagement

logger = get_logger(__name__)


async def _load_sighting_and_flair(
    repositories: RepositoryBundle, sighting_id: SightingId, flair_id: FlairId
) -> tuple[Sighting, Flair] | Err:
    sighting = await repositories.sightings.get_by_id(sighting_id)
    if sighting is None:
        return err("sighting.not_found", "Sighting not found", field="sighting_id")

    flair = await repositories.flairs.get_by_id(flair_id)
    if flair is None or not flair.is_active:
        return err("flair.not_found", "Flair not found", field="flair_id")
    return sighting, flair


async def _attach_flair(
    repositories: RepositoryBundle, sighting_flair: SightingFlair
) -> None:
    await repositories.sighting_flairs.assign(sighting_flair)
    FLAIR_ASSIGNMENTS_TOTAL.labels(method=sighting_flair.assignment_method.value).inc()


async def _apply_by_consensus(
    repositories: RepositoryBundle,
    suggestion: FlairSuggestion,
    vote_count: int,
    now: datetime,
) -> None:
    """Attach the suggested flair (if absent) and close the suggestion."""
    if not await repositories.sighting_flairs.has_flair(
        suggestion.sighting_id, suggestion.flair_id
    ):
        await _attach_flair(
            repositories,
            SightingFlair(
                sighting_id=suggestion.sighting_id,
                flair_id=suggestion.flair_id,
                assigned_at=now,
                assignment_method=AssignmentMethod.CONSENSUS,
                metadata={"suggestion_id": suggestion.id, "vote_count": vote_count},
            ),
        )
    await repositories.sighting_flairs.update_suggestion_status(
        suggestion.id, SuggestionStatus.APPLIED
    )
    logger.info(
        "flair_consensus_applied",
        suggestion_id=suggestion.id,
        sighting_id=suggestion.sighting_id,
        flair_id=suggestion.flair_id,
        vote_count=vote_count,
    )


async def assign_flair_to_sighting_use_case(
    repositories: RepositoryBundle,
    sighting_id: SightingId,
    flair_id: FlairId,
    user_id: UserId,
    method: AssignmentMethod = AssignmentMethod.MANUAL,
    is_moderator: bool = False,
    *,
    now: datetime | None = None,
    correlation_id: str | None = None,
) -> Result[SightingFlair]:
    """Attach a flair directly.

    Reporters may assign manually; moderators may assign with the moderator
    method. Auto and consensus assignments are never accepted from a caller.

    Returns:
        Ok with the new assignment, or Err with sighting.not_found,
        flair.not_found, flair.permission_denied or flair.already_assigned
    """
    with (
        operation_scope("assign_flair", correlation_id) as bound_id,
        observe_duration("assign_flair"),
    ):
        loaded = await _load_sighting_and_flair(repositories, sighting_id, flair_id)
        if isinstance(loaded, Err):
            return loaded
        sighting, _ = loaded

        if not can_user_assign_flair(user_id, sighting, method, is_moderator):
            logger.warning(
                "flair_assign_denied",
                sighting_id=sighting_id,
                flair_id=flair_id,
                user_id=user_id,
                method=method.value,
            )
            return err(
                "flair.permission_denied",
                "You do not have permission to assign this flair",
            )

        if await repositories.sighting_flairs.has_flair(sighting_id, flair_id):
            return err(
                "flair.already_assigned",
                "Flair is already assigned to this sighting",
                field="flair_id",
            )

        sighting_flair = SightingFlair(
            sighting_id=sighting_id,
            flair_id=flair_id,
            assigned_by=user_id,
            assigned_at=now or utc_now(),
            assignment_method=method,
        )
        await _attach_flair(repositories, sighting_flair)

        logger.info(
            "flair_assigned",
            correlation_id=bound_id,
            sighting_id=sighting_id,
            flair_id=flair_id,
            user_id=user_id,
            method=method.value,
        )
        return Ok(sighting_flair)


async def suggest_flair_use_case(
    repositories: RepositoryBundle,
    sighting_id: SightingId,
    flair_id: FlairId,
    user_id: UserId,
    *,
    now: datetime | None = None,
    correlation_id: str | None = None,
) -> Result[SuggestionOutcome]:
    """Propose a flair. The suggester's own vote counts as the first vote.

    Returns:
        Ok with the suggestion id and whether it applied immediately, or Err
        with sighting.not_found, flair.not_found, flair.already_assigned or
        suggestion.already_exists
    """
    with (
        operation_scope("suggest_flair", correlation_id) as bound_id,
        observe_duration("suggest_flair"),
    ):
        loaded = await _load_sighting_and_flair(repositories, sighting_id, flair_id)
        if isinstance(loaded, Err):
            return loaded
        sighting, _ = loaded

        if await repositories.sighting_flairs.has_flair(sighting_id, flair_id):
            return err(
                "flair.already_assigned",
                "Flair is already assigned to this sighting",
                field="flair_id",
            )

        existing = await repositories.sighting_flairs.get_user_suggestion(
            sighting_id, flair_id, user_id
        )
        if existing is not None:
            return err(
                "suggestion.already_exists",
                "You have already suggested this flair",
                field="flair_id",
            )

        current_time = now or utc_now()
        suggestion = FlairSuggestion(
            id=FlairSuggestionId(str(uuid4())),
            sighting_id=sighting_id,
            flair_id=flair_id,
            suggested_by=user_id,
            suggested_at=current_time,
            vote_count=SUGGESTION_INITIAL_VOTES,
        )
        await repositories.sighting_flairs.create_suggestion(suggestion)
        await repositories.sighting_flairs.record_vote(suggestion.id, user_id)

        engagement = total_engagement(sighting)
        auto_applied = should_auto_apply_suggestion(suggestion.vote_count, engagement)
        if auto_applied:
            await _apply_by_consensus(
                repositories, suggestion, suggestion.vote_count, current_time
            )

        logger.info(
            "flair_suggested",
            correlation_id=bound_id,
            suggestion_id=suggestion.id,
            sighting_id=sighting_id,
            flair_id=flair_id,
            user_id=user_id,
            votes_needed=consensus_threshold(engagement),
            auto_applied=auto_applied,
        )
        return Ok(SuggestionOutcome(suggestion_id=suggestion.id, auto_applied=auto_applied))


async def vote_on_flair_suggestion_use_case(
    repositories: RepositoryBundle,
    suggestion_id: FlairSuggestionId,
    user_id: UserId,
    *,
    now: datetime | None = None,
    correlation_id: str | None = None,
) -> Result[VoteOutcome]:
    """Vote for a pending suggestion; applies it once consensus is reached.

    The required votes are ``max(3, ceil(engagement * 0.1))`` where
    engagement is the sighting's upvotes, downvotes, confirmations and
    disputes. A suggestion is applied at most once.

    Returns:
        Ok with whether the flair was applied and the new vote count, or Err
        with suggestion.not_found, suggestion.not_pending,
        suggestion.cannot_vote_own, suggestion.already_voted or
        sighting.not_found
    """
    with (
        operation_scope("vote_on_flair_suggestion", correlation_id) as bound_id,
        observe_duration("vote_on_flair_suggestion"),
    ):
        suggestion = await repositories.sighting_flairs.get_suggestion(suggestion_id)
        if suggestion is None:
            return err(
                "suggestion.not_found", "Suggestion not found", field="suggestion_id"
            )

        if suggestion.status != SuggestionStatus.PENDING:
            return err(
                "suggestion.not_pending",
                f"Suggestion is already {suggestion.status.value}",
                field="suggestion_id",
            )

        if suggestion.suggested_by == user_id:
            return err(
                "suggestion.cannot_vote_own",
                "You cannot vote on your own suggestion",
            )

        if await repositories.sighting_flairs.has_voted(suggestion_id, user_id):
            return err(
                "suggestion.already_voted",
                "You have already voted on this suggestion",
            )

        sighting = await repositories.sightings.get_by_id(suggestion.sighting_id)
        if sighting is None:
            return err("sighting.not_found", "Sighting not found", field="sighting_id")

        await repositories.sighting_flairs.record_vote(suggestion_id, user_id)
        vote_count = suggestion.vote_count + 1
        await repositories.sighting_flairs.update_suggestion_votes(
            suggestion_id, vote_count
        )

        engagement = total_engagement(sighting)
        applied = should_auto_apply_suggestion(vote_count, engagement)
        if applied:
            await _apply_by_consensus(
                repositories, suggestion, vote_count, now or utc_now()
            )

        logger.info(
            "flair_suggestion_voted",
            correlation_id=bound_id,
            suggestion_id=suggestion_id,
            user_id=user_id,
            vote_count=vote_count,
            votes_needed=consensus_threshold(engagement),
            applied=applied,
        )
        return Ok(VoteOutcome(applied=applied, vote_count=vote_count))


async def reject_flair_suggestion_use_case(
    repositories: RepositoryBundle,
    suggestion_id: FlairSuggestionId,
    user_id: UserId,
    is_moderator: bool = False,
    *,
    correlation_id: str | None = None,
) -> Result[None]:
    """Moderator closes a pending suggestion without applying it."""
    with operation_scope("reject_flair_suggestion", correlation_id) as bound_id:
        if not is_moderator:
            return err(
                "flair.permission_denied", "Only moderators can reject suggestions"
            )

        suggestion = await repositories.sighting_flairs.get_suggestion(suggestion_id)
        if suggestion is None:
            return err(
                "suggestion.not_found", "Suggestion not found", field="suggestion_id"
            )
        if suggestion.status != SuggestionStatus.PENDING:
            return err(
                "suggestion.not_pending",
                f"Suggestion is already {suggestion.status.value}",
                field="suggestion_id",
            )

        await repositories.sighting_flairs.update_suggestion_status(
            suggestion_id, SuggestionStatus.REJECTED
        )
        logger.info(
            "flair_suggestion_rejected",
            correlation_id=bound_id,
            suggestion_id=suggestion_id,
            moderator_id=user_id,
        )
        return Ok(None)


async def remove_flair_from_sighting_use_case(
    repositories: RepositoryBundle,
    sighting_id: SightingId,
    flair_id: FlairId,
    user_id: UserId,
    is_moderator: bool = False,
    *,
    correlation_id: str | None = None,
) -> Result[None]:
    """Detach a flair.

    Allowed for moderators, the reporter and the original assigner. Any user
    may remove an auto-assigned flair.
    """
    with (
        operation_scope("remove_flair", correlation_id) as bound_id,
        observe_duration("remove_flair"),
    ):
        sighting = await repositories.sightings.get_by_id(sighting_id)
        if sighting is None:
            return err("sighting.not_found", "Sighting not found", field="sighting_id")

        assignments = await repositories.sighting_flairs.get_flairs_for_sighting(
            sighting_id
        )
        sighting_flair = next(
            (item for item in assignments if item.flair_id == flair_id), None
        )
        if sighting_flair is None:
            return err(
                "flair.not_assigned",
                "Flair is not assigned to this sighting",
                field="flair_id",
            )

        if not can_user_remove_flair(user_id, sighting, sighting_flair, is_moderator):
            return err(
                "flair.permission_denied",
                "You do not have permission to remove this flair",
            )

        await repositories.sighting_flairs.remove(sighting_id, flair_id)
        logger.info(
            "flair_removed",
            correlation_id=bound_id,
            sighting_id=sighting_id,
            flair_id=flair_id,
            user_id=user_id,
            method=sighting_flair.assignment_method.value,
        )
        return Ok(None)


async def _auto_assign_for(
    repositories: RepositoryBundle,
    sighting: Sighting,
    flairs: Sequence[Flair],
    now: datetime,
) -> int:
    assigned = 0
    for flair in flairs:
        conditions = flair.auto_assign_conditions
        if conditions is None:
            continue
        if not is_flair_applicable(flair, sighting.category_id):
            continue
        if not meets_auto_assign_conditions(sighting, conditions, now):
            continue
        if await repositories.sighting_flairs.has_flair(sighting.id, flair.id):
            continue

        await _attach_flair(
            repositories,
            SightingFlair(
                sighting_id=sighting.id,
                flair_id=flair.id,
                assigned_at=now,
                assignment_method=AssignmentMethod.AUTO,
                metadata={"conditions": conditions.model_dump(exclude_none=True)},
            ),
        )
        assigned += 1
        logger.info(
            "flair_auto_applied",
            sighting_id=sighting.id,
            flair_id=flair.id,
            label=flair.label,
        )
    return assigned


async def auto_assign_flairs_for_sighting_use_case(
    repositories: RepositoryBundle,
    sighting_id: SightingId,
    now: datetime | None = None,
    *,
    correlation_id: str | None = None,
) -> int:
    """Attach every auto-assign flair whose rule the sighting meets.

    Returns:
        Number of flairs attached (0 for an unknown sighting)
    """
    with (
        operation_scope("auto_assign_flairs_for_sighting", correlation_id),
        observe_duration("auto_assign_flairs_for_sighting"),
    ):
        sighting = await repositories.sightings.get_by_id(sighting_id)
        if sighting is None:
            logger.debug("auto_assign_sighting_missing", sighting_id=sighting_id)
            return 0

        flairs = await repositories.flairs.get_active_flairs()
        return await _auto_assign_for(repositories, sighting, flairs, now or utc_now())


async def auto_assign_flairs_use_case(
    repositories: RepositoryBundle,
    settings: Settings,
    now: datetime | None = None,
    *,
    correlation_id: str | None = None,
) -> AutoAssignResult:
    """Run auto-assignment over the newest active sightings.

    Processes at most ``settings.auto_assign_batch_limit`` sightings.
    Repository errors propagate.
    """
    with (
        operation_scope("auto_assign_flairs", correlation_id) as bound_id,
        observe_duration("auto_assign_flairs"),
    ):
        current_time = now or utc_now()
        sightings = await repositories.sightings.list_active(
            settings.auto_assign_batch_limit
        )
        flairs = await repositories.flairs.get_active_flairs()

        logger.info(
            "auto_assign_started",
            correlation_id=bound_id,
            sighting_count=len(sightings),
            flair_count=len(flairs),
            batch_limit=settings.auto_assign_batch_limit,
        )

        assigned_count = 0
        for sighting in sightings:
            assigned_count += await _auto_assign_for(
                repositories, sighting, flairs, current_time
            )

        result = AutoAssignResult(
            assigned_count=assigned_count, processed_sightings=len(sightings)
        )
        logger.info(
            "auto_assign_finished",
            correlation_id=bound_id,
            assigned_count=result.assigned_count,
            processed_sightings=result.processed_sightings,
        )
        return result
