"""Reputation ledger use cases.

Events are appended first, then the running score is updated. The score is
floored at zero after every event.
"""

from datetime import datetime

from src.config.logging_config import get_logger
from src.config.settings import Settings
from src.domain.models import (
    ReputationEvent,
    ReputationReason,
    UserId,
    UserReputation,
    UserReputationSummary,
    utc_now,
)
from src.domain.protocols import RepositoryBundle
from src.domain.result import Ok, Result, err
from src.observability.metrics import REPUTATION_EVENTS_TOTAL, observe_duration
from src.observability.tracing import operation_scope
from src.services.reputation import (
    apply_reputation_event,
    create_reputation_event,
    create_user_reputation,
    tier_for,
    validate_user_id,
)

logger = get_logger(__name__)


async def add_reputation_event_use_case(
    repositories: RepositoryBundle,
    user_id: UserId | str,
    reason: ReputationReason,
    reference_id: str | None = None,
    *,
    now: datetime | None = None,
    correlation_id: str | None = None,
) -> Result[ReputationEvent]:
    """Append a reputation event and update the user's score.

    Creates the reputation record (score 0) on a user's first event.

    Args:
        repositories: Repository bundle
        user_id: User whose reputation changes
        reason: Reason; the amount is fixed per reason
        reference_id: Optional id of the sighting or signal involved
        now: Event time (defaults to current time)
        correlation_id: Correlation id to bind into logs

    Returns:
        Ok with the stored event, or Err(reputation.invalid_user_id)

    Example:
        >>> result = await add_reputation_event_use_case(
        ...     repositories, UserId("u-1"), ReputationReason.SIGHTING_CREATED
        ... )
        >>> result.value.amount
        1
    """
    with (
        operation_scope("add_reputation_event", correlation_id) as bound_id,
        observe_duration("add_reputation_event"),
    ):
        validated = validate_user_id(user_id)
        if not validated.ok:
            return validated
        valid_user_id = validated.value

        event_time = now or utc_now()
        reputation = await repositories.reputation.get_by_user_id(valid_user_id)
        if reputation is None:
            reputation = create_user_reputation(valid_user_id, event_time)
            await repositories.reputation.create(reputation)
            logger.debug("reputation_created", user_id=valid_user_id)

        event = create_reputation_event(
            valid_user_id, reason, event_time, reference_id=reference_id
        )
        await repositories.reputation.add_event(event)

        updated = apply_reputation_event(reputation, event)
        await repositories.reputation.update(updated)
        REPUTATION_EVENTS_TOTAL.labels(reason=reason.value).inc()

        logger.info(
            "reputation_event_applied",
            correlation_id=bound_id,
            user_id=valid_user_id,
            reason=reason.value,
            amount=event.amount,
            previous_score=reputation.score,
            score=updated.score,
            reference_id=reference_id,
        )
        return Ok(event)


async def get_user_reputation_use_case(
    repositories: RepositoryBundle,
    settings: Settings,
    user_id: UserId | str,
    include_events: bool = False,
    events_limit: int | None = None,
) -> Result[UserReputationSummary]:
    """Reputation, derived tier and (optionally) the most recent events.

    ``events_limit`` falls back to ``settings.reputation_events_limit``.
    """
    validated = validate_user_id(user_id)
    if not validated.ok:
        return validated

    reputation = await repositories.reputation.get_by_user_id(validated.value)
    if reputation is None:
        return err(
            "reputation.user_not_found",
            "No reputation recorded for this user",
            field="user_id",
        )

    events: list[ReputationEvent] = []
    if include_events:
        if events_limit is None:
            events_limit = settings.reputation_events_limit
        events = await repositories.reputation.get_events(validated.value, events_limit)

    return Ok(
        UserReputationSummary(
            reputation=reputation, tier=tier_for(reputation), events=events
        )
    )


async def get_reputation_leaderboard_use_case(
    repositories: RepositoryBundle,
    settings: Settings,
    limit: int | None = None,
) -> Result[list[UserReputation]]:
    """Top users by score; ties go to the earliest record."""
    if limit is None:
        limit = settings.leaderboard_limit
    return Ok(await repositories.reputation.get_top_users(limit))
