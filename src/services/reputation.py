"""Reputation ledger rules.

Pure functions: build events with their fixed amounts, apply them with the
zero floor, and derive trust tiers. Persistence lives in
``src.use_cases.reputation_events``.
"""

from datetime import datetime
from uuid import uuid4

from src.domain.models import (
    ReputationEvent,
    ReputationEventId,
    ReputationReason,
    ReputationTier,
    UserId,
    UserReputation,
)
from src.domain.reputation_constants import (
    MIN_REPUTATION_SCORE,
    NEW_TIER_MIN_SCORE,
    REPUTATION_AMOUNTS,
    TIER_DESCRIPTIONS,
    TIER_LABELS,
    TIER_ORDER,
    TRUSTED_TIER_MIN_SCORE,
)
from src.domain.result import Ok, Result, err


def create_user_reputation(user_id: UserId, created_at: datetime) -> UserReputation:
    """Fresh reputation record with score 0."""
    return UserReputation(
        user_id=user_id, score=0, created_at=created_at, updated_at=created_at
    )


def create_reputation_event(
    user_id: UserId,
    reason: ReputationReason,
    created_at: datetime,
    reference_id: str | None = None,
    event_id: ReputationEventId | None = None,
) -> ReputationEvent:
    """Build an event carrying the fixed amount for ``reason``.

    Args:
        user_id: User whose reputation changes
        reason: Why the change happens
        created_at: Event time
        reference_id: Optional id of the sighting/signal involved
        event_id: Explicit id (a random UUID when omitted)

    Returns:
        Immutable reputation event
    """
    return ReputationEvent(
        id=event_id or ReputationEventId(str(uuid4())),
        user_id=user_id,
        reason=reason,
        amount=REPUTATION_AMOUNTS[reason],
        reference_id=reference_id,
        created_at=created_at,
    )


def apply_reputation_event(
    reputation: UserReputation, event: ReputationEvent
) -> UserReputation:
    """Apply an event: add the amount, floor at zero, stamp ``updated_at``.

    A -10 event against a score of 3 leaves 0, not -7.
    """
    new_score = max(MIN_REPUTATION_SCORE, reputation.score + event.amount)
    return reputation.model_copy(
        update={"score": new_score, "updated_at": event.created_at}
    )


def replay_reputation(
    user_id: UserId, events: list[ReputationEvent], created_at: datetime
) -> UserReputation:
    """Rebuild a reputation from its event log, oldest event first.

    The floor applies after every event, so the result is the clamped prefix
    sum rather than the plain sum.
    """
    reputation = create_user_reputation(user_id, created_at)
    for event in sorted(events, key=lambda item: item.created_at):
        reputation = apply_reputation_event(reputation, event)
    return reputation


def get_reputation_tier(score: int, is_verified: bool = False) -> ReputationTier:
    """Derive the trust tier.

    Example:
        >>> get_reputation_tier(9)
        <ReputationTier.UNVERIFIED: 'unverified'>
        >>> get_reputation_tier(10)
        <ReputationTier.NEW: 'new'>
        >>> get_reputation_tier(0, is_verified=True)
        <ReputationTier.VERIFIED: 'verified'>
    """
    if is_verified:
        return ReputationTier.VERIFIED
    if score >= TRUSTED_TIER_MIN_SCORE:
        return ReputationTier.TRUSTED
    if score >= NEW_TIER_MIN_SCORE:
        return ReputationTier.NEW
    return ReputationTier.UNVERIFIED


def tier_for(reputation: UserReputation | None) -> ReputationTier:
    """Tier of a stored reputation; users without one are unverified."""
    if reputation is None:
        return ReputationTier.UNVERIFIED
    return get_reputation_tier(reputation.score, reputation.is_verified)


def meets_min_trust_level(actual: ReputationTier, required: ReputationTier) -> bool:
    return TIER_ORDER[actual] >= TIER_ORDER[required]


def get_tier_label(tier: ReputationTier) -> str:
    return TIER_LABELS[tier]


def get_tier_description(tier: ReputationTier) -> str:
    return TIER_DESCRIPTIONS[tier]


def validate_user_id(user_id: str) -> Result[UserId]:
    """Reject blank user ids with ``reputation.invalid_user_id``."""
    if not user_id or not user_id.strip():
        return err("reputation.invalid_user_id", "User ID is required", field="user_id")
    return Ok(UserId(user_id))
