"""Scoring engine for sighting ranking.

Calculates:
- Base score: weighted sum of reaction counts
- Hot score: base score divided by a gravity-style age penalty
- Visibility: feed treatment derived from score and spam reports
"""

from datetime import datetime

import pytz

from src.domain.models import ReactionCounts, Sighting, SightingVisibility, utc_now
from src.domain.scoring_constants import (
    CONFIRMATION_WEIGHT,
    DISPUTE_WEIGHT,
    DOWNVOTE_WEIGHT,
    HIDDEN_SCORE_THRESHOLD,
    HOT_SCORE_AGE_OFFSET_HOURS,
    HOT_SCORE_GRAVITY,
    LOW_QUALITY_SCORE_THRESHOLD,
    SECONDS_PER_HOUR,
    SPAM_HIDE_THRESHOLD,
    SPAM_REPORT_WEIGHT,
    UPVOTE_WEIGHT,
)


def calculate_base_score(counts: ReactionCounts) -> int:
    """Calculate the base engagement score from reaction counts.

    Args:
        counts: Aggregate reaction counts

    Returns:
        Weighted sum of the counts

    Example:
        >>> calculate_base_score(ReactionCounts(upvotes=3, confirmations=1, disputes=1))
        3
    """
    return (
        counts.upvotes * UPVOTE_WEIGHT
        + counts.downvotes * DOWNVOTE_WEIGHT
        + counts.confirmations * CONFIRMATION_WEIGHT
        + counts.disputes * DISPUTE_WEIGHT
        + counts.spam_reports * SPAM_REPORT_WEIGHT
    )


def calculate_hot_score(base_score: float, age_in_hours: float) -> float:
    """Attenuate a base score by age.

    ``base / (age + offset) ** gravity``. For a fixed age the result is
    strictly increasing in the base score. For a fixed positive base score it
    falls with age toward (never reaching) zero; negative scores shrink
    toward zero from below. Negative ages (clock skew) count as zero.

    Args:
        base_score: Base engagement score
        age_in_hours: Hours since the sighting was created

    Returns:
        Time-decayed ranking score

    Example:
        >>> calculate_hot_score(0, 5.0)
        0.0
        >>> calculate_hot_score(10, 0.0) > calculate_hot_score(10, 24.0)
        True
    """
    age = max(age_in_hours, 0.0)
    decay = (age + HOT_SCORE_AGE_OFFSET_HOURS) ** HOT_SCORE_GRAVITY
    return base_score / decay


def ensure_utc(moment: datetime) -> datetime:
    """Return an aware UTC datetime; naive values are taken to be UTC."""
    if moment.tzinfo is None:
        return pytz.UTC.localize(moment)
    return moment.astimezone(pytz.UTC)


def get_age_in_hours(since: datetime, now: datetime | None = None) -> float:
    """Hours elapsed between ``since`` and ``now`` (defaults to current time).

    The result is negative when ``since`` lies in the future.
    """
    current = ensure_utc(now) if now is not None else utc_now()
    return (current - ensure_utc(since)).total_seconds() / SECONDS_PER_HOUR


def total_engagement(counts: ReactionCounts | Sighting) -> int:
    """Upvotes, downvotes, confirmations and disputes combined.

    Spam reports are not engagement.
    """
    return counts.upvotes + counts.downvotes + counts.confirmations + counts.disputes


def get_sighting_visibility(score: float, spam_reports: int) -> SightingVisibility:
    """Decide how a sighting is shown in feeds.

    Business rules:
        - SPAM_HIDE_THRESHOLD or more spam reports hide it pending review
        - Score at or below HIDDEN_SCORE_THRESHOLD hides it
        - Negative score flags it as low quality

    Example:
        >>> get_sighting_visibility(4, 3)
        <SightingVisibility.HIDDEN: 'hidden'>
        >>> get_sighting_visibility(-1, 0)
        <SightingVisibility.LOW_QUALITY: 'low_quality'>
    """
    if spam_reports >= SPAM_HIDE_THRESHOLD:
        return SightingVisibility.HIDDEN
    if score <= HIDDEN_SCORE_THRESHOLD:
        return SightingVisibility.HIDDEN
    if score < LOW_QUALITY_SCORE_THRESHOLD:
        return SightingVisibility.LOW_QUALITY
    return SightingVisibility.VISIBLE


def recalculate_sighting(
    sighting: Sighting, counts: ReactionCounts, now: datetime | None = None
) -> Sighting:
    """Return a copy of the sighting with counters and both scores replaced.

    Args:
        sighting: Current sighting
        counts: Fresh reaction counts from the ledger
        now: Reference time for the age (defaults to current time)

    Returns:
        New sighting; the input is not modified
    """
    base_score = calculate_base_score(counts)
    hot_score = calculate_hot_score(base_score, get_age_in_hours(sighting.created_at, now))
    return sighting.model_copy(
        update={
            "upvotes": counts.upvotes,
            "downvotes": counts.downvotes,
            "confirmations": counts.confirmations,
            "disputes": counts.disputes,
            "spam_reports": counts.spam_reports,
            "score": base_score,
            "hot_score": hot_score,
        }
    )
