"""Flair policy: permissions, consensus threshold and auto-assign rules."""

import math
from collections.abc import Iterable
from datetime import datetime

from src.domain.flair_constants import CONSENSUS_ENGAGEMENT_RATIO, CONSENSUS_MIN_VOTES
from src.domain.models import (
    AssignmentMethod,
    AutoAssignConditions,
    CategoryId,
    Flair,
    FlairType,
    Sighting,
    SightingFlair,
    UserId,
)
from src.services.scoring_engine import get_age_in_hours, total_engagement


def can_user_assign_flair(
    user_id: UserId,
    sighting: Sighting,
    method: AssignmentMethod,
    is_moderator: bool = False,
) -> bool:
    """Direct assignment rules.

    - MODERATOR: caller must hold the moderator flag
    - MANUAL: caller must be the sighting's reporter
    - AUTO and CONSENSUS are engine-only and never granted to a caller
    """
    if method == AssignmentMethod.MODERATOR:
        return is_moderator
    if method == AssignmentMethod.MANUAL:
        return sighting.reporter_id is not None and sighting.reporter_id == user_id
    return False


def can_user_remove_flair(
    user_id: UserId,
    sighting: Sighting,
    sighting_flair: SightingFlair,
    is_moderator: bool = False,
) -> bool:
    """Moderators, the reporter and the original assigner may remove a flair.

    Auto-assigned flairs can be removed by anyone.
    """
    if is_moderator:
        return True
    if sighting.reporter_id is not None and sighting.reporter_id == user_id:
        return True
    if sighting_flair.assigned_by is not None and sighting_flair.assigned_by == user_id:
        return True
    return sighting_flair.assignment_method == AssignmentMethod.AUTO


def consensus_threshold(engagement: int) -> int:
    """Votes needed for a suggestion on a sighting with this engagement.

    Plain float product, unrounded: 30 * 0.1 is 3.0000000000000004, so an
    engagement of 30 needs 4 votes and 70 needs 8.
    """
    return max(
        CONSENSUS_MIN_VOTES, math.ceil(engagement * CONSENSUS_ENGAGEMENT_RATIO)
    )


def should_auto_apply_suggestion(vote_count: int, engagement: int) -> bool:
    """True once a suggestion has enough votes.

    Example:
        >>> should_auto_apply_suggestion(3, 10)
        True
        >>> should_auto_apply_suggestion(4, 45)
        False
    """
    return vote_count >= consensus_threshold(engagement)


def meets_auto_assign_conditions(
    sighting: Sighting,
    conditions: AutoAssignConditions,
    now: datetime | None = None,
) -> bool:
    """Check a sighting against a flair's auto-assign rule.

    A spam threshold, when set, decides alone. Otherwise every populated
    bound must hold; age is measured in hours since ``observed_at``. An
    empty rule never matches.
    """
    if conditions.is_empty():
        return False

    if conditions.spam_report_threshold is not None:
        return sighting.spam_reports >= conditions.spam_report_threshold

    if conditions.min_score is not None and sighting.score < conditions.min_score:
        return False
    if conditions.max_score is not None and sighting.score > conditions.max_score:
        return False

    if conditions.min_age is not None or conditions.max_age is not None:
        age_hours = get_age_in_hours(sighting.observed_at, now)
        if conditions.min_age is not None and age_hours < conditions.min_age:
            return False
        if conditions.max_age is not None and age_hours > conditions.max_age:
            return False

    if conditions.min_engagement is not None:
        if total_engagement(sighting) < conditions.min_engagement:
            return False

    return True


def is_flair_applicable(flair: Flair, category_id: CategoryId) -> bool:
    """System-wide flairs apply everywhere, others only to their category."""
    return flair.is_system_wide or flair.category_id == category_id


def flairs_for_category(flairs: Iterable[Flair], category_id: CategoryId) -> list[Flair]:
    """Active flairs usable in a category, by display order."""
    applicable = [
        flair
        for flair in flairs
        if flair.is_active and is_flair_applicable(flair, category_id)
    ]
    return sorted(applicable, key=lambda flair: flair.display_order)


def flairs_by_type(flairs: Iterable[Flair], flair_type: FlairType) -> list[Flair]:
    selected = [
        flair for flair in flairs if flair.is_active and flair.flair_type == flair_type
    ]
    return sorted(selected, key=lambda flair: flair.display_order)
