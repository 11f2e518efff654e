"""Signal condition matching.

Turns ``SignalConditions`` into specifications and folds them with the
condition set's operator. A condition set with nothing populated matches
every sighting.
"""

from src.domain.models import ConditionOperator, SignalConditions, SightingMatchData
from src.domain.specifications import (
    AllOfSpecification,
    AnyOfSpecification,
    CategoryInSpec,
    ImportanceInSpec,
    MaxScoreSpec,
    MinScoreSpec,
    MinTrustLevelSpec,
    SharesTagSpec,
    Specification,
    TypeInSpec,
)
from src.services.reputation import get_tier_label


def build_condition_specs(
    conditions: SignalConditions,
) -> list[Specification[SightingMatchData]]:
    """One specification per populated condition field.

    ``None`` and empty lists are unpopulated and produce nothing.
    """
    specs: list[Specification[SightingMatchData]] = []
    if conditions.category_ids:
        specs.append(CategoryInSpec(conditions.category_ids))
    if conditions.type_ids:
        specs.append(TypeInSpec(conditions.type_ids))
    if conditions.tags:
        specs.append(SharesTagSpec(conditions.tags))
    if conditions.importance:
        specs.append(ImportanceInSpec(conditions.importance))
    if conditions.min_trust_level is not None:
        specs.append(MinTrustLevelSpec(conditions.min_trust_level))
    if conditions.min_score is not None:
        specs.append(MinScoreSpec(conditions.min_score))
    if conditions.max_score is not None:
        specs.append(MaxScoreSpec(conditions.max_score))
    return specs


def matches_conditions(
    conditions: SignalConditions, match_data: SightingMatchData
) -> bool:
    """Check a sighting against a condition set.

    Args:
        conditions: Signal conditions
        match_data: Matchable sighting attributes

    Returns:
        True if the sighting matches

    Example:
        >>> conditions = SignalConditions(category_ids=["cat-a"], min_score=5)
        >>> data = SightingMatchData(category_id="cat-a", type_id="t", score=3)
        >>> matches_conditions(conditions, data)
        False
        >>> matches_conditions(conditions.model_copy(update={"operator": ConditionOperator.OR}), data)
        True
    """
    specs = build_condition_specs(conditions)
    if not specs:
        return True

    if conditions.operator == ConditionOperator.OR:
        return AnyOfSpecification(specs).is_satisfied_by(match_data)
    return AllOfSpecification(specs).is_satisfied_by(match_data)


def describe_conditions(conditions: SignalConditions) -> str:
    """Human readable summary, e.g. ``"2 categories AND score >= 5"``."""
    parts: list[str] = []

    if conditions.category_ids:
        count = len(conditions.category_ids)
        parts.append(f"{count} categor{'y' if count == 1 else 'ies'}")
    if conditions.type_ids:
        count = len(conditions.type_ids)
        parts.append(f"{count} type{'' if count == 1 else 's'}")
    if conditions.tags:
        parts.append("tags: " + ", ".join(conditions.tags))
    if conditions.importance:
        parts.append(
            "importance: " + ", ".join(level.value for level in conditions.importance)
        )
    if conditions.min_trust_level is not None:
        parts.append(f"reporter {get_tier_label(conditions.min_trust_level)} or above")
    if conditions.min_score is not None and conditions.max_score is not None:
        parts.append(f"score {conditions.min_score:g}-{conditions.max_score:g}")
    elif conditions.min_score is not None:
        parts.append(f"score >= {conditions.min_score:g}")
    elif conditions.max_score is not None:
        parts.append(f"score <= {conditions.max_score:g}")

    if not parts:
        return "All sightings"
    return f" {conditions.operator.value} ".join(parts)
