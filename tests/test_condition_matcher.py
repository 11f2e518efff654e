"""Tests for signal condition matching."""

import pytest
from pydantic import ValidationError

from src.domain.models import (
    ConditionOperator,
    ReputationTier,
    SightingImportance,
    SightingMatchData,
    SignalConditions,
)
from src.domain.specifications import AllOfSpecification, AnyOfSpecification
from src.services.condition_matcher import (
    build_condition_specs,
    describe_conditions,
    matches_conditions,
)


@pytest.fixture
def match_data() -> SightingMatchData:
    return SightingMatchData(
        category_id="cat-a",
        type_id="type-1",
        tags=["bear", "trail"],
        importance=SightingImportance.HIGH,
        score=3,
        reporter_trust_level=ReputationTier.NEW,
    )


def test_empty_conditions_match_everything(match_data: SightingMatchData) -> None:
    assert matches_conditions(SignalConditions(), match_data)
    assert matches_conditions(
        SignalConditions(operator=ConditionOperator.OR), match_data
    )


def test_empty_lists_are_unpopulated(match_data: SightingMatchData) -> None:
    conditions = SignalConditions(category_ids=[], tags=[], importance=[])

    assert build_condition_specs(conditions) == []
    assert matches_conditions(conditions, match_data)


def test_and_requires_every_condition(match_data: SightingMatchData) -> None:
    conditions = SignalConditions(category_ids=["cat-a"], min_score=5)

    assert not matches_conditions(conditions, match_data)


def test_or_requires_any_condition(match_data: SightingMatchData) -> None:
    conditions = SignalConditions(
        category_ids=["cat-a"], min_score=5, operator=ConditionOperator.OR
    )

    assert matches_conditions(conditions, match_data)


def test_or_fails_when_nothing_matches(match_data: SightingMatchData) -> None:
    conditions = SignalConditions(
        category_ids=["cat-z"], min_score=5, operator=ConditionOperator.OR
    )

    assert not matches_conditions(conditions, match_data)


@pytest.mark.parametrize(
    ("conditions", "expected"),
    [
        (SignalConditions(type_ids=["type-1", "type-2"]), True),
        (SignalConditions(type_ids=["type-2"]), False),
        (SignalConditions(tags=["trail", "river"]), True),
        (SignalConditions(tags=["river"]), False),
        (SignalConditions(importance=[SightingImportance.HIGH]), True),
        (SignalConditions(importance=[SightingImportance.LOW]), False),
        (SignalConditions(min_trust_level=ReputationTier.NEW), True),
        (SignalConditions(min_trust_level=ReputationTier.TRUSTED), False),
        (SignalConditions(min_score=3), True),
        (SignalConditions(max_score=3), True),
        (SignalConditions(max_score=2.5), False),
        (SignalConditions(min_score=1, max_score=4), True),
    ],
)
def test_single_condition_predicates(
    match_data: SightingMatchData, conditions: SignalConditions, expected: bool
) -> None:
    assert matches_conditions(conditions, match_data) is expected


def test_spec_combinators() -> None:
    specs = build_condition_specs(SignalConditions(category_ids=["cat-a"], min_score=5))
    data = SightingMatchData(category_id="cat-a", type_id="t", score=3)

    assert len(specs) == 2
    assert not AllOfSpecification(specs).is_satisfied_by(data)
    assert AnyOfSpecification(specs).is_satisfied_by(data)
    assert specs[1].not_().is_satisfied_by(data)
    assert specs[0].or_(specs[1]).is_satisfied_by(data)
    assert not specs[0].and_(specs[1]).is_satisfied_by(data)


def test_min_score_above_max_rejected() -> None:
    with pytest.raises(ValidationError):
        SignalConditions(min_score=10, max_score=5)


def test_describe_conditions() -> None:
    assert describe_conditions(SignalConditions()) == "All sightings"
    assert (
        describe_conditions(SignalConditions(category_ids=["a", "b"], min_score=5))
        == "2 categories AND score >= 5"
    )
    assert (
        describe_conditions(
            SignalConditions(
                type_ids=["t"], max_score=10, operator=ConditionOperator.OR
            )
        )
        == "1 type OR score <= 10"
    )
