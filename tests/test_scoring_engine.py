"""Tests for scoring engine."""

from collections.abc import Callable
from datetime import datetime, timedelta

import pytest

from src.domain.models import ReactionCounts, Sighting, SightingVisibility
from src.services import scoring_engine


def test_base_score_weights_each_reaction_type() -> None:
    counts = ReactionCounts(upvotes=4, downvotes=1, confirmations=2, disputes=1)

    assert scoring_engine.calculate_base_score(counts) == 4 - 1 + 4 - 2


def test_base_score_ignores_spam_reports() -> None:
    """Spam only affects visibility and flairs, never the score."""
    assert scoring_engine.calculate_base_score(ReactionCounts(spam_reports=7)) == 0


def test_base_score_can_go_negative() -> None:
    counts = ReactionCounts(downvotes=3, disputes=2)

    assert scoring_engine.calculate_base_score(counts) == -7


def test_hot_score_zero_for_zero_base() -> None:
    assert scoring_engine.calculate_hot_score(0, 10.0) == 0.0


def test_hot_score_formula_at_creation() -> None:
    assert scoring_engine.calculate_hot_score(10, 0.0) == pytest.approx(10 / 2**1.5)


def test_hot_score_decays_with_age() -> None:
    """For a non-negative base score, older means lower."""
    ages = [0.0, 1.0, 6.0, 24.0, 24.0 * 7]
    scores = [scoring_engine.calculate_hot_score(25, age) for age in ages]

    assert scores == sorted(scores, reverse=True)
    assert all(score > 0 for score in scores)


@pytest.mark.parametrize("age", [0.0, 3.0, 48.0])
def test_hot_score_strictly_increasing_in_base_score(age: float) -> None:
    bases = [-10, -1, 0, 1, 5, 100]
    scores = [scoring_engine.calculate_hot_score(base, age) for base in bases]

    assert all(lower < higher for lower, higher in zip(scores, scores[1:]))


def test_hot_score_negative_age_treated_as_zero() -> None:
    assert scoring_engine.calculate_hot_score(8, -5.0) == scoring_engine.calculate_hot_score(
        8, 0.0
    )


def test_get_age_in_hours_naive_timestamp_is_utc(now: datetime) -> None:
    naive_two_hours_ago = (now - timedelta(hours=2)).replace(tzinfo=None)

    assert scoring_engine.get_age_in_hours(naive_two_hours_ago, now) == pytest.approx(2.0)


def test_get_age_in_hours_future_is_negative(now: datetime) -> None:
    assert scoring_engine.get_age_in_hours(now + timedelta(hours=1), now) == pytest.approx(
        -1.0
    )


def test_total_engagement_excludes_spam(make_sighting: Callable[..., Sighting]) -> None:
    sighting = make_sighting(
        upvotes=2, downvotes=1, confirmations=3, disputes=1, spam_reports=9
    )

    assert scoring_engine.total_engagement(sighting) == 7
    assert scoring_engine.total_engagement(sighting.counts) == 7


@pytest.mark.parametrize(
    ("score", "spam_reports", "expected"),
    [
        (10, 0, SightingVisibility.VISIBLE),
        (0, 2, SightingVisibility.VISIBLE),
        (10, 3, SightingVisibility.HIDDEN),
        (-5, 0, SightingVisibility.HIDDEN),
        (-4, 0, SightingVisibility.LOW_QUALITY),
        (-1, 0, SightingVisibility.LOW_QUALITY),
    ],
)
def test_sighting_visibility(
    score: int, spam_reports: int, expected: SightingVisibility
) -> None:
    assert scoring_engine.get_sighting_visibility(score, spam_reports) == expected


def test_recalculate_sighting_replaces_counters_and_scores(
    make_sighting: Callable[..., Sighting], now: datetime
) -> None:
    sighting = make_sighting()
    counts = ReactionCounts(upvotes=3, confirmations=1, spam_reports=1)

    updated = scoring_engine.recalculate_sighting(sighting, counts, now)

    assert updated.counts == counts
    assert updated.score == 5
    assert updated.hot_score == pytest.approx(5 / 3**1.5)
    assert sighting.score == 0
    assert sighting.upvotes == 0
