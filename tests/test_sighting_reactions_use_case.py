"""Tests for the sighting reaction use cases."""

import asyncio
from datetime import datetime

import pytest
from structlog.testing import capture_logs

from src.domain.models import (
    ReactionCounts,
    ReactionType,
    Sighting,
    TriggerType,
    UserId,
)
from src.domain.protocols import RepositoryBundle
from src.use_cases.sighting_reactions import (
    add_sighting_reaction_use_case,
    get_sighting_reactions_use_case,
    remove_sighting_reaction_use_case,
    trigger_type_for_reaction,
)


def _react(
    repositories: RepositoryBundle,
    sighting: Sighting,
    user_id: str,
    reaction_type: ReactionType | str,
    now: datetime,
):
    return asyncio.run(
        add_sighting_reaction_use_case(
            repositories, sighting.id, UserId(user_id), reaction_type, now=now
        )
    )


def test_add_reaction_updates_counts_and_scores(
    repositories: RepositoryBundle, stored_sighting: Sighting, now: datetime
) -> None:
    result = _react(repositories, stored_sighting, "voter-1", ReactionType.UPVOTE, now)

    assert result.ok
    assert result.value.upvotes == 1
    assert result.value.score == 1
    assert result.value.hot_score == pytest.approx(1 / 3**1.5)

    stored = asyncio.run(repositories.sightings.get_by_id(stored_sighting.id))
    assert stored == result.value


def test_user_may_hold_several_reaction_types(
    repositories: RepositoryBundle, stored_sighting: Sighting, now: datetime
) -> None:
    assert _react(repositories, stored_sighting, "voter-1", "upvote", now).ok
    result = _react(repositories, stored_sighting, "voter-1", "confirmed", now)

    assert result.ok
    assert result.value.score == 3


def test_duplicate_reaction_rejected(
    repositories: RepositoryBundle, stored_sighting: Sighting, now: datetime
) -> None:
    _react(repositories, stored_sighting, "voter-1", ReactionType.UPVOTE, now)
    result = _react(repositories, stored_sighting, "voter-1", ReactionType.UPVOTE, now)

    assert not result.ok
    assert result.error.code == "reaction.already_exists"
    stored = asyncio.run(repositories.sightings.get_by_id(stored_sighting.id))
    assert stored is not None
    assert stored.upvotes == 1


def test_invalid_reaction_type(
    repositories: RepositoryBundle, stored_sighting: Sighting, now: datetime
) -> None:
    result = _react(repositories, stored_sighting, "voter-1", "love", now)

    assert not result.ok
    assert result.error.code == "reaction.invalid_type"


def test_unknown_sighting(
    repositories: RepositoryBundle, make_sighting, now: datetime
) -> None:
    result = _react(repositories, make_sighting(id="missing"), "voter-1", "upvote", now)

    assert not result.ok
    assert result.error.code == "sighting.not_found"


def test_reporter_cannot_react_to_own_sighting(
    repositories: RepositoryBundle, stored_sighting: Sighting, now: datetime
) -> None:
    assert stored_sighting.reporter_id is not None
    result = _react(
        repositories, stored_sighting, stored_sighting.reporter_id, "upvote", now
    )

    assert not result.ok
    assert result.error.code == "reaction.cannot_react_to_own"


@pytest.mark.parametrize(
    ("reaction_type", "expected_score"),
    [
        (ReactionType.UPVOTE, 1),
        (ReactionType.CONFIRMED, 2),
        (ReactionType.DISPUTED, 0),
    ],
)
def test_reaction_credits_reporter(
    repositories: RepositoryBundle,
    stored_sighting: Sighting,
    now: datetime,
    reaction_type: ReactionType,
    expected_score: int,
) -> None:
    _react(repositories, stored_sighting, "voter-1", reaction_type, now)

    assert stored_sighting.reporter_id is not None
    reputation = asyncio.run(
        repositories.reputation.get_by_user_id(stored_sighting.reporter_id)
    )
    assert reputation is not None
    assert reputation.score == expected_score


@pytest.mark.parametrize("reaction_type", [ReactionType.DOWNVOTE, ReactionType.SPAM])
def test_reaction_without_reputation_effect(
    repositories: RepositoryBundle,
    stored_sighting: Sighting,
    now: datetime,
    reaction_type: ReactionType,
) -> None:
    _react(repositories, stored_sighting, "voter-1", reaction_type, now)

    assert stored_sighting.reporter_id is not None
    reputation = asyncio.run(
        repositories.reputation.get_by_user_id(stored_sighting.reporter_id)
    )
    assert reputation is None


def test_add_then_remove_restores_counts_and_scores(
    repositories: RepositoryBundle, stored_sighting: Sighting, now: datetime
) -> None:
    _react(repositories, stored_sighting, "voter-1", ReactionType.UPVOTE, now)
    _react(repositories, stored_sighting, "voter-2", ReactionType.CONFIRMED, now)
    before = asyncio.run(repositories.sightings.get_by_id(stored_sighting.id))

    _react(repositories, stored_sighting, "voter-3", ReactionType.DISPUTED, now)
    removed = asyncio.run(
        remove_sighting_reaction_use_case(
            repositories,
            stored_sighting.id,
            UserId("voter-3"),
            ReactionType.DISPUTED,
            now=now,
        )
    )

    assert removed.ok
    after = asyncio.run(repositories.sightings.get_by_id(stored_sighting.id))
    assert before is not None and after is not None
    assert after.counts == before.counts
    assert after.score == before.score
    assert after.hot_score == pytest.approx(before.hot_score)


def test_remove_absent_reaction_is_noop(
    repositories: RepositoryBundle, stored_sighting: Sighting, now: datetime
) -> None:
    result = asyncio.run(
        remove_sighting_reaction_use_case(
            repositories, stored_sighting.id, UserId("voter-1"), "upvote", now=now
        )
    )

    assert result.ok
    stored = asyncio.run(repositories.sightings.get_by_id(stored_sighting.id))
    assert stored == stored_sighting


def test_remove_keeps_reputation_events(
    repositories: RepositoryBundle, stored_sighting: Sighting, now: datetime
) -> None:
    _react(repositories, stored_sighting, "voter-1", ReactionType.CONFIRMED, now)
    asyncio.run(
        remove_sighting_reaction_use_case(
            repositories, stored_sighting.id, UserId("voter-1"), "confirmed", now=now
        )
    )

    assert stored_sighting.reporter_id is not None
    reputation = asyncio.run(
        repositories.reputation.get_by_user_id(stored_sighting.reporter_id)
    )
    assert reputation is not None
    assert reputation.score == 2


def test_get_reactions_returns_counts(
    repositories: RepositoryBundle, stored_sighting: Sighting, now: datetime
) -> None:
    _react(repositories, stored_sighting, "voter-1", "spam", now)
    _react(repositories, stored_sighting, "voter-2", "spam", now)

    result = asyncio.run(get_sighting_reactions_use_case(repositories, stored_sighting.id))

    assert result.ok
    assert result.value == ReactionCounts(spam_reports=2)


def test_add_reaction_logs_event(
    repositories: RepositoryBundle, stored_sighting: Sighting, now: datetime
) -> None:
    with capture_logs() as logs:
        _react(repositories, stored_sighting, "voter-1", ReactionType.UPVOTE, now)

    events = [log["event"] for log in logs]
    assert "reaction_added" in events
    assert "reputation_event_applied" in events


def test_trigger_type_for_reaction() -> None:
    assert trigger_type_for_reaction(ReactionType.CONFIRMED) == TriggerType.SIGHTING_CONFIRMED
    assert trigger_type_for_reaction(ReactionType.DISPUTED) == TriggerType.SIGHTING_DISPUTED
    assert trigger_type_for_reaction(ReactionType.UPVOTE) is None
