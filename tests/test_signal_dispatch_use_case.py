"""Tests for the signal dispatch use cases."""

import asyncio
from collections.abc import Callable

from structlog.testing import capture_logs

from src.domain.models import (
    ReputationTier,
    Sighting,
    SightingId,
    Signal,
    SignalConditions,
    SignalId,
    TriggerType,
    UserReputation,
)
from src.domain.protocols import RepositoryBundle
from src.use_cases.signal_dispatch import (
    evaluate_all_signals_use_case,
    evaluate_signal_for_sighting_use_case,
)


def _save(repositories: RepositoryBundle, *signals: Signal) -> None:
    for signal in signals:
        asyncio.run(repositories.signals.save(signal))


def test_matches_active_signals(
    repositories: RepositoryBundle,
    stored_sighting: Sighting,
    make_signal: Callable[..., Signal],
) -> None:
    _save(
        repositories,
        make_signal(id=SignalId("all")),
        make_signal(
            id=SignalId("wildlife"),
            conditions=SignalConditions(category_ids=[stored_sighting.category_id]),
        ),
        make_signal(id=SignalId("off"), is_active=False),
        make_signal(
            id=SignalId("roads"), conditions=SignalConditions(category_ids=["cat-roads"])
        ),
    )

    result = asyncio.run(
        evaluate_all_signals_use_case(
            repositories, stored_sighting.id, TriggerType.NEW_SIGHTING
        )
    )

    assert result.ok
    assert result.value == ["all", "wildlife"]


def test_unknown_sighting(repositories: RepositoryBundle) -> None:
    result = asyncio.run(
        evaluate_all_signals_use_case(
            repositories, SightingId("missing"), TriggerType.NEW_SIGHTING
        )
    )

    assert not result.ok
    assert result.error.code == "sighting.not_found"


def test_reporter_tier_comes_from_reputation(
    repositories: RepositoryBundle,
    stored_sighting: Sighting,
    make_signal: Callable[..., Signal],
) -> None:
    _save(
        repositories,
        make_signal(
            conditions=SignalConditions(min_trust_level=ReputationTier.TRUSTED)
        ),
    )

    before = asyncio.run(
        evaluate_all_signals_use_case(
            repositories, stored_sighting.id, TriggerType.NEW_SIGHTING
        )
    )
    assert stored_sighting.reporter_id is not None
    asyncio.run(
        repositories.reputation.create(
            UserReputation(user_id=stored_sighting.reporter_id, score=60)
        )
    )
    after = asyncio.run(
        evaluate_all_signals_use_case(
            repositories, stored_sighting.id, TriggerType.NEW_SIGHTING
        )
    )

    assert before.ok and after.ok
    assert before.value == []
    assert after.value == ["signal-1"]


def test_anonymous_reporter_is_unverified(
    repositories: RepositoryBundle,
    make_sighting: Callable[..., Sighting],
    make_signal: Callable[..., Signal],
) -> None:
    anonymous = make_sighting(id=SightingId("anon"), reporter_id=None)
    asyncio.run(repositories.sightings.create(anonymous))
    _save(
        repositories,
        make_signal(
            id=SignalId("new-plus"),
            conditions=SignalConditions(min_trust_level=ReputationTier.NEW),
        ),
        make_signal(
            id=SignalId("anyone"),
            conditions=SignalConditions(min_trust_level=ReputationTier.UNVERIFIED),
        ),
    )

    result = asyncio.run(
        evaluate_all_signals_use_case(repositories, anonymous.id, TriggerType.NEW_SIGHTING)
    )

    assert result.ok
    assert result.value == ["anyone"]


def test_score_threshold_requires_crossing(
    repositories: RepositoryBundle,
    make_sighting: Callable[..., Sighting],
    make_signal: Callable[..., Signal],
) -> None:
    sighting = make_sighting(score=12)
    asyncio.run(repositories.sightings.create(sighting))
    _save(
        repositories,
        make_signal(
            id=SignalId("ten"),
            triggers=[TriggerType.SCORE_THRESHOLD],
            conditions=SignalConditions(min_score=10),
        ),
        make_signal(
            id=SignalId("five"),
            triggers=[TriggerType.SCORE_THRESHOLD],
            conditions=SignalConditions(min_score=5),
        ),
    )

    result = asyncio.run(
        evaluate_all_signals_use_case(
            repositories, sighting.id, TriggerType.SCORE_THRESHOLD, previous_score=8
        )
    )

    assert result.ok
    assert result.value == ["ten"]


def test_logs_match_count_with_correlation_id(
    repositories: RepositoryBundle,
    stored_sighting: Sighting,
    make_signal: Callable[..., Signal],
) -> None:
    _save(repositories, make_signal())

    with capture_logs() as logs:
        asyncio.run(
            evaluate_all_signals_use_case(
                repositories,
                stored_sighting.id,
                TriggerType.NEW_SIGHTING,
                correlation_id="corr-signals",
            )
        )

    evaluated = [log for log in logs if log["event"] == "signals_evaluated"]
    assert evaluated[0]["correlation_id"] == "corr-signals"
    assert evaluated[0]["matched_count"] == 1


def test_single_signal_evaluation(
    repositories: RepositoryBundle,
    stored_sighting: Sighting,
    make_signal: Callable[..., Signal],
) -> None:
    _save(repositories, make_signal(conditions=SignalConditions(min_score=1)))

    result = asyncio.run(
        evaluate_signal_for_sighting_use_case(
            repositories,
            SignalId("signal-1"),
            stored_sighting.id,
            TriggerType.NEW_SIGHTING,
        )
    )

    assert result.ok
    assert result.value.matched is False
    assert result.value.reason == "Conditions not met: score >= 1"


def test_single_signal_not_found(
    repositories: RepositoryBundle, stored_sighting: Sighting
) -> None:
    result = asyncio.run(
        evaluate_signal_for_sighting_use_case(
            repositories, SignalId("nope"), stored_sighting.id, TriggerType.NEW_SIGHTING
        )
    )

    assert not result.ok
    assert result.error.code == "signal.not_found"
