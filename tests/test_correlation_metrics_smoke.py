from __future__ import annotations

import asyncio
from datetime import datetime

import structlog
from structlog.testing import capture_logs

from src.config.logging_config import get_logger
from src.domain.models import ReactionType, Sighting, UserId
from src.domain.protocols import RepositoryBundle
from src.observability.metrics import OPERATION_DURATION_SECONDS, REACTIONS_TOTAL
from src.observability.tracing import (
    CORRELATION_ID_KEY,
    correlation_scope,
    current_correlation_id,
    operation_scope,
)
from src.use_cases.sighting_reactions import add_sighting_reaction_use_case


def test_reaction_emits_correlation_and_metrics(
    repositories: RepositoryBundle, stored_sighting: Sighting, now: datetime
) -> None:
    durations_before = _histogram_count("add_sighting_reaction")
    reactions_before = _counter_value(action="add", reaction_type="upvote")

    with capture_logs() as logs:
        result = asyncio.run(
            add_sighting_reaction_use_case(
                repositories,
                stored_sighting.id,
                UserId("voter-1"),
                ReactionType.UPVOTE,
                now=now,
                correlation_id="corr-smoke",
            )
        )

    assert result.ok
    correlated = [log for log in logs if log.get("correlation_id") == "corr-smoke"]
    assert {log["event"] for log in correlated} >= {
        "reaction_added",
        "reputation_event_applied",
    }
    assert _histogram_count("add_sighting_reaction") == durations_before + 1
    assert _counter_value(action="add", reaction_type="upvote") == reactions_before + 1


def test_nested_scopes_share_correlation_id() -> None:
    with operation_scope("outer", "corr-outer") as outer_id:
        with operation_scope("inner") as inner_id:
            assert inner_id == outer_id
            assert structlog.contextvars.get_contextvars()["operation"] == "inner"
        assert structlog.contextvars.get_contextvars()["operation"] == "outer"

    assert current_correlation_id() is None


def test_correlation_scope_generates_and_unbinds() -> None:
    with correlation_scope() as generated:
        assert generated
        assert structlog.contextvars.get_contextvars()[CORRELATION_ID_KEY] == generated
        LOGGER.info("inside_scope")

    assert CORRELATION_ID_KEY not in structlog.contextvars.get_contextvars()


def _histogram_count(operation: str) -> float:
    for metric in OPERATION_DURATION_SECONDS.collect():
        for sample in metric.samples:
            if sample.name.endswith("_count") and sample.labels["operation"] == operation:
                return sample.value
    return 0.0


def _counter_value(*, action: str, reaction_type: str) -> float:
    for metric in REACTIONS_TOTAL.collect():
        for sample in metric.samples:
            if (
                sample.name.endswith("_total")
                and sample.labels["action"] == action
                and sample.labels["type"] == reaction_type
            ):
                return sample.value
    return 0.0


LOGGER = get_logger(__name__)
