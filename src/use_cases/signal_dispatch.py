"""Signal dispatch use cases.

Loads a sighting and its reporter's trust tier, then runs the saved signals
through the trigger filter and condition matcher. Delivery of the matches
is left to the caller.
"""

from src.config.logging_config import get_logger
from src.domain.models import (
    ReputationTier,
    Sighting,
    SignalEvaluation,
    SignalId,
    SightingId,
    TriggerType,
)
from src.domain.protocols import RepositoryBundle
from src.domain.result import Ok, Result, err
from src.observability.metrics import SIGNAL_MATCHES_TOTAL, observe_duration
from src.observability.tracing import operation_scope
from src.services.reputation import tier_for
from src.services.signal_evaluator import (
    crossed_score_threshold,
    evaluate_signals,
    explain_signal,
    find_score_threshold_signals,
    to_match_data,
)

logger = get_logger(__name__)


async def _reporter_tier(
    repositories: RepositoryBundle, sighting: Sighting
) -> ReputationTier:
    """Anonymous and unknown reporters count as unverified."""
    if not sighting.reporter_id:
        return ReputationTier.UNVERIFIED
    reputation = await repositories.reputation.get_by_user_id(sighting.reporter_id)
    return tier_for(reputation)


async def evaluate_all_signals_use_case(
    repositories: RepositoryBundle,
    sighting_id: SightingId,
    trigger_type: TriggerType,
    *,
    previous_score: float | None = None,
    correlation_id: str | None = None,
) -> Result[list[SignalId]]:
    """Ids of the active signals that fire for a sighting event.

    Args:
        repositories: Repository bundle
        sighting_id: Sighting the event is about
        trigger_type: Event kind
        previous_score: For score_threshold events, the score before the
            change; only signals whose ``min_score`` was crossed fire
        correlation_id: Correlation id to bind into logs

    Returns:
        Ok with matched signal ids in repository order, or
        Err(sighting.not_found)
    """
    with (
        operation_scope("evaluate_all_signals", correlation_id) as bound_id,
        observe_duration("evaluate_all_signals"),
    ):
        sighting = await repositories.sightings.get_by_id(sighting_id)
        if sighting is None:
            return err("sighting.not_found", "Sighting not found", field="sighting_id")

        tier = await _reporter_tier(repositories, sighting)
        signals = await repositories.signals.list(is_active=True)

        if trigger_type == TriggerType.SCORE_THRESHOLD and previous_score is not None:
            signals = [
                signal
                for signal in find_score_threshold_signals(signals)
                if signal.conditions.min_score is not None
                and crossed_score_threshold(
                    sighting.score, previous_score, signal.conditions.min_score
                )
            ]

        matched = evaluate_signals(signals, to_match_data(sighting, tier), trigger_type)
        if matched:
            SIGNAL_MATCHES_TOTAL.labels(trigger=trigger_type.value).inc(len(matched))

        logger.info(
            "signals_evaluated",
            correlation_id=bound_id,
            sighting_id=sighting_id,
            trigger_type=trigger_type.value,
            reporter_tier=tier.value,
            signal_count=len(signals),
            matched_count=len(matched),
        )
        return Ok(matched)


async def evaluate_signal_for_sighting_use_case(
    repositories: RepositoryBundle,
    signal_id: SignalId,
    sighting_id: SightingId,
    trigger_type: TriggerType,
) -> Result[SignalEvaluation]:
    """Evaluate one signal against one sighting, with the reason."""
    signal = await repositories.signals.get_by_id(signal_id)
    if signal is None:
        return err("signal.not_found", "Signal not found", field="signal_id")

    sighting = await repositories.sightings.get_by_id(sighting_id)
    if sighting is None:
        return err("sighting.not_found", "Sighting not found", field="sighting_id")

    tier = await _reporter_tier(repositories, sighting)
    evaluation = explain_signal(signal, to_match_data(sighting, tier), trigger_type)
    logger.debug(
        "signal_evaluated",
        signal_id=signal_id,
        sighting_id=sighting_id,
        matched=evaluation.matched,
        reason=evaluation.reason,
    )
    return Ok(evaluation)
