"""Signal trigger evaluation.

Pure half of the trigger dispatcher: decides which saved signals fire for a
sighting event. Loading sightings, signals and reporter reputation happens
in ``src.use_cases.signal_dispatch``.
"""

from collections.abc import Iterable

from src.domain.models import (
    ReputationTier,
    Sighting,
    SightingMatchData,
    Signal,
    SignalEvaluation,
    SignalId,
    TriggerType,
)
from src.services.condition_matcher import describe_conditions, matches_conditions


def should_trigger(signal: Signal, trigger_type: TriggerType) -> bool:
    """True if the signal is active and subscribed to ``trigger_type``."""
    return signal.is_active and trigger_type in signal.triggers


def to_match_data(
    sighting: Sighting, reporter_trust_level: ReputationTier
) -> SightingMatchData:
    """Project a sighting onto the attributes conditions can see."""
    return SightingMatchData(
        category_id=sighting.category_id,
        type_id=sighting.type_id,
        tags=list(sighting.tags),
        importance=sighting.importance,
        score=sighting.score,
        reporter_trust_level=reporter_trust_level,
    )


def evaluate_signals(
    signals: Iterable[Signal],
    match_data: SightingMatchData,
    trigger_type: TriggerType,
) -> list[SignalId]:
    """Ids of the signals that fire, in input order.

    Example:
        >>> evaluate_signals([alert], data, TriggerType.NEW_SIGHTING)
        ['sig-1']
    """
    return [
        signal.id
        for signal in signals
        if should_trigger(signal, trigger_type)
        and matches_conditions(signal.conditions, match_data)
    ]


def explain_signal(
    signal: Signal, match_data: SightingMatchData, trigger_type: TriggerType
) -> SignalEvaluation:
    """Evaluate one signal and say why it did or did not fire."""
    if not signal.is_active:
        return SignalEvaluation(
            signal_id=signal.id, matched=False, reason="Signal is inactive"
        )
    if trigger_type not in signal.triggers:
        return SignalEvaluation(
            signal_id=signal.id,
            matched=False,
            reason=f"Signal does not listen for {trigger_type.value}",
        )

    summary = describe_conditions(signal.conditions)
    if matches_conditions(signal.conditions, match_data):
        return SignalEvaluation(
            signal_id=signal.id, matched=True, reason=f"Matched: {summary}"
        )
    return SignalEvaluation(
        signal_id=signal.id, matched=False, reason=f"Conditions not met: {summary}"
    )


def evaluate_signals_detailed(
    signals: Iterable[Signal],
    match_data: SightingMatchData,
    trigger_type: TriggerType,
) -> list[SignalEvaluation]:
    """One ``SignalEvaluation`` per signal, in input order."""
    return [explain_signal(signal, match_data, trigger_type) for signal in signals]


def find_score_threshold_signals(signals: Iterable[Signal]) -> list[Signal]:
    """Active signals that listen for score thresholds and define ``min_score``."""
    return [
        signal
        for signal in signals
        if should_trigger(signal, TriggerType.SCORE_THRESHOLD)
        and signal.conditions.min_score is not None
    ]


def crossed_score_threshold(
    current_score: float, previous_score: float, threshold: float
) -> bool:
    """True when a score moves from below ``threshold`` to at or above it."""
    return previous_score < threshold <= current_score
