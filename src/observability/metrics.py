"""Prometheus instruments for the engagement engine.

Instruments are module-level singletons registered in the default
prometheus_client registry. The HTTP exporter only starts when
``ensure_metrics_exporter`` is called.
"""

from __future__ import annotations

import threading
from collections.abc import Iterator
from contextlib import contextmanager
from time import perf_counter
from typing import Final

from prometheus_client import Counter, Histogram, start_http_server

from src.config.logging_config import get_logger

logger = get_logger(__name__)

REACTIONS_TOTAL: Final[Counter] = Counter(
    "engine_reactions_total",
    "Reactions added or removed",
    labelnames=("action", "type"),
)

REPUTATION_EVENTS_TOTAL: Final[Counter] = Counter(
    "engine_reputation_events_total",
    "Reputation events appended to the ledger",
    labelnames=("reason",),
)

SIGNAL_MATCHES_TOTAL: Final[Counter] = Counter(
    "engine_signal_matches_total",
    "Signals that fired for a sighting event",
    labelnames=("trigger",),
)

FLAIR_ASSIGNMENTS_TOTAL: Final[Counter] = Counter(
    "engine_flair_assignments_total",
    "Flairs attached to sightings",
    labelnames=("method",),
)

OPERATION_DURATION_SECONDS: Final[Histogram] = Histogram(
    "engine_operation_duration_seconds",
    "Duration of engine use cases in seconds",
    labelnames=("operation",),
)

_EXPORTER_LOCK = threading.Lock()
_EXPORTER_STARTED = False


@contextmanager
def observe_duration(operation: str) -> Iterator[None]:
    """Record the wall time of the block under ``operation``."""
    started = perf_counter()
    try:
        yield
    finally:
        OPERATION_DURATION_SECONDS.labels(operation=operation).observe(
            perf_counter() - started
        )


def ensure_metrics_exporter(port: int) -> None:
    """Start Prometheus HTTP exporter once per process."""

    global _EXPORTER_STARTED
    with _EXPORTER_LOCK:
        if _EXPORTER_STARTED:
            return

        try:
            start_http_server(port)
        except OSError as exc:
            logger.error(
                "metrics_exporter_start_failed",
                port=port,
                error=str(exc),
            )
            raise

        _EXPORTER_STARTED = True
        logger.info("metrics_exporter_started", port=port)


__all__ = [
    "FLAIR_ASSIGNMENTS_TOTAL",
    "OPERATION_DURATION_SECONDS",
    "REACTIONS_TOTAL",
    "REPUTATION_EVENTS_TOTAL",
    "SIGNAL_MATCHES_TOTAL",
    "ensure_metrics_exporter",
    "observe_duration",
]
