"""Process bootstrap for hosts embedding the engine."""

from src.adapters.memory_store import InMemoryStore
from src.adapters.repository_factory import create_repositories
from src.config.logging_config import get_logger, setup_logging
from src.config.settings import Settings, get_settings
from src.domain.protocols import RepositoryBundle
from src.observability.metrics import ensure_metrics_exporter

logger = get_logger(__name__)


def initialize_logging(settings: Settings) -> None:
    """Configure structlog from ``log_level`` and ``log_json``."""

    setup_logging(log_level=settings.log_level, json_logs=settings.log_json)
    logger.info(
        "logging_initialized", level=settings.log_level, json_logs=settings.log_json
    )


def initialize_engine(
    settings: Settings | None = None,
    *,
    store: InMemoryStore | None = None,
    expose_metrics: bool = False,
) -> RepositoryBundle:
    """Set up logging, optionally the metrics exporter, and the repositories.

    Args:
        settings: Engine settings (loaded from env and ``config/`` when omitted)
        store: Backing store for the in-memory backend
        expose_metrics: Start the Prometheus exporter on ``settings.metrics_port``

    Returns:
        Repository bundle for the configured backend
    """
    settings = settings or get_settings()
    initialize_logging(settings)
    if expose_metrics:
        ensure_metrics_exporter(settings.metrics_port)

    repositories = create_repositories(settings, store)
    logger.info(
        "engine_initialized",
        backend=settings.repository_backend,
        metrics_exposed=expose_metrics,
    )
    return repositories
