"""Factory for creating repository bundles."""

from src.adapters.memory_repositories import (
    InMemoryFlairRepository,
    InMemoryReactionRepository,
    InMemoryReputationRepository,
    InMemorySightingFlairRepository,
    InMemorySightingRepository,
    InMemorySignalRepository,
)
from src.adapters.memory_store import InMemoryStore
from src.config.logging_config import get_logger
from src.config.settings import Settings
from src.domain.protocols import RepositoryBundle

logger = get_logger(__name__)


def create_repositories(
    settings: Settings, store: InMemoryStore | None = None
) -> RepositoryBundle:
    """Create the repository bundle selected by settings.

    Args:
        settings: Application settings
        store: Existing in-memory store to wrap (a fresh one when omitted)

    Returns:
        Bundle of all six repositories over the same backend

    Raises:
        ValueError: If repository_backend is not supported
    """
    if settings.repository_backend == "memory":
        backing_store = store if store is not None else InMemoryStore()
        logger.info("repository_memory_selected", shared_store=store is not None)
        return RepositoryBundle(
            sightings=InMemorySightingRepository(backing_store),
            reactions=InMemoryReactionRepository(backing_store),
            reputation=InMemoryReputationRepository(backing_store),
            signals=InMemorySignalRepository(backing_store),
            flairs=InMemoryFlairRepository(backing_store),
            sighting_flairs=InMemorySightingFlairRepository(backing_store),
        )

    raise ValueError(
        f"Unsupported repository backend: {settings.repository_backend}. "
        f"Must be 'memory'"
    )
