"""Pytest configuration and shared fixtures."""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Generator
from datetime import datetime, timedelta
from typing import Any

import pytest
import pytz

from src.adapters.memory_store import InMemoryStore
from src.adapters.repository_factory import create_repositories
from src.config.logging_config import clear_context
from src.config.settings import Settings, get_settings
from src.domain.models import (
    AutoAssignConditions,
    CategoryId,
    Flair,
    FlairId,
    FlairType,
    Sighting,
    SightingId,
    SightingTypeId,
    Signal,
    SignalConditions,
    SignalId,
    TriggerType,
    UserId,
)
from src.domain.protocols import RepositoryBundle

NOW = datetime(2025, 10, 10, 12, 0, tzinfo=pytz.UTC)
REPORTER = UserId("reporter-1")


@pytest.fixture(autouse=True)
def _clean_log_context() -> Generator[None, None, None]:
    clear_context()
    yield
    clear_context()


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def settings() -> Settings:
    return get_settings().model_copy(update={"auto_assign_batch_limit": 100})


@pytest.fixture
def store() -> Generator[InMemoryStore, None, None]:
    memory_store = InMemoryStore()
    yield memory_store
    memory_store.clear()


@pytest.fixture
def repositories(settings: Settings, store: InMemoryStore) -> RepositoryBundle:
    return create_repositories(settings, store)


@pytest.fixture
def make_sighting() -> Callable[..., Sighting]:
    """Build a sighting created an hour before ``NOW``."""

    def _make(**overrides: Any) -> Sighting:
        values: dict[str, Any] = {
            "id": SightingId("sighting-1"),
            "category_id": CategoryId("cat-wildlife"),
            "type_id": SightingTypeId("type-bear"),
            "reporter_id": REPORTER,
            "tags": ["bear", "trail"],
            "created_at": NOW - timedelta(hours=1),
            "observed_at": NOW - timedelta(hours=1),
        }
        values.update(overrides)
        return Sighting(**values)

    return _make


@pytest.fixture
def stored_sighting(
    repositories: RepositoryBundle, make_sighting: Callable[..., Sighting]
) -> Sighting:
    sighting = make_sighting()
    asyncio.run(repositories.sightings.create(sighting))
    return sighting


@pytest.fixture
def make_signal() -> Callable[..., Signal]:
    def _make(**overrides: Any) -> Signal:
        values: dict[str, Any] = {
            "id": SignalId("signal-1"),
            "name": "Bears near trails",
            "owner_id": UserId("owner-1"),
            "triggers": [TriggerType.NEW_SIGHTING],
            "conditions": SignalConditions(),
        }
        values.update(overrides)
        return Signal(**values)

    return _make


@pytest.fixture
def make_flair() -> Callable[..., Flair]:
    def _make(**overrides: Any) -> Flair:
        values: dict[str, Any] = {
            "id": FlairId("flair-verified"),
            "label": "Verified",
            "color": "#22c55e",
            "flair_type": FlairType.STATUS,
        }
        values.update(overrides)
        return Flair(**values)

    return _make


@pytest.fixture
def spam_flair(make_flair: Callable[..., Flair]) -> Flair:
    return make_flair(
        id=FlairId("flair-spam"),
        label="Possible spam",
        color="#ef4444",
        flair_type=FlairType.SAFETY,
        auto_assign_conditions=AutoAssignConditions(spam_report_threshold=3),
    )
