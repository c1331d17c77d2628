"""Pytest configuration and fixtures for unit tests."""

from datetime import datetime, timedelta

import pytest

from taskpulse.core.errors import PersistenceError
from taskpulse.core.events import EventBus
from taskpulse.services.metrics_collector import MetricsCollector
from taskpulse.services.task_store import TaskStore
from tests.unit.mocks import OWNER_ID, InMemoryDocumentStore


class FakeClock:
    """Controllable clock returning timezone-aware local times."""

    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **delta: float) -> datetime:
        """Move the clock by a timedelta expressed as keyword arguments."""
        self.now = self.now + timedelta(**delta)
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    """Clock starting Monday 2024-01-01 09:00 local time."""
    return FakeClock(datetime(2024, 1, 1, 9, 0).astimezone())


@pytest.fixture
def document_store() -> InMemoryDocumentStore:
    """Provides a fresh InMemoryDocumentStore for each test."""
    return InMemoryDocumentStore()


@pytest.fixture
def bus() -> EventBus:
    """Provides a fresh event bus."""
    return EventBus()


@pytest.fixture
def collector(bus: EventBus) -> MetricsCollector:
    """Metrics collector subscribed to the bus."""
    metrics = MetricsCollector()
    metrics.subscribe_to(bus)
    return metrics


@pytest.fixture
def persistence_errors() -> list[PersistenceError]:
    """Errors reported through the store's persistence hook."""
    return []


@pytest.fixture
def store(
    document_store: InMemoryDocumentStore,
    bus: EventBus,
    collector: MetricsCollector,
    clock: FakeClock,
    persistence_errors: list[PersistenceError],
) -> TaskStore:
    """Task store over the in-memory document store with analytics attached."""
    return TaskStore(
        backend=document_store,
        bus=bus,
        owner_id=OWNER_ID,
        default_category="Other",
        clock=clock,
        on_persistence_error=persistence_errors.append,
    )
