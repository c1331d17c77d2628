"""Wiring of the task store, event bus and analytics for one user session."""

import logging
from collections.abc import Callable, Sequence
from datetime import datetime

from taskpulse.core.cache_client import LocalCache, LocalCacheDocumentStore
from taskpulse.core.config import Constants, Settings, settings
from taskpulse.core.db_client import DocumentStore, SqliteDocumentStore
from taskpulse.core.events import EventBus
from taskpulse.domain.productivity import CompletionBreakdown, ProductivityPattern
from taskpulse.domain.task import Task
from taskpulse.services import recommendations as recommendations_service
from taskpulse.services.metrics_collector import MetricsCollector
from taskpulse.services.task_store import PersistenceErrorHook, TaskStore, local_now


logger = logging.getLogger(__name__)


def build_document_store(config: Settings | None = None) -> tuple[DocumentStore, str]:
    """Pick the document store for the configured identity.

    With an owner configured, tasks go to the SQLite document store under that
    owner. Without one, the session runs offline against the local cache file.

    Returns:
        Tuple of (document store, owner id)
    """
    config = config or settings
    if config.uses_remote_store and config.owner_id:
        logger.info("Using SQLite document store", extra={"owner_id": config.owner_id})
        return SqliteDocumentStore(config.sqlite_db_path), config.owner_id

    logger.info("No owner configured, using local cache", extra={"path": config.local_cache_path})
    return LocalCacheDocumentStore(LocalCache(config.local_cache_path)), Constants.LOCAL_OWNER_ID


class TaskSession:
    """One user's task store with analytics subscribed to its completions."""

    def __init__(
        self,
        backend: DocumentStore,
        owner_id: str,
        *,
        config: Settings | None = None,
        clock: Callable[[], datetime] = local_now,
        on_persistence_error: PersistenceErrorHook | None = None,
    ) -> None:
        config = config or settings
        self.backend = backend
        self.bus = EventBus()
        self.metrics = MetricsCollector()
        self._unsubscribe = self.metrics.subscribe_to(self.bus)
        self.store = TaskStore(
            backend=backend,
            bus=self.bus,
            owner_id=owner_id,
            default_category=config.default_category,
            clock=clock,
            on_persistence_error=on_persistence_error,
        )

    @classmethod
    def from_settings(
        cls,
        config: Settings | None = None,
        *,
        on_persistence_error: PersistenceErrorHook | None = None,
    ) -> "TaskSession":
        """Build a session with the document store the settings select."""
        backend, owner_id = build_document_store(config)
        return cls(backend, owner_id, config=config, on_persistence_error=on_persistence_error)

    @property
    def pattern(self) -> ProductivityPattern | None:
        """Current productivity pattern, or None before enough completions."""
        return self.metrics.pattern

    def recommendations(self) -> list[str]:
        """Advice sentences for the current pattern."""
        return recommendations_service.recommendations(self.metrics.pattern)

    def optimal_order(self, tasks: Sequence[Task] | None = None) -> list[Task]:
        """Tasks (default: the visible ones) ordered by the current pattern."""
        if tasks is None:
            tasks = self.store.visible_tasks()
        return recommendations_service.optimal_order(tasks, self.metrics.pattern)

    def breakdown(self) -> CompletionBreakdown:
        """Hour and weekday distribution of completions."""
        return self.metrics.breakdown()

    async def close(self) -> None:
        """Detach analytics and release the document store."""
        self._unsubscribe()
        close = getattr(self.backend, "close", None)
        if close is not None:
            await close()
