"""Collection of completion samples and the cached productivity pattern."""

import logging
from collections.abc import Callable
from datetime import datetime

from taskpulse.core.config import Constants
from taskpulse.core.events import TASK_COMPLETED, Event, EventBus
from taskpulse.domain.productivity import (
    WEEKDAY_NAMES,
    CompletionBreakdown,
    ProductivityPattern,
    ProductivitySample,
    TimeOfDay,
)
from taskpulse.domain.task import Task
from taskpulse.services import pattern_analyzer


logger = logging.getLogger(__name__)


def completion_duration_minutes(created_at: datetime | None, completed_at: datetime | None) -> int:
    """Whole minutes from creation to completion, floored; 0 for negative or uncomputable deltas."""
    if created_at is None or completed_at is None:
        return 0
    try:
        seconds = (completed_at - created_at).total_seconds()
    except TypeError:
        # naive/aware mix
        return 0
    return max(int(seconds // 60), 0)


def weekday_name(moment: datetime) -> str:
    """English weekday name, independent of the process locale."""
    return WEEKDAY_NAMES[(moment.weekday() + 1) % 7]


def build_sample(task: Task, completed_at: datetime) -> ProductivitySample:
    """Derive the sample for one completion of task."""
    return ProductivitySample(
        time_of_day=TimeOfDay.from_hour(completed_at.hour),
        day_of_week=weekday_name(completed_at),
        hour=completed_at.hour,
        category=task.category,
        priority=task.priority,
        completion_duration_minutes=completion_duration_minutes(task.created_at, completed_at),
    )


class MetricsCollector:
    """Append-only history of completion samples.

    Once MIN_SAMPLES samples exist, every new sample recomputes the cached
    pattern from the full history before record() returns.
    """

    def __init__(self, *, min_samples: int = Constants.MIN_SAMPLES) -> None:
        self._min_samples = min_samples
        self._samples: list[ProductivitySample] = []
        self._pattern: ProductivityPattern | None = None

    @property
    def samples(self) -> tuple[ProductivitySample, ...]:
        """Recorded samples, oldest first."""
        return tuple(self._samples)

    @property
    def pattern(self) -> ProductivityPattern | None:
        """Cached pattern, or None until the minimum-sample gate is met."""
        return self._pattern

    def can_provide_insights(self) -> bool:
        """Whether enough samples exist to derive a pattern."""
        return len(self._samples) >= self._min_samples

    def record(self, task: Task, completed_at: datetime) -> ProductivitySample:
        """Record one completion and refresh the pattern when gated."""
        sample = build_sample(task, completed_at)
        self._samples.append(sample)

        if self.can_provide_insights():
            self._pattern = pattern_analyzer.analyze_samples(self._samples)

        logger.debug(
            "Recorded completion sample",
            extra={"task_id": task.id, "samples": len(self._samples), "bucket": str(sample.time_of_day)},
        )
        return sample

    def breakdown(self) -> CompletionBreakdown:
        """Hour and weekday distribution of all recorded completions."""
        return pattern_analyzer.completion_breakdown(self._samples)

    def handle_completed(self, event: Event) -> None:
        """Event handler for task.completed."""
        task = event.payload["task"]
        completed_at = event.payload["completed_at"]
        self.record(task, completed_at)

    def subscribe_to(self, bus: EventBus) -> Callable[[], None]:
        """Subscribe to completion events; returns the unsubscribe callable."""
        return bus.subscribe(TASK_COMPLETED, self.handle_completed)
