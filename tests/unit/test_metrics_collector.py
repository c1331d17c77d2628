"""Tests for completion sample collection."""

from datetime import datetime, timedelta

import pytest

from taskpulse.core.events import TASK_COMPLETED, EventBus
from taskpulse.domain.productivity import TimeOfDay
from taskpulse.domain.task import Task
from taskpulse.services.metrics_collector import (
    MetricsCollector,
    build_sample,
    completion_duration_minutes,
    weekday_name,
)


# Wednesday
CREATED = datetime(2024, 1, 3, 8, 0).astimezone()


def make_task(category: str = "Work", created_at: datetime = CREATED) -> Task:
    return Task(id=f"t-{category}-{created_at.isoformat()}", title="t", category=category, created_at=created_at)


@pytest.mark.unit
class TestCompletionDuration:
    """Tests for completion_duration_minutes."""

    def test_floors_partial_minutes(self):
        """Durations are whole minutes, rounded down."""
        assert completion_duration_minutes(CREATED, CREATED + timedelta(minutes=9, seconds=59)) == 9

    def test_negative_delta_clamped(self):
        """Completion before creation counts as zero."""
        assert completion_duration_minutes(CREATED, CREATED - timedelta(minutes=5)) == 0

    def test_missing_timestamp(self):
        """Uncomputable durations count as zero."""
        assert completion_duration_minutes(None, CREATED) == 0

    def test_naive_aware_mix(self):
        """Mixing naive and aware datetimes counts as zero."""
        assert completion_duration_minutes(datetime(2024, 1, 3, 8, 0), CREATED) == 0


@pytest.mark.unit
class TestBuildSample:
    """Tests for deriving a sample from a completion."""

    @pytest.mark.parametrize(
        ("hour", "bucket"),
        [
            (5, TimeOfDay.MORNING),
            (11, TimeOfDay.MORNING),
            (12, TimeOfDay.AFTERNOON),
            (16, TimeOfDay.AFTERNOON),
            (17, TimeOfDay.EVENING),
            (21, TimeOfDay.EVENING),
            (22, TimeOfDay.NIGHT),
            (0, TimeOfDay.NIGHT),
            (4, TimeOfDay.NIGHT),
        ],
    )
    def test_time_of_day_buckets(self, hour, bucket):
        """Completion hour decides the bucket."""
        completed_at = datetime(2024, 1, 3, hour, 15).astimezone()
        task = make_task(created_at=completed_at - timedelta(minutes=1))

        sample = build_sample(task, completed_at)

        assert sample.time_of_day == bucket
        assert sample.hour == hour

    def test_weekday_names_are_english(self):
        """Weekday names do not depend on the locale."""
        assert weekday_name(datetime(2024, 1, 7, 12, 0)) == "Sunday"
        assert weekday_name(datetime(2024, 1, 8, 12, 0)) == "Monday"
        assert weekday_name(datetime(2024, 1, 13, 12, 0)) == "Saturday"

    def test_sample_copies_task_fields(self):
        """Category and priority come from the task."""
        sample = build_sample(make_task("Study"), CREATED + timedelta(minutes=30))

        assert sample.category == "Study"
        assert sample.day_of_week == "Wednesday"
        assert sample.completion_duration_minutes == 30


@pytest.mark.unit
class TestMetricsCollector:
    """Tests for the minimum-sample gate and pattern refresh."""

    def test_no_pattern_before_five_samples(self):
        """Four samples are not enough for insights."""
        collector = MetricsCollector()
        for minutes in (10, 20, 30, 40):
            collector.record(make_task(), CREATED + timedelta(minutes=minutes))

        assert collector.can_provide_insights() is False
        assert collector.pattern is None

    def test_pattern_after_fifth_sample(self):
        """The fifth sample produces a pattern with the mean duration."""
        collector = MetricsCollector()
        for minutes in (10, 20, 30, 40, 50):
            collector.record(make_task(), CREATED + timedelta(minutes=minutes))

        assert collector.can_provide_insights() is True
        assert collector.pattern is not None
        assert collector.pattern.average_task_duration == 30
        assert collector.pattern.most_productive_time_of_day == TimeOfDay.MORNING
        assert collector.pattern.most_productive_day_of_week == "Wednesday"

    def test_pattern_refreshes_on_each_later_sample(self):
        """Every sample after the gate recomputes from the full history."""
        collector = MetricsCollector()
        for minutes in (10, 20, 30, 40, 50):
            collector.record(make_task(), CREATED + timedelta(minutes=minutes))

        collector.record(make_task(), CREATED + timedelta(minutes=60))

        assert collector.pattern.average_task_duration == 35

    def test_subscribes_to_completion_events(self):
        """Completion events on the bus are recorded."""
        bus = EventBus()
        collector = MetricsCollector()
        unsubscribe = collector.subscribe_to(bus)

        bus.publish(TASK_COMPLETED, task=make_task(), completed_at=CREATED + timedelta(minutes=5))
        unsubscribe()
        bus.publish(TASK_COMPLETED, task=make_task(), completed_at=CREATED + timedelta(minutes=5))

        assert len(collector.samples) == 1

    def test_breakdown_without_samples(self):
        """An empty history falls back to hour 0 and Monday."""
        breakdown = MetricsCollector().breakdown()

        assert breakdown.most_productive_hour == 0
        assert breakdown.most_productive_day == "Monday"
        assert breakdown.completion_rate_by_hour == {}
        assert breakdown.average_completion_minutes == 0.0
