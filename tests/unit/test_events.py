"""Tests for the in-process event bus."""

import pytest

from taskpulse.core.events import TASK_COMPLETED, EventBus


@pytest.mark.unit
class TestEventBus:
    """Tests for EventBus."""

    def test_handlers_run_in_subscription_order(self):
        """Handlers are called synchronously in order."""
        bus = EventBus()
        calls = []
        bus.subscribe(TASK_COMPLETED, lambda event: calls.append(("first", event.payload["n"])))
        bus.subscribe(TASK_COMPLETED, lambda event: calls.append(("second", event.payload["n"])))

        event = bus.publish(TASK_COMPLETED, n=1)

        assert calls == [("first", 1), ("second", 1)]
        assert event.type == TASK_COMPLETED
        assert event.id.startswith("evt-")
        assert bus.events_published == 1

    def test_failing_handler_does_not_stop_others(self):
        """A handler exception is logged, not raised."""
        bus = EventBus()
        calls = []

        def broken(_event):
            raise RuntimeError("boom")

        bus.subscribe(TASK_COMPLETED, broken)
        bus.subscribe(TASK_COMPLETED, lambda event: calls.append(event.id))

        bus.publish(TASK_COMPLETED)

        assert len(calls) == 1

    def test_unsubscribe(self):
        """Unsubscribed handlers stop receiving events; unsubscribing twice is harmless."""
        bus = EventBus()
        calls = []
        unsubscribe = bus.subscribe(TASK_COMPLETED, calls.append)

        unsubscribe()
        unsubscribe()
        bus.publish(TASK_COMPLETED)

        assert calls == []

    def test_other_event_types_ignored(self):
        """Handlers only see their own event type."""
        bus = EventBus()
        calls = []
        bus.subscribe(TASK_COMPLETED, calls.append)

        bus.publish("task.deleted")

        assert calls == []
