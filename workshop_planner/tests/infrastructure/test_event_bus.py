"""
Tests for the in-memory event bus.
"""

from datetime import date
from uuid import uuid4

import pytest

from workshop_planner.domain.scheduling.events.domain_events import (
    DayDataChanged,
    DomainEvent,
    PlacementRejected,
)
from workshop_planner.infrastructure.events.event_bus import InMemoryEventBus

DAY = date(2024, 3, 11)


def changed(day: date = DAY) -> DayDataChanged:
    return DayDataChanged(day=day, technician_ids=(uuid4(),))


def rejected() -> PlacementRejected:
    return PlacementRejected(
        appointment_id=uuid4(),
        technician_id=uuid4(),
        day=DAY,
        error_type="validation",
        reason="nope",
    )


class TestInMemoryEventBus:
    def test_publish_to_sync_handlers(self, event_bus):
        received = []
        event_bus.subscribe(DayDataChanged, received.append)
        event = changed()

        event_bus.publish(event)

        assert received == [event]

    def test_handlers_only_see_their_type(self, event_bus):
        received = []
        event_bus.subscribe(DayDataChanged, received.append)

        event_bus.publish(rejected())

        assert received == []

    def test_base_class_subscribers_see_everything(self, event_bus):
        received = []
        event_bus.subscribe(DomainEvent, received.append)

        event_bus.publish(changed())
        event_bus.publish(rejected())

        assert [e.event_type for e in received] == ["DayDataChanged", "PlacementRejected"]

    def test_duplicate_subscription_is_ignored(self, event_bus):
        received = []
        event_bus.subscribe(DayDataChanged, received.append)
        event_bus.subscribe(DayDataChanged, received.append)

        event_bus.publish(changed())

        assert len(received) == 1
        assert event_bus.get_handler_count(DayDataChanged) == 1

    def test_failing_handler_does_not_stop_delivery(self, event_bus):
        received = []

        def broken(event):
            raise RuntimeError("handler bug")

        event_bus.subscribe(DayDataChanged, broken)
        event_bus.subscribe(DayDataChanged, received.append)

        event_bus.publish(changed())

        assert len(received) == 1

    @pytest.mark.asyncio
    async def test_publish_async_runs_both_kinds(self, event_bus):
        calls = []

        async def on_changed(event):
            calls.append(("async", event.day))

        event_bus.subscribe(DayDataChanged, lambda e: calls.append(("sync", e.day)))
        event_bus.subscribe_async(DayDataChanged, on_changed)

        await event_bus.publish_async(changed())

        assert calls == [("sync", DAY), ("async", DAY)]

    @pytest.mark.asyncio
    async def test_failing_async_handler_is_isolated(self, event_bus):
        calls = []

        async def broken(event):
            raise RuntimeError("handler bug")

        async def healthy(event):
            calls.append(event)

        event_bus.subscribe_async(DayDataChanged, broken)
        event_bus.subscribe_async(DayDataChanged, healthy)

        await event_bus.publish_async(changed())

        assert len(calls) == 1

    def test_async_handlers_ignored_by_sync_publish(self, event_bus):
        calls = []

        async def on_changed(event):
            calls.append(event)

        event_bus.subscribe_async(DayDataChanged, on_changed)

        event_bus.publish(changed())

        assert calls == []

    @pytest.mark.asyncio
    async def test_publish_all_keeps_order(self, event_bus):
        received = []
        event_bus.subscribe(DomainEvent, received.append)
        events = [changed(), rejected(), changed()]

        await event_bus.publish_all(events)

        assert received == events

    def test_unsubscribe(self, event_bus):
        received = []
        event_bus.subscribe(DayDataChanged, received.append)

        event_bus.unsubscribe(DayDataChanged, received.append)
        event_bus.publish(changed())

        assert received == []
        assert event_bus.get_handler_count(DayDataChanged) == 0

    def test_clear_handlers(self, event_bus):
        event_bus.subscribe(DayDataChanged, lambda e: None)
        event_bus.subscribe(PlacementRejected, lambda e: None)

        event_bus.clear_handlers(DayDataChanged)

        assert event_bus.get_handler_count(DayDataChanged) == 0
        assert event_bus.get_handler_count(PlacementRejected) == 1

        event_bus.clear_handlers()

        assert event_bus.get_handler_count(PlacementRejected) == 0

    def test_history_filtering_and_limit(self):
        bus = InMemoryEventBus(max_history_size=3)
        first = changed()
        bus.publish(first)
        bus.publish(rejected())
        bus.publish(changed())
        bus.publish(changed())

        history = bus.get_event_history()

        assert len(history) == 3
        assert first not in history
        assert len(bus.get_event_history(DayDataChanged)) == 2

        bus.clear_event_history()

        assert bus.get_event_history() == []
