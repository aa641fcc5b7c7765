"""
Unit tests for domain event dispatch and technician notifications.
"""

from unittest.mock import AsyncMock
from uuid import UUID, uuid4

import pytest

from trayflow.domain.shared.exceptions import PersistenceError
from trayflow.domain.trays.events.domain_events import (
    DomainEvent,
    DomainEventDispatcher,
    DomainEventHandler,
    TrayRouted,
    TraySplit,
)
from trayflow.infrastructure.events.notification_handler import (
    TechnicianNotificationHandler,
)
from trayflow.infrastructure.events.notification_sender import (
    InMemoryNotificationSender,
    LoggingNotificationSender,
)


def routed_event(technician_ids: tuple[UUID, ...] = ()) -> TrayRouted:
    return TrayRouted(
        actor="system",
        tray_id=uuid4(),
        tray_number="12",
        service_order_id=uuid4(),
        department_name="Frizerii",
        pipeline_id=uuid4(),
        stage_id=uuid4(),
        technician_ids=technician_ids,
    )


class FailingHandler(DomainEventHandler):
    def can_handle(self, event: DomainEvent) -> bool:
        return True

    async def handle(self, event: DomainEvent) -> None:
        raise RuntimeError("handler exploded")


class CountingHandler(DomainEventHandler):
    def __init__(self, event_type: type[DomainEvent]) -> None:
        self.event_type = event_type
        self.count = 0

    def can_handle(self, event: DomainEvent) -> bool:
        return isinstance(event, self.event_type)

    async def handle(self, event: DomainEvent) -> None:
        self.count += 1


class TestDomainEvents:
    """Test event creation."""

    def test_events_get_identity(self):
        first, second = routed_event(), routed_event()

        assert first.event_id != second.event_id
        assert first.occurred_at is not None

    def test_events_are_immutable(self):
        event = routed_event()

        with pytest.raises(AttributeError):
            event.tray_number = "13"


class TestDomainEventDispatcher:
    """Test dispatcher behavior."""

    @pytest.mark.asyncio
    async def test_only_capable_handlers_run(self):
        dispatcher = DomainEventDispatcher()
        routed, split = CountingHandler(TrayRouted), CountingHandler(TraySplit)
        dispatcher.register_handler(routed)
        dispatcher.register_handler(split)

        await dispatcher.dispatch(routed_event())

        assert routed.count == 1
        assert split.count == 0

    @pytest.mark.asyncio
    async def test_failing_handler_does_not_stop_others(self):
        dispatcher = DomainEventDispatcher()
        counter = CountingHandler(DomainEvent)
        dispatcher.register_handler(FailingHandler())
        dispatcher.register_handler(counter)

        await dispatcher.dispatch_all([routed_event(), routed_event()])

        assert counter.count == 2

    @pytest.mark.asyncio
    async def test_register_is_idempotent_and_unregister(self):
        dispatcher = DomainEventDispatcher()
        counter = CountingHandler(DomainEvent)
        dispatcher.register_handler(counter)
        dispatcher.register_handler(counter)

        await dispatcher.dispatch(routed_event())
        dispatcher.unregister_handler(counter)
        await dispatcher.dispatch(routed_event())

        assert counter.count == 1


class TestTechnicianNotificationHandler:
    """Test notifications for routed trays."""

    @pytest.mark.asyncio
    async def test_each_technician_is_notified(self):
        sender = InMemoryNotificationSender()
        handler = TechnicianNotificationHandler(sender)
        alice, bob = uuid4(), uuid4()

        await handler.handle(routed_event((alice, bob)))

        assert [recipient for recipient, _, _ in sender.sent] == [alice, bob]
        title, payload = sender.sent[0][1], sender.sent[0][2]
        assert title == "Tray 12 sent to Frizerii"
        assert set(payload) == {"tray_id", "service_order_id", "pipeline_id", "stage_id"}

    @pytest.mark.asyncio
    async def test_no_technicians_no_notification(self):
        sender = InMemoryNotificationSender()

        await TechnicianNotificationHandler(sender).handle(routed_event())

        assert sender.sent == []

    @pytest.mark.asyncio
    async def test_delivery_failure_is_swallowed(self):
        sender = InMemoryNotificationSender()
        sender.notify = AsyncMock(side_effect=PersistenceError("queue down"))

        await TechnicianNotificationHandler(sender).handle(routed_event((uuid4(),)))

        sender.notify.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_logging_sender_accepts_notifications(self):
        await LoggingNotificationSender().notify([uuid4()], "title", {"tray_id": "x"})

    def test_handles_only_routed_trays(self):
        handler = TechnicianNotificationHandler(InMemoryNotificationSender())

        assert handler.can_handle(routed_event())
        assert not handler.can_handle(
            TraySplit(original_tray_id=uuid4(), resulting_tray_ids=(), owner_ids=())
        )
