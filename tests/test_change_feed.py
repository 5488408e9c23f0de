"""Tests for the change feed."""

from uuid import uuid4

from cleaning_billing.events import ChangeEvent, ChangeFeed, ChangeOperation
from cleaning_billing.models import EntityKind


def _event(kind=EntityKind.HOURS_WORKED, owner_id=None) -> ChangeEvent:
    return ChangeEvent(
        kind=kind,
        operation=ChangeOperation.UPDATE,
        record_id=uuid4(),
        owner_id=owner_id,
        changed_fields=("invoice_id",),
    )


class TestChangeFeed:
    async def test_delivers_to_matching_kind(self):
        feed = ChangeFeed()
        received = []
        feed.subscribe(EntityKind.HOURS_WORKED, received.append)

        await feed.publish(_event())
        await feed.publish(_event(kind=EntityKind.INVOICE))

        assert len(received) == 1
        assert received[0].event_type == "hours_worked.update"

    async def test_scope_filters_by_owner(self):
        feed = ChangeFeed()
        owner = uuid4()
        received = []
        feed.subscribe(EntityKind.HOURS_WORKED, received.append, scope=owner)

        await feed.publish(_event(owner_id=uuid4()))
        await feed.publish(_event(owner_id=owner))

        assert [e.owner_id for e in received] == [owner]

    async def test_async_handlers_awaited(self):
        feed = ChangeFeed()
        received = []

        async def handler(event):
            received.append(event)

        feed.subscribe(EntityKind.INVOICE, handler)
        await feed.publish(_event(kind=EntityKind.INVOICE))

        assert len(received) == 1

    async def test_failing_handler_does_not_stop_others(self):
        feed = ChangeFeed()
        received = []

        def broken(event):
            raise RuntimeError("boom")

        feed.subscribe(EntityKind.HOURS_WORKED, broken)
        feed.subscribe(EntityKind.HOURS_WORKED, received.append)

        errors = await feed.publish(_event())

        assert len(received) == 1
        assert len(errors) == 1
        assert isinstance(errors[0], RuntimeError)

    async def test_unsubscribe_stops_delivery(self):
        feed = ChangeFeed()
        received = []
        subscription = feed.subscribe(EntityKind.HOURS_WORKED, received.append)

        subscription.unsubscribe()
        subscription.unsubscribe()
        await feed.publish(_event())

        assert received == []
        assert subscription.active is False
        assert feed.subscriber_count() == 0

    def test_subscription_context_manager(self):
        feed = ChangeFeed()
        with feed.subscribe(EntityKind.REPORT, lambda e: None):
            assert feed.subscriber_count(EntityKind.REPORT) == 1
        assert feed.subscriber_count(EntityKind.REPORT) == 0

    def test_event_serializes(self):
        event = _event(owner_id=uuid4())
        data = event.to_dict()
        assert data["kind"] == "hours_worked"
        assert data["operation"] == "update"
        assert data["changed_fields"] == ["invoice_id"]
        assert isinstance(data["record_id"], str)
        assert event.to_json()
