"""
Tests for the board event broadcaster.
"""
import asyncio
from uuid import uuid4

import pytest
from kanban.core.broadcast import (
    BoardEvent,
    BoardEventType,
    Broadcaster,
    BroadcastBackend,
    InMemoryBackend,
    board_topic,
)
from kanban.modules.auth.models import UserRole
from kanban.modules.auth.schemas import Principal
from prometheus_client import REGISTRY

pytestmark = pytest.mark.broadcast


class FailingBackend(BroadcastBackend):
    """Backend whose publish always fails."""

    def __init__(self):
        self.attempts = 0

    async def publish(self, topic: str, message: str) -> None:
        self.attempts += 1
        raise ConnectionError("broker unavailable")


async def _next_event(events):
    return await asyncio.wait_for(events.__anext__(), timeout=1)


def _failures():
    return REGISTRY.get_sample_value("board_event_delivery_failures_total") or 0.0


class TestBroadcaster:
    """Test publishing and subscribing."""

    def test_board_topic(self):
        board_id = uuid4()
        assert board_topic(board_id) == f"board/{board_id}"

    @pytest.mark.asyncio
    async def test_subscriber_receives_event(self, broadcaster):
        board_id = uuid4()
        card_id = uuid4()
        actor = Principal(id=uuid4(), role=UserRole.USER, display_name="Ada")

        async with broadcaster.subscribe(board_id) as events:
            published = broadcaster.publish(
                board_id,
                BoardEventType.UPDATED,
                {"title": "Renamed"},
                entity="card",
                entity_id=card_id,
                actor=actor,
            )
            received = await _next_event(events)

        assert isinstance(received, BoardEvent)
        assert received == published
        assert received.actor_name == "Ada"
        assert received.payload == {"title": "Renamed"}

    @pytest.mark.asyncio
    async def test_other_boards_are_not_notified(self, broadcaster):
        watched, other = uuid4(), uuid4()

        async with broadcaster.subscribe(watched) as events:
            broadcaster.publish(other, BoardEventType.CREATED, entity="list", entity_id=uuid4())
            broadcaster.publish(watched, BoardEventType.DELETED, entity="list", entity_id=uuid4())
            received = await _next_event(events)

        assert received.board_id == watched
        assert received.type == BoardEventType.DELETED

    @pytest.mark.asyncio
    async def test_publish_without_subscribers(self, broadcaster):
        broadcaster.publish(uuid4(), BoardEventType.CREATED, entity="card", entity_id=uuid4())

        await broadcaster.drain()

        assert broadcaster.pending == 0

    @pytest.mark.asyncio
    async def test_events_arrive_in_publish_order(self, broadcaster):
        board_id = uuid4()
        entity_ids = [uuid4() for _ in range(5)]

        async with broadcaster.subscribe(board_id) as events:
            for entity_id in entity_ids:
                broadcaster.publish(board_id, BoardEventType.MOVED, entity="card", entity_id=entity_id)
            received = [await _next_event(events) for _ in entity_ids]

        assert [event.entity_id for event in received] == entity_ids

    @pytest.mark.asyncio
    async def test_unsubscribe_on_exit(self):
        backend = InMemoryBackend(queue_size=5)
        broadcaster = Broadcaster(backend)
        board_id = uuid4()

        async with broadcaster.subscribe(board_id):
            assert backend.subscriber_count(board_topic(board_id)) == 1

        assert backend.subscriber_count(board_topic(board_id)) == 0
        await broadcaster.close()


class TestDeliveryFailures:
    """Test that delivery problems never reach the publisher."""

    @pytest.mark.asyncio
    async def test_full_queue_drops_for_slow_subscriber(self):
        backend = InMemoryBackend(queue_size=1)
        broadcaster = Broadcaster(backend)
        board_id = uuid4()
        before = _failures()

        async with broadcaster.subscribe(board_id) as events:
            first = broadcaster.publish(board_id, BoardEventType.CREATED, entity="card", entity_id=uuid4())
            broadcaster.publish(board_id, BoardEventType.CREATED, entity="card", entity_id=uuid4())
            await broadcaster.drain()

            received = await _next_event(events)

        assert received.entity_id == first.entity_id
        assert _failures() == before + 1
        await broadcaster.close()

    @pytest.mark.asyncio
    async def test_backend_error_is_logged_not_raised(self):
        backend = FailingBackend()
        broadcaster = Broadcaster(backend)
        before = _failures()

        event = broadcaster.publish(uuid4(), BoardEventType.DELETED, entity="card", entity_id=uuid4())
        await broadcaster.drain()

        assert event.type == BoardEventType.DELETED
        assert backend.attempts == 1
        assert broadcaster.pending == 0
        assert _failures() == before + 1
