"""
Real-time fan-out of committed board mutations.

Services call ``Broadcaster.publish`` after their transaction commits. The
call schedules delivery on the running loop and returns at once; delivery
failures are logged and counted, never raised back into the request.

Every board has one topic, ``board/{board_id}``. Two backends exist: an
in-process hub for single-worker deployments and tests, and Redis pub/sub
for multi-worker deployments.
"""
import asyncio
from collections import defaultdict
from contextlib import asynccontextmanager
from datetime import datetime
from enum import Enum
from typing import Any, AsyncIterator, Dict, Optional, Set
from uuid import UUID

import redis.asyncio as redis
from kanban.core.config import settings
from kanban.core.metrics import (
    board_subscribers_active,
    record_board_event,
    record_delivery_failure,
)
from kanban.core.models import utcnow
from kanban.modules.auth.schemas import Principal
from pydantic import BaseModel, Field
from structlog import get_logger

logger = get_logger(__name__)


class BoardEventType(str, Enum):
    CREATED = "CREATED"
    UPDATED = "UPDATED"
    MOVED = "MOVED"
    DELETED = "DELETED"


class BoardEvent(BaseModel):
    """Envelope delivered to every subscriber of a board topic."""

    type: BoardEventType = Field(..., description="What happened")
    entity: str = Field(..., description="Kind of entity: 'card' or 'list'")
    board_id: UUID = Field(..., description="Board the event belongs to")
    entity_id: UUID = Field(..., description="ID of the mutated entity")
    parent_id: Optional[UUID] = Field(None, description="Current container (list for cards, board for lists)")
    previous_parent_id: Optional[UUID] = Field(None, description="Container before a move or delete")
    payload: Optional[Dict[str, Any]] = Field(None, description="Post-mutation projection; absent for deletes")
    actor_id: Optional[UUID] = Field(None, description="User who made the change")
    actor_name: Optional[str] = Field(None, description="Display name of that user")
    timestamp: datetime = Field(default_factory=utcnow, description="When the event was created")


def board_topic(board_id: UUID) -> str:
    return f"board/{board_id}"


class BroadcastBackend:
    """Transport moving serialized events between publishers and subscribers."""

    async def publish(self, topic: str, message: str) -> None:
        raise NotImplementedError

    def subscribe(self, topic: str):
        """Async context manager yielding an async iterator of raw messages."""
        raise NotImplementedError

    async def close(self) -> None:
        """Release backend resources."""

    async def health_check(self) -> bool:
        return True


class InMemoryBackend(BroadcastBackend):
    """
    In-process topic hub.

    Each subscriber owns a bounded queue. When a queue is full the message is
    dropped for that subscriber only.
    """

    def __init__(self, queue_size: int = 100):
        self.queue_size = queue_size
        self._topics: Dict[str, Set[asyncio.Queue]] = defaultdict(set)

    async def publish(self, topic: str, message: str) -> None:
        for queue in list(self._topics.get(topic, ())):
            try:
                queue.put_nowait(message)
            except asyncio.QueueFull:
                logger.warning("Subscriber queue full, dropping board event", topic=topic)
                record_delivery_failure()

    @asynccontextmanager
    async def subscribe(self, topic: str) -> AsyncIterator[AsyncIterator[str]]:
        queue: asyncio.Queue = asyncio.Queue(maxsize=self.queue_size)
        self._topics[topic].add(queue)
        try:
            yield self._iterate(queue)
        finally:
            subscribers = self._topics.get(topic)
            if subscribers is not None:
                subscribers.discard(queue)
                if not subscribers:
                    del self._topics[topic]

    @staticmethod
    async def _iterate(queue: asyncio.Queue) -> AsyncIterator[str]:
        while True:
            yield await queue.get()

    def subscriber_count(self, topic: str) -> int:
        return len(self._topics.get(topic, ()))

    async def close(self) -> None:
        self._topics.clear()


class RedisBackend(BroadcastBackend):
    """Redis pub/sub transport shared by every worker process."""

    def __init__(self, redis_url: str):
        self.redis_url = redis_url
        self._client = redis.from_url(redis_url, decode_responses=True)

    async def publish(self, topic: str, message: str) -> None:
        await self._client.publish(topic, message)

    @asynccontextmanager
    async def subscribe(self, topic: str) -> AsyncIterator[AsyncIterator[str]]:
        pubsub = self._client.pubsub()
        await pubsub.subscribe(topic)
        try:
            yield self._iterate(pubsub)
        finally:
            await pubsub.unsubscribe(topic)
            await pubsub.aclose()

    @staticmethod
    async def _iterate(pubsub) -> AsyncIterator[str]:
        async for message in pubsub.listen():
            if message.get("type") == "message":
                yield message["data"]

    async def close(self) -> None:
        await self._client.aclose()

    async def health_check(self) -> bool:
        try:
            return bool(await self._client.ping())
        except redis.RedisError as e:
            logger.error("Redis health check failed", error=str(e))
            return False


class Broadcaster:
    """Publishes board events without blocking the request that caused them."""

    def __init__(self, backend: BroadcastBackend):
        self.backend = backend
        self._pending: Set[asyncio.Task] = set()

    def publish(
        self,
        board_id: UUID,
        event_type: BoardEventType,
        payload: Optional[Dict[str, Any]] = None,
        *,
        entity: str,
        entity_id: UUID,
        parent_id: Optional[UUID] = None,
        previous_parent_id: Optional[UUID] = None,
        actor: Optional[Principal] = None,
    ) -> BoardEvent:
        """
        Schedule delivery of one event to ``board/{board_id}``.

        Must only be called after the mutation has been committed.

        Args:
            board_id: Board whose subscribers are notified
            event_type: CREATED, UPDATED, MOVED or DELETED
            payload: Post-mutation projection, None for deletes
            entity: "card" or "list"
            entity_id: ID of the mutated entity
            parent_id: Current container ID
            previous_parent_id: Container ID before a move, or the former container of a deleted entity
            actor: Principal who made the change

        Returns:
            The event that was scheduled
        """
        event = BoardEvent(
            type=event_type,
            entity=entity,
            board_id=board_id,
            entity_id=entity_id,
            parent_id=parent_id,
            previous_parent_id=previous_parent_id,
            payload=payload,
            actor_id=actor.id if actor else None,
            actor_name=actor.display_name if actor else None,
        )

        task = asyncio.get_running_loop().create_task(self._deliver(event))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return event

    async def _deliver(self, event: BoardEvent) -> None:
        topic = board_topic(event.board_id)
        try:
            await self.backend.publish(topic, event.model_dump_json())
        except Exception as e:
            logger.error(
                "Board event delivery failed",
                topic=topic,
                event_type=event.type.value,
                entity_id=str(event.entity_id),
                error=str(e),
            )
            record_delivery_failure()
            return

        record_board_event(event.type.value)
        logger.debug("Board event published", topic=topic, event_type=event.type.value, entity=event.entity)

    @asynccontextmanager
    async def subscribe(self, board_id: UUID) -> AsyncIterator[AsyncIterator[BoardEvent]]:
        """
        Subscribe to a board topic.

        Example:
            async with broadcaster.subscribe(board_id) as events:
                async for event in events:
                    ...
        """
        board_subscribers_active.inc()
        try:
            async with self.backend.subscribe(board_topic(board_id)) as messages:
                yield self._decode(messages)
        finally:
            board_subscribers_active.dec()

    @staticmethod
    async def _decode(messages: AsyncIterator[str]) -> AsyncIterator[BoardEvent]:
        async for raw in messages:
            yield BoardEvent.model_validate_json(raw)

    @property
    def pending(self) -> int:
        return len(self._pending)

    async def drain(self) -> None:
        """Wait until every scheduled delivery has finished."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def close(self) -> None:
        await self.drain()
        await self.backend.close()
        logger.info("Broadcaster closed")


def create_broadcaster() -> Broadcaster:
    """Build a broadcaster for the configured backend."""
    if settings.uses_redis_broadcast:
        backend: BroadcastBackend = RedisBackend(settings.redis_url)
    else:
        backend = InMemoryBackend(queue_size=settings.broadcast_queue_size)
    logger.info("Broadcaster created", backend=type(backend).__name__)
    return Broadcaster(backend)


_broadcaster: Optional[Broadcaster] = None


def get_broadcaster() -> Broadcaster:
    """Return the process-wide broadcaster; also used as a FastAPI dependency."""
    global _broadcaster
    if _broadcaster is None:
        _broadcaster = create_broadcaster()
    return _broadcaster


async def close_broadcaster() -> None:
    global _broadcaster
    if _broadcaster is not None:
        await _broadcaster.close()
        _broadcaster = None
