"""
In-process publish/subscribe bus for live GraphQL subscriptions.

Messages are fanned out to the subscribers of a topic that are connected at
publish time; nothing is persisted or replayed. Publishing never waits on a
subscriber: each subscription owns a bounded queue and a subscriber that
falls behind loses messages instead of slowing down mutations.
"""
import asyncio
import enum
from collections import defaultdict
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional
from eventhub.core.logging import logger


class Topic(str, enum.Enum):
    EVENT_CREATED = "EVENT_CREATED"
    EVENT_UPDATED = "EVENT_UPDATED"
    REGISTRATION_CREATED = "REGISTRATION_CREATED"
    REGISTRATION_UPDATED = "REGISTRATION_UPDATED"
    COMMENT_ADDED = "COMMENT_ADDED"


@dataclass(frozen=True)
class Message:
    topic: Topic
    payload: Any
    # Id of the event (the domain Event) the payload belongs to
    event_id: Optional[str] = None


Filter = Callable[[Message], bool]

_CLOSED = object()


class Subscription:
    """A single subscriber's stream of messages for one topic."""

    def __init__(self, bus: "EventBus", topic: Topic, where: Optional[Filter], maxsize: int):
        self.bus = bus
        self.topic = topic
        self.where = where
        self.dropped = 0
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=maxsize)
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def offer(self, message: Message) -> bool:
        """Queue a message without blocking; returns False if it was not taken."""
        if self._closed:
            return False
        if self.where is not None:
            try:
                if not self.where(message):
                    return False
            except Exception:
                logger.exception(f"Subscription filter failed on {message.topic.value}; skipping subscriber")
                return False
        try:
            self._queue.put_nowait(message)
        except asyncio.QueueFull:
            self.dropped += 1
            logger.warning(
                f"Subscriber on {self.topic.value} is not keeping up; dropped message ({self.dropped} so far)"
            )
            return False
        return True

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self.bus._remove(self)
        try:
            self._queue.put_nowait(_CLOSED)
        except asyncio.QueueFull:
            # Consumer drains the backlog and then sees the closed flag
            pass

    def __aiter__(self):
        return self

    async def __anext__(self) -> Message:
        if self._closed and self._queue.empty():
            raise StopAsyncIteration
        item = await self._queue.get()
        if item is _CLOSED:
            raise StopAsyncIteration
        return item

    async def __aenter__(self) -> "Subscription":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.close()


class EventBus:
    """
    Topic-based fan-out owned by the application.

    Created by the app factory, started on startup and stopped on shutdown;
    stopping ends every open subscription stream.
    """

    def __init__(self, queue_size: int = 100):
        self.queue_size = queue_size
        self._subscribers: Dict[Topic, List[Subscription]] = defaultdict(list)
        self._running = False

    @property
    def is_running(self) -> bool:
        return self._running

    def start(self) -> None:
        self._running = True
        logger.info("Event bus started")

    def stop(self) -> None:
        self._running = False
        subscriptions = [s for subs in self._subscribers.values() for s in subs]
        for subscription in subscriptions:
            subscription.close()
        self._subscribers.clear()
        logger.info(f"Event bus stopped; closed {len(subscriptions)} subscription(s)")

    def subscribe(self, topic: Topic, where: Optional[Filter] = None) -> Subscription:
        """
        Register a subscriber immediately and return its stream.

        Raises:
            RuntimeError: If the bus is not running
        """
        if not self._running:
            raise RuntimeError("Event bus is not running")
        subscription = Subscription(self, Topic(topic), where, self.queue_size)
        self._subscribers[subscription.topic].append(subscription)
        logger.debug(f"Subscriber added to {subscription.topic.value} ({self.subscriber_count(topic)} total)")
        return subscription

    def publish(self, topic: Topic, payload: Any, event_id: Optional[str] = None) -> int:
        """
        Fan a payload out to the current subscribers of ``topic``.

        Returns the number of subscribers that accepted the message. Messages
        published while nobody listens, or while the bus is stopped, are lost.
        """
        topic = Topic(topic)
        if not self._running:
            logger.debug(f"Event bus stopped; dropping {topic.value}")
            return 0
        message = Message(topic=topic, payload=payload, event_id=event_id)
        delivered = 0
        for subscription in list(self._subscribers.get(topic, ())):
            if subscription.offer(message):
                delivered += 1
        logger.debug(f"Published {topic.value} to {delivered} subscriber(s)")
        return delivered

    def subscriber_count(self, topic: Topic) -> int:
        return len(self._subscribers.get(Topic(topic), ()))

    def _remove(self, subscription: Subscription) -> None:
        subs = self._subscribers.get(subscription.topic)
        if subs and subscription in subs:
            subs.remove(subscription)
        if not subs:
            self._subscribers.pop(subscription.topic, None)


def for_event(event_id: str) -> Filter:
    """Filter matching messages whose embedded event id equals ``event_id``."""
    def matches(message: Message) -> bool:
        return message.event_id is not None and str(message.event_id) == str(event_id)
    return matches
