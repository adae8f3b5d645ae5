"""
In-process publish/subscribe bus for GraphQL subscriptions.

The registry maps each topic to the set of currently connected subscribers.
Every subscriber owns a bounded asyncio.Queue; ``publish`` snapshots the set
for the topic and drops the payload into each queue without waiting, so a
slow client never stalls the mutation that triggered the event. A client
whose queue is full is disconnected: its backlog is discarded and its stream
ends with SubscriberOverflowError.

There is no history: a subscriber only sees events published after it
registered. ``subscribe`` removes its handle in ``finally``, so a dropped
websocket (generator closed or task cancelled) leaves nothing behind.
"""
import asyncio
import itertools
import logging
from enum import Enum
from typing import Any, AsyncIterator

from storefront.exceptions import SubscriberOverflowError
from storefront.telemetry import (
    ACTIVE_SUBSCRIBERS,
    EVENTS_DELIVERED_TOTAL,
    EVENTS_PUBLISHED_TOTAL,
    SUBSCRIBERS_DROPPED_TOTAL,
)

logger = logging.getLogger(__name__)

DEFAULT_QUEUE_SIZE = 100

# Replaces the backlog of a disconnected subscriber
_OVERFLOW = object()


class Topic(str, Enum):
    NEW_PRODUCT = "newProduct"
    NEW_POST = "newPost"
    POST_PUBLISHED = "postPublished"


class Subscriber:
    """A registered listener; hashable by identity so it can live in a set."""

    _ids = itertools.count(1)

    def __init__(self, topic: Topic, maxsize: int):
        self.id = next(self._ids)
        self.topic = topic
        self.queue: asyncio.Queue = asyncio.Queue(maxsize=maxsize)

    def __repr__(self) -> str:
        return f"<Subscriber {self.id} topic={self.topic.value}>"


class EventBus:
    def __init__(self, queue_size: int = DEFAULT_QUEUE_SIZE) -> None:
        self.queue_size = queue_size
        self._registry: dict[Topic, set[Subscriber]] = {topic: set() for topic in Topic}

    def subscriber_count(self, topic: Topic) -> int:
        return len(self._registry[Topic(topic)])

    def _add(self, subscriber: Subscriber) -> None:
        self._registry[subscriber.topic].add(subscriber)
        ACTIVE_SUBSCRIBERS.labels(topic=subscriber.topic.value).inc()
        logger.debug("Registered %r", subscriber)

    def _remove(self, subscriber: Subscriber) -> None:
        subscribers = self._registry[subscriber.topic]
        if subscriber in subscribers:
            subscribers.discard(subscriber)
            ACTIVE_SUBSCRIBERS.labels(topic=subscriber.topic.value).dec()
            logger.debug("Removed %r", subscriber)

    def _disconnect(self, subscriber: Subscriber) -> None:
        self._remove(subscriber)
        while not subscriber.queue.empty():
            subscriber.queue.get_nowait()
        subscriber.queue.put_nowait(_OVERFLOW)
        SUBSCRIBERS_DROPPED_TOTAL.labels(topic=subscriber.topic.value).inc()
        logger.warning("Dropped %r: %d events undelivered", subscriber, self.queue_size)

    def publish(self, topic: Topic, payload: Any) -> int:
        """
        Deliver ``payload`` to every subscriber registered on ``topic`` right
        now. Returns the number of subscribers it was handed to.
        """
        topic = Topic(topic)
        delivered = 0
        for subscriber in list(self._registry[topic]):
            try:
                subscriber.queue.put_nowait(payload)
            except asyncio.QueueFull:
                self._disconnect(subscriber)
            else:
                delivered += 1

        EVENTS_PUBLISHED_TOTAL.labels(topic=topic.value).inc()
        EVENTS_DELIVERED_TOTAL.labels(topic=topic.value).inc(delivered)
        logger.debug("Published on %s to %d subscriber(s)", topic.value, delivered)
        return delivered

    async def subscribe(self, topic: Topic) -> AsyncIterator[Any]:
        """Yield every payload published on ``topic`` from now on."""
        subscriber = Subscriber(Topic(topic), self.queue_size)
        self._add(subscriber)
        try:
            while True:
                payload = await subscriber.queue.get()
                if payload is _OVERFLOW:
                    raise SubscriberOverflowError(subscriber.topic.value, self.queue_size)
                yield payload
        finally:
            self._remove(subscriber)
