"""Topic-based publish/subscribe with per-subscriber batching of outgoing messages."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any, Callable, Generic, Iterator, Optional, TypeVar

MAX_MESSAGES_PER_SUBSCRIBER = 32
MAX_OUTGOING_MESSAGES = 0xFFFF

T = TypeVar("T")
B = TypeVar("B")


class IteratorFlags(enum.IntFlag):
    """Position of a message within one subscriber's drained batch."""

    LAST = 1
    FIRST = 2


class TopicTreeError(RuntimeError):
    """Raised when a subscriber changes its topics while they are being iterated."""


@dataclass(eq=False)
class Topic:
    """A named topic and the subscribers it holds."""

    name: str
    subscribers: dict[Subscriber, None] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.subscribers)

    def __iter__(self) -> Iterator[Subscriber]:
        return iter(tuple(self.subscribers))

    def __contains__(self, subscriber: object) -> bool:
        return subscriber in self.subscribers


@dataclass(eq=False)
class Subscriber:
    """One subscriber: its topics, user object and pending message indices."""

    user: Any = None
    topics: set[Topic] = field(default_factory=set)
    _message_indices: list[int] = field(default_factory=list, repr=False)

    def needs_drainage(self) -> bool:
        """True while published messages are waiting to be delivered."""
        return bool(self._message_indices)


DrainCallback = Callable[[Subscriber, Any, IteratorFlags], bool]


class TopicTree(Generic[T, B]):
    """Routes published messages to topic subscribers, batching small ones.

    The drain callback receives ``(subscriber, message, flags)`` and returns
    True to stop delivering the rest of that subscriber's batch. It must not
    publish, subscribe or unsubscribe.
    """

    def __init__(self, callback: DrainCallback) -> None:
        self.iterating_subscriber: Optional[Subscriber] = None
        self._callback = callback
        self._topics: dict[str, Topic] = {}
        # Most recently linked subscriber is drained first.
        self._drainable: dict[Subscriber, None] = {}
        self._outgoing: list[T] = []

    def _check_iterating_subscriber(self, subscriber: Subscriber) -> None:
        if self.iterating_subscriber is subscriber:
            raise TopicTreeError(
                "subscriber must not subscribe or unsubscribe while iterating its topics"
            )

    def _drain_impl(self, subscriber: Subscriber) -> None:
        indices = subscriber._message_indices
        subscriber._message_indices = []
        count = len(indices)
        for position, index in enumerate(indices):
            flags = IteratorFlags(0)
            if position == count - 1:
                flags |= IteratorFlags.LAST
            if position == 0:
                flags |= IteratorFlags.FIRST
            if self._callback(subscriber, self._outgoing[index], flags):
                break

    def lookup_topic(self, topic: str) -> Optional[Topic]:
        """Return the topic of that name, or None."""
        return self._topics.get(topic)

    def subscribe(self, subscriber: Subscriber, topic: str) -> Optional[Topic]:
        """Subscribe to ``topic``, creating it if needed; None if already subscribed."""
        self._check_iterating_subscriber(subscriber)
        topic_obj = self._topics.get(topic)
        if topic_obj is None:
            topic_obj = Topic(topic)
            self._topics[topic] = topic_obj
        if topic_obj in subscriber.topics:
            return None
        subscriber.topics.add(topic_obj)
        topic_obj.subscribers[subscriber] = None
        return topic_obj

    def unsubscribe(self, subscriber: Subscriber, topic: str) -> tuple[bool, bool, int]:
        """Unsubscribe; returns ``(ok, holds_no_topics, new_count)``."""
        self._check_iterating_subscriber(subscriber)
        topic_obj = self._topics.get(topic)
        if topic_obj is None or topic_obj not in subscriber.topics:
            return False, False, -1
        subscriber.topics.discard(topic_obj)
        topic_obj.subscribers.pop(subscriber, None)
        new_count = len(topic_obj)
        if not new_count:
            del self._topics[topic]
        return True, not subscriber.topics, new_count

    def create_subscriber(self, user: Any = None) -> Subscriber:
        """Create a subscriber carrying ``user``."""
        return Subscriber(user)

    def free_subscriber(self, subscriber: Optional[Subscriber]) -> None:
        """Remove a subscriber from all its topics and from pending drainage."""
        if subscriber is None:
            return
        for topic_obj in subscriber.topics:
            if len(topic_obj) == 1:
                self._topics.pop(topic_obj.name, None)
            else:
                topic_obj.subscribers.pop(subscriber, None)
        subscriber.topics.clear()
        if subscriber.needs_drainage():
            self._drainable.pop(subscriber, None)
            subscriber._message_indices = []

    def drain(self, subscriber: Subscriber) -> None:
        """Deliver everything pending for one subscriber."""
        if not subscriber.needs_drainage():
            return
        self._drainable.pop(subscriber, None)
        self._drain_impl(subscriber)
        if not self._drainable:
            self._outgoing.clear()

    def drain_all(self) -> None:
        """Deliver everything pending for every subscriber."""
        if not self._drainable:
            return
        for subscriber in reversed(list(self._drainable)):
            self._drain_impl(subscriber)
        self._drainable.clear()
        self._outgoing.clear()

    def publish_big(
        self,
        sender: Optional[Subscriber],
        topic: str,
        message: B,
        callback: Callable[[Subscriber, B], Any],
    ) -> bool:
        """Hand ``message`` directly to every subscriber but the sender."""
        topic_obj = self._topics.get(topic)
        if topic_obj is None:
            return False
        for subscriber in topic_obj:
            if subscriber is not sender:
                callback(subscriber, message)
        return True

    def publish(self, sender: Optional[Subscriber], topic: str, message: T) -> bool:
        """Queue ``message`` for every subscriber but the sender.

        Returns True if at least one subscriber will receive it.
        """
        topic_obj = self._topics.get(topic)
        if topic_obj is None:
            return False

        if len(self._outgoing) == MAX_OUTGOING_MESSAGES:
            self.drain_all()

        referenced = False
        for subscriber in topic_obj:
            if subscriber is sender:
                continue
            referenced = True
            if len(subscriber._message_indices) == MAX_MESSAGES_PER_SUBSCRIBER:
                self.drain(subscriber)
            subscriber._message_indices.append(len(self._outgoing))
            if len(subscriber._message_indices) == 1:
                self._drainable[subscriber] = None

        if referenced:
            self._outgoing.append(message)
        return referenced