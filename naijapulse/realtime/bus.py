"""
Topic-based notification bus.

A single ``FeedBridge`` listens for inserts on the global change feed and
republishes them as named topics. Consumers subscribe to the topics they
care about and release the subscription when they leave.
"""
import asyncio
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Set

import structlog

from naijapulse.realtime.feed import ChangeFeed, Channel

logger = structlog.get_logger(__name__)

VOTE_CREATED = "vote.created"
COMMENT_CREATED = "comment.created"
REPORT_CREATED = "report.created"
POLL_CREATED = "poll.created"

TOPICS = (VOTE_CREATED, COMMENT_CREATED, REPORT_CREATED, POLL_CREATED)

# Table whose inserts feed each topic
TOPIC_TABLES = {
    VOTE_CREATED: "votes",
    COMMENT_CREATED: "comments",
    REPORT_CREATED: "reports",
    POLL_CREATED: "polls",
}

TOPIC_MESSAGES = {
    VOTE_CREATED: ("New vote! 🗳️", "Someone just voted in a poll"),
    COMMENT_CREATED: ("New comment! 💬", "Someone just commented on a poll"),
    REPORT_CREATED: ("New report", "Content was reported for review"),
    POLL_CREATED: ("New poll!", "A new poll was just created"),
}


@dataclass(frozen=True)
class Notification:
    topic: str
    title: str
    description: str
    data: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "topic": self.topic,
            "title": self.title,
            "description": self.description,
            "data": self.data,
        }


def parse_topics(raw: Optional[str]) -> List[str]:
    """Comma-separated topic list; empty means every topic.

    Raises:
        ValueError: On an unknown topic name
    """
    if not raw or not raw.strip():
        return list(TOPICS)
    topics = [topic.strip() for topic in raw.split(",") if topic.strip()]
    unknown = [topic for topic in topics if topic not in TOPICS]
    if unknown:
        raise ValueError(f"Unknown topics: {', '.join(unknown)}")
    return topics


class Subscription:
    """A consumer's queue of notifications for a set of topics."""

    def __init__(self, bus: "NotificationBus", topics: Iterable[str], max_queue: int = 100):
        self._bus = bus
        self.topics: Set[str] = set(topics)
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=max_queue)
        self._loop = asyncio.get_running_loop()
        self.closed = False

    def deliver(self, notification: Notification) -> None:
        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None

        if running is self._loop:
            self._put(notification)
            return

        try:
            self._loop.call_soon_threadsafe(self._put, notification)
        except RuntimeError:
            logger.warning("notification_dropped", topic=notification.topic)

    def _put(self, notification: Notification) -> None:
        try:
            self._queue.put_nowait(notification)
        except asyncio.QueueFull:
            logger.warning("notification_dropped", topic=notification.topic)

    async def get(self, timeout: Optional[float] = None) -> Optional[Notification]:
        """Next notification, or None when ``timeout`` elapses first."""
        try:
            return await asyncio.wait_for(self._queue.get(), timeout)
        except asyncio.TimeoutError:
            return None

    def close(self) -> None:
        if not self.closed:
            self.closed = True
            self._bus.unsubscribe(self)

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


class NotificationBus:
    def __init__(self):
        self._subscriptions: Dict[str, Set[Subscription]] = {topic: set() for topic in TOPICS}

    def subscribe(self, topics: Iterable[str], max_queue: int = 100) -> Subscription:
        """Open a subscription. Must be called from the consumer's event loop."""
        topics = list(topics)
        unknown = [topic for topic in topics if topic not in self._subscriptions]
        if unknown:
            raise ValueError(f"Unknown topics: {', '.join(unknown)}")

        subscription = Subscription(self, topics, max_queue=max_queue)
        for topic in subscription.topics:
            self._subscriptions[topic].add(subscription)
        logger.debug("bus_subscribed", topics=sorted(subscription.topics))
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        for topic in subscription.topics:
            self._subscriptions.get(topic, set()).discard(subscription)

    def subscriber_count(self, topic: Optional[str] = None) -> int:
        if topic is not None:
            return len(self._subscriptions.get(topic, ()))
        return len({sub for subs in self._subscriptions.values() for sub in subs})

    def publish(self, topic: str, data: Optional[Dict[str, Any]] = None) -> int:
        """Send a notification to every subscriber of ``topic``. Returns the number reached."""
        title, description = TOPIC_MESSAGES[topic]
        notification = Notification(topic=topic, title=title, description=description, data=data or {})

        subscribers = list(self._subscriptions.get(topic, ()))
        for subscription in subscribers:
            subscription.deliver(notification)
        return len(subscribers)


def _summary(topic: str, row: dict) -> Dict[str, Any]:
    """Fields of an inserted row that are safe to broadcast."""
    if topic == POLL_CREATED:
        return {"poll_id": row.get("id"), "title": row.get("title"), "category": row.get("category")}
    if topic == REPORT_CREATED:
        return {"report_id": row.get("id"), "target_type": row.get("target_type"), "target_id": row.get("target_id")}
    return {"poll_id": row.get("poll_id"), "id": row.get("id")}


class FeedBridge:
    """Republishes change feed inserts as bus topics. Start once per process."""

    def __init__(self, feed: ChangeFeed, bus: NotificationBus):
        self._feed = feed
        self._bus = bus
        self._channels: List[Channel] = []

    @property
    def running(self) -> bool:
        return bool(self._channels)

    async def start(self) -> None:
        if self._channels:
            return
        for topic, table in TOPIC_TABLES.items():
            channel = Channel(
                self._feed,
                table,
                on_insert=self._republisher(topic),
                name=f"bus:{topic}",
            )
            await channel.open()
            self._channels.append(channel)
        logger.info("notification_bridge_started", topics=list(TOPIC_TABLES))

    async def stop(self) -> None:
        channels, self._channels = self._channels, []
        for channel in channels:
            await channel.close()
        if channels:
            logger.info("notification_bridge_stopped")

    async def flush(self) -> None:
        for channel in self._channels:
            await channel.flush()

    def _republisher(self, topic: str):
        def republish(row: dict) -> None:
            self._bus.publish(topic, _summary(topic, row))
        return republish


notification_bus = NotificationBus()
