"""
In-process change feed and subscription channels.

The database session hooks in ``naijapulse.db.events`` publish one
``ChangeEvent`` per inserted/updated/deleted row after a transaction
commits. Consumers never read the feed directly; they open a ``Channel``
for one table (optionally scoped to a column value such as
``poll_id == X``) and receive rows through ``on_insert`` / ``on_update`` /
``on_delete`` callbacks.

Delivery is asynchronous and best-effort: each channel owns a queue and a
pump task on the event loop it was opened on, and nothing is redelivered.
Consumers that need a complete picture fetch a snapshot after opening the
channel and merge events into it by primary key.

Lifecycle rules:
    - ``open()`` is idempotent; a second call while open is a no-op
    - ``close()`` detaches exactly once per successful ``open()``
    - ``async with Channel(...)`` pairs the two
"""
import asyncio
import enum
from contextlib import suppress
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Set, Tuple

import structlog

from naijapulse.core.config import settings

logger = structlog.get_logger(__name__)

RowHandler = Callable[[dict], None]
StatusHandler = Callable[["ChannelStatus"], None]


class ChangeType(str, enum.Enum):
    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


@dataclass(frozen=True)
class ChangeEvent:
    """A committed row change. ``new`` is None for deletes, ``old`` for inserts."""

    table: str
    type: ChangeType
    new: Optional[dict] = None
    old: Optional[dict] = None

    @property
    def row(self) -> dict:
        return self.new if self.new is not None else (self.old or {})


class SubscriptionError(RuntimeError):
    """The feed refused to attach a channel."""


class ChannelStatus(str, enum.Enum):
    CLOSED = "closed"
    JOINING = "joining"
    SUBSCRIBED = "subscribed"
    ERRORED = "errored"


class ChangeFeed:
    """Fan-out hub from committed row changes to open channels."""

    def __init__(self, max_channels: Optional[int] = None):
        self._channels: Dict[str, Set["Channel"]] = {}
        self._max_channels = max_channels
        self._closed = False

    @property
    def channel_count(self) -> int:
        return sum(len(channels) for channels in self._channels.values())

    def channels_for(self, table: str) -> Set["Channel"]:
        return set(self._channels.get(table, ()))

    def attach(self, channel: "Channel") -> None:
        if self._closed:
            raise SubscriptionError("Change feed is closed")
        if self._max_channels is not None and self.channel_count >= self._max_channels:
            raise SubscriptionError(f"Channel limit of {self._max_channels} reached")
        self._channels.setdefault(channel.table, set()).add(channel)

    def detach(self, channel: "Channel") -> None:
        channels = self._channels.get(channel.table)
        if channels is None:
            return
        channels.discard(channel)
        if not channels:
            del self._channels[channel.table]

    def publish(self, event: ChangeEvent) -> int:
        """Hand ``event`` to every matching channel. Returns the number of channels reached."""
        delivered = 0
        for channel in list(self._channels.get(event.table, ())):
            if channel.matches(event):
                channel.deliver(event)
                delivered += 1
        return delivered

    def open(self) -> None:
        self._closed = False

    def close(self) -> None:
        """Refuse new channels and forget attached ones (application shutdown)."""
        self._closed = True
        self._channels.clear()


class Channel:
    """
    One logical subscription to a table's changes.

    Args:
        feed: ChangeFeed to attach to
        table: Table name, e.g. "votes"
        scope: Optional (column, value) filter, e.g. ("poll_id", poll_id)
        on_insert / on_update / on_delete: Row callbacks, run on the event loop
        on_status: Called with each ChannelStatus transition
        name: Label for logs; defaults to "<table>:<value>" or "<table>:global"
    """

    def __init__(
        self,
        feed: ChangeFeed,
        table: str,
        *,
        scope: Optional[Tuple[str, Any]] = None,
        on_insert: Optional[RowHandler] = None,
        on_update: Optional[RowHandler] = None,
        on_delete: Optional[RowHandler] = None,
        on_status: Optional[StatusHandler] = None,
        name: Optional[str] = None,
    ):
        self._feed = feed
        self.table = table
        self.scope = scope
        self._handlers: Dict[ChangeType, Optional[RowHandler]] = {
            ChangeType.INSERT: on_insert,
            ChangeType.UPDATE: on_update,
            ChangeType.DELETE: on_delete,
        }
        self._on_status = on_status
        self.name = name or (f"{table}:{scope[1]}" if scope else f"{table}:global")

        self.status = ChannelStatus.CLOSED
        self._is_open = False
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._queue: Optional[asyncio.Queue] = None
        self._pump_task: Optional[asyncio.Task] = None

    @property
    def is_open(self) -> bool:
        return self._is_open

    @property
    def is_subscribed(self) -> bool:
        return self.status is ChannelStatus.SUBSCRIBED

    def matches(self, event: ChangeEvent) -> bool:
        if event.table != self.table:
            return False
        if self.scope is None:
            return True
        column, value = self.scope
        return event.row.get(column) == value

    async def open(self) -> bool:
        """
        Attach to the feed and start delivering events.

        Returns:
            True when subscribed. False when the feed refused the channel;
            the channel still counts as open and must be closed.
        """
        if self._is_open:
            return self.is_subscribed

        self._is_open = True
        self._loop = asyncio.get_running_loop()
        self._queue = asyncio.Queue()
        self._set_status(ChannelStatus.JOINING)

        try:
            self._feed.attach(self)
        except SubscriptionError as e:
            logger.warning("channel_subscribe_failed", channel=self.name, error=str(e))
            self._set_status(ChannelStatus.ERRORED)
            return False

        self._pump_task = self._loop.create_task(self._pump())
        self._set_status(ChannelStatus.SUBSCRIBED)
        logger.debug("channel_opened", channel=self.name)
        return True

    async def close(self) -> None:
        if not self._is_open:
            return
        self._is_open = False

        self._feed.detach(self)

        if self._pump_task is not None:
            self._pump_task.cancel()
            with suppress(asyncio.CancelledError):
                await self._pump_task
            self._pump_task = None

        self._queue = None
        self._set_status(ChannelStatus.CLOSED)
        logger.debug("channel_closed", channel=self.name)

    async def __aenter__(self) -> "Channel":
        await self.open()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    def deliver(self, event: ChangeEvent) -> None:
        """Queue an event. Safe to call from any thread."""
        if not self.is_subscribed or self._queue is None or self._loop is None:
            return

        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None

        if running is self._loop:
            self._queue.put_nowait(event)
            return

        try:
            self._loop.call_soon_threadsafe(self._queue.put_nowait, event)
        except RuntimeError:
            # Owning loop already shut down
            logger.warning("channel_delivery_dropped", channel=self.name)

    async def flush(self) -> None:
        """Wait until every queued event has been dispatched."""
        if self._queue is not None and self.is_subscribed:
            await self._queue.join()

    def _set_status(self, status: ChannelStatus) -> None:
        self.status = status
        if self._on_status is not None:
            self._on_status(status)

    async def _pump(self) -> None:
        queue = self._queue
        while True:
            event = await queue.get()
            try:
                handler = self._handlers.get(event.type)
                if handler is not None:
                    handler(event.new if event.type is not ChangeType.DELETE else event.old)
            except Exception:
                logger.exception("channel_handler_failed", channel=self.name, change=event.type.value)
            finally:
                queue.task_done()


# Shared by the database hooks and every consumer in the process
change_feed = ChangeFeed(max_channels=settings.REALTIME_MAX_CHANNELS)
