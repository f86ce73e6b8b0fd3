"""Fan-out hub that delivers change notifications to event-stream clients."""

import asyncio
import threading
import uuid
from collections.abc import AsyncIterator, Iterator
from contextlib import contextmanager

import structlog
from sse_starlette import ServerSentEvent

from serve_live.events.types import FilesChanged

logger = structlog.get_logger()


class Subscriber:
    """One client's registration with the hub.

    Holds a bounded queue that the hub pushes notifications into and
    the client's stream drains.

    Attributes:
        id: Unique subscriber identifier (UUID).
    """

    def __init__(self, queue_size: int) -> None:
        """Initialize subscriber.

        Args:
            queue_size: Maximum pending notifications for this client.
        """
        self.id = str(uuid.uuid4())
        self._queue: asyncio.Queue[FilesChanged] = asyncio.Queue(maxsize=queue_size)
        self._dropped_count = 0

    def __repr__(self) -> str:
        return f"Subscriber(id={self.id!r}, pending={self.pending})"

    @property
    def pending(self) -> int:
        """Notifications waiting to be read."""
        return self._queue.qsize()

    @property
    def dropped(self) -> int:
        """Notifications discarded because this client fell behind."""
        return self._dropped_count

    def deliver(self, event: FilesChanged) -> bool:
        """Queue a notification without blocking.

        When the queue is full the oldest pending notification is
        discarded to make room.

        Args:
            event: Notification to deliver.

        Returns:
            True if an older notification was dropped.
        """
        try:
            self._queue.put_nowait(event)
            return False
        except asyncio.QueueFull:
            try:
                self._queue.get_nowait()
            except asyncio.QueueEmpty:
                pass
            self._queue.put_nowait(event)
            self._dropped_count += 1
            return True

    async def get(self) -> FilesChanged:
        """Wait for the next notification."""
        return await self._queue.get()


class NotificationHub:
    """Process-wide set of live subscribers.

    Every mutation of the subscriber set and every broadcast happens
    under one lock. The lock is never held across an await, so broadcast
    cannot stall on a slow client and cleanup cannot deadlock against it.

    Attributes:
        queue_size: Pending notifications held per subscriber.
    """

    def __init__(self, queue_size: int = 8) -> None:
        """Initialize notification hub.

        Args:
            queue_size: Maximum pending notifications per subscriber.
        """
        self._queue_size = queue_size
        self._subscribers: dict[str, Subscriber] = {}
        self._dropped_count = 0
        self._lock = threading.Lock()

    @property
    def queue_size(self) -> int:
        """Pending notifications held per subscriber."""
        return self._queue_size

    @property
    def subscriber_count(self) -> int:
        """Number of registered subscribers."""
        with self._lock:
            return len(self._subscribers)

    @property
    def dropped_events(self) -> int:
        """Total notifications discarded across all subscribers."""
        return self._dropped_count

    def subscribe(self) -> Subscriber:
        """Register a new subscriber.

        Returns:
            Handle used to receive notifications and to unsubscribe.
        """
        subscriber = Subscriber(self._queue_size)
        with self._lock:
            self._subscribers[subscriber.id] = subscriber
            count = len(self._subscribers)

        logger.debug("subscriber_added", subscriber_id=subscriber.id, subscribers=count)
        return subscriber

    def unsubscribe(self, subscriber: Subscriber) -> bool:
        """Remove a subscriber. Unknown or already-removed handles are ignored.

        Args:
            subscriber: Handle returned by subscribe().

        Returns:
            True if the subscriber was registered.
        """
        with self._lock:
            removed = self._subscribers.pop(subscriber.id, None) is not None
            count = len(self._subscribers)

        if removed:
            logger.debug(
                "subscriber_removed",
                subscriber_id=subscriber.id,
                subscribers=count,
            )
        return removed

    @contextmanager
    def subscription(self) -> Iterator[Subscriber]:
        """Register a subscriber for the duration of a block.

        The subscriber is removed on every exit path, including
        cancellation.

        Yields:
            The registered subscriber.
        """
        subscriber = self.subscribe()
        try:
            yield subscriber
        finally:
            self.unsubscribe(subscriber)

    async def broadcast(self, event: FilesChanged) -> int:
        """Deliver a notification to every registered subscriber.

        Delivery never blocks. A subscriber whose queue is full loses its
        oldest pending notification instead.

        Args:
            event: Notification to deliver.

        Returns:
            Number of subscribers the notification was queued for.
        """
        with self._lock:
            subscribers = list(self._subscribers.values())
            for subscriber in subscribers:
                if subscriber.deliver(event):
                    self._dropped_count += 1

        return len(subscribers)

    async def create_sse_generator(self) -> AsyncIterator[ServerSentEvent]:
        """Create the event-stream generator for one client connection.

        Registers a subscriber and yields one ``files-changed`` record
        with empty data per notification. The subscriber is removed when
        the client disconnects and the generator is cancelled or closed.

        Yields:
            Server-sent events for the client.
        """
        with self.subscription() as subscriber:
            logger.info(
                "sse_client_connected",
                subscriber_id=subscriber.id,
                active_connections=self.subscriber_count,
            )
            try:
                while True:
                    event = await subscriber.get()
                    yield ServerSentEvent(data="", event=event.type.value, sep="\n")
            finally:
                logger.info(
                    "sse_client_disconnected",
                    subscriber_id=subscriber.id,
                    dropped=subscriber.dropped,
                )

    async def shutdown(self) -> None:
        """Log final hub counters during application shutdown."""
        logger.info(
            "notification_hub_shutdown",
            active_connections=self.subscriber_count,
            dropped_events=self._dropped_count,
        )
