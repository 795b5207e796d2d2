"""Broadcast hub: fan-out of engine events to live subscribers."""

import asyncio
import json
import uuid
from typing import Any, Callable, Protocol

from ..errors import TransportWriteFailure
from ..logging_config import get_logger
from ..models import EventName, HubEvent

logger = get_logger(__name__)


SnapshotProvider = Callable[[], dict[str, Any]]

DEFAULT_QUEUE_SIZE = 1000


class Subscriber:
    """One live observer connection backed by a bounded event queue."""

    def __init__(self, queue_size: int = DEFAULT_QUEUE_SIZE):
        self.id = str(uuid.uuid4())
        self._queue: asyncio.Queue[HubEvent] = asyncio.Queue(maxsize=queue_size)
        self._closed = False

    def send(self, event: HubEvent) -> None:
        """Queue an event without waiting; raise if the observer cannot take it."""
        if self._closed:
            raise TransportWriteFailure(f"subscriber {self.id} is closed")
        try:
            self._queue.put_nowait(event)
        except asyncio.QueueFull as e:
            raise TransportWriteFailure(f"subscriber {self.id} queue is full") from e

    async def receive(self, timeout: float | None = None) -> HubEvent | None:
        """Next queued event, or None if nothing arrived within timeout."""
        try:
            return await asyncio.wait_for(self._queue.get(), timeout)
        except asyncio.TimeoutError:
            return None

    def drain(self) -> list[HubEvent]:
        """Take every event queued so far."""
        events = []
        while not self._queue.empty():
            events.append(self._queue.get_nowait())
        return events

    def close(self) -> None:
        self._closed = True

    @property
    def closed(self) -> bool:
        return self._closed


class IBroadcastHub(Protocol):
    """Delivers events to every connected observer, replaying state on join."""

    def subscribe(self) -> Subscriber:
        """Register an observer and queue the init snapshot for it."""
        ...

    def unsubscribe(self, subscriber: Subscriber) -> None:
        """Remove an observer. Idempotent."""
        ...

    def publish(self, name: EventName, payload: Any = None) -> None:
        """Deliver an event to every observer. Never raises."""
        ...


class BroadcastHub:
    """In-memory observer registry with best-effort fan-out."""

    def __init__(
        self,
        snapshot_provider: SnapshotProvider | None = None,
        queue_size: int = DEFAULT_QUEUE_SIZE,
    ):
        self._snapshot_provider = snapshot_provider
        self._queue_size = queue_size
        self._subscribers: dict[str, Subscriber] = {}

    def set_snapshot_provider(self, provider: SnapshotProvider) -> None:
        """Set the callable that builds the init payload."""
        self._snapshot_provider = provider

    def subscribe(self) -> Subscriber:
        """Register an observer and queue the init snapshot for it."""
        subscriber = Subscriber(self._queue_size)
        snapshot = self._snapshot_provider() if self._snapshot_provider else {}
        subscriber.send(HubEvent(EventName.INIT, snapshot))
        self._subscribers[subscriber.id] = subscriber
        logger.info(
            "Subscriber %s connected (%d total)",
            subscriber.id,
            len(self._subscribers),
        )
        return subscriber

    def unsubscribe(self, subscriber: Subscriber) -> None:
        """Remove an observer. Idempotent."""
        subscriber.close()
        if self._subscribers.pop(subscriber.id, None) is not None:
            logger.info(
                "Subscriber %s disconnected (%d total)",
                subscriber.id,
                len(self._subscribers),
            )

    def publish(self, name: EventName, payload: Any = None) -> None:
        """Deliver an event to every observer. Never raises."""
        event = HubEvent(name, payload)

        # Iterate a snapshot so failing observers can be removed mid-loop
        for subscriber in list(self._subscribers.values()):
            try:
                subscriber.send(event)
            except Exception as e:
                logger.warning(
                    "Dropping subscriber after failed write: %s",
                    e,
                    extra={"context": {"subscriber": subscriber.id, "event": name.value}},
                )
                self.unsubscribe(subscriber)

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)


def format_sse(event: HubEvent) -> str:
    """Encode an event as a Server-Sent-Events frame."""
    return f"event: {event.name.value}\ndata: {json.dumps(event.payload)}\n\n"
