"""In-process change notifications for user-owned rows.

Services publish a ``ChangeEvent`` after each committed insert. Listeners get a
``Subscription`` back and must call ``unsubscribe()`` (or use it as a context
manager) when they are torn down.
"""

from __future__ import annotations

import asyncio
import json
import logging
import threading
from collections.abc import AsyncIterator, Awaitable, Callable
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChangeEvent:
    table: str
    event: str  # "INSERT", "UPDATE", "DELETE"
    user_id: str
    record: dict[str, Any] = field(default_factory=dict)
    occurred_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


ChangeListener = Callable[[ChangeEvent], None]


class Subscription:
    def __init__(
        self,
        feed: "ChangeFeed",
        table: str | None,
        user_id: str | None,
        listener: ChangeListener,
    ):
        self._feed = feed
        self.table = table
        self.user_id = user_id
        self.listener = listener
        self.active = True

    def matches(self, event: ChangeEvent) -> bool:
        if self.table is not None and self.table != event.table:
            return False
        if self.user_id is not None and self.user_id != event.user_id:
            return False
        return True

    def unsubscribe(self) -> None:
        if self.active:
            self.active = False
            self._feed._remove(self)

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, *exc) -> None:
        self.unsubscribe()


class ChangeFeed:
    def __init__(self):
        self._lock = threading.Lock()
        self._subscriptions: list[Subscription] = []

    def subscribe(
        self,
        listener: ChangeListener,
        *,
        table: str | None = None,
        user_id: str | None = None,
    ) -> Subscription:
        """Listen for events, optionally narrowed to one table and/or user."""
        subscription = Subscription(self, table, user_id, listener)
        with self._lock:
            self._subscriptions.append(subscription)
        return subscription

    def publish(self, event: ChangeEvent) -> int:
        """Deliver ``event`` to matching listeners; returns how many got it."""
        with self._lock:
            targets = [s for s in self._subscriptions if s.matches(event)]

        delivered = 0
        for subscription in targets:
            try:
                subscription.listener(event)
                delivered += 1
            except Exception:
                # Listener errors are logged, never raised to the writer.
                logger.exception("Change listener failed for %s", event.table)
        return delivered

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscriptions)

    def _remove(self, subscription: Subscription) -> None:
        with self._lock:
            if subscription in self._subscriptions:
                self._subscriptions.remove(subscription)


def format_change_event(event: ChangeEvent) -> str:
    """Render an event as one SSE frame."""
    return f"event: change\ndata: {json.dumps(asdict(event), default=str)}\n\n"


async def change_event_stream(
    feed: ChangeFeed,
    *,
    user_id: str,
    table: str | None = None,
    keepalive: float = 15.0,
    is_disconnected: Callable[[], Awaitable[bool]] | None = None,
    max_queued: int = 100,
) -> AsyncIterator[str]:
    """Yield SSE frames for ``user_id``'s changes until the consumer goes away.

    Listeners may fire from worker threads, so events are handed to the event
    loop before they are queued. The subscription is removed when the generator
    is closed.
    """
    loop = asyncio.get_running_loop()
    queue: asyncio.Queue[ChangeEvent] = asyncio.Queue(maxsize=max_queued)

    def enqueue(event: ChangeEvent) -> None:
        try:
            queue.put_nowait(event)
        except asyncio.QueueFull:
            logger.warning("Dropping %s change for slow subscriber %s", event.table, user_id)

    subscription = feed.subscribe(
        lambda event: loop.call_soon_threadsafe(enqueue, event),
        table=table,
        user_id=user_id,
    )
    try:
        yield ": connected\n\n"
        while True:
            try:
                event = await asyncio.wait_for(queue.get(), timeout=keepalive)
            except asyncio.TimeoutError:
                if is_disconnected is not None and await is_disconnected():
                    break
                yield ": keep-alive\n\n"
                continue
            yield format_change_event(event)
    finally:
        subscription.unsubscribe()
