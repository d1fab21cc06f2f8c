"""Broadcast Hub — live subscriber registry with fan-out and heartbeat.

Invariants:
    - Every subscriber receives `ready` first, exactly once
    - publish() never awaits: events are enqueued with put_nowait on a snapshot
      of the subscriber set, so concurrent subscribe/unsubscribe cannot
      invalidate the iteration
    - A batch is enqueued contiguously per subscriber; events from one
      publisher arrive in publish order
    - A full subscriber queue disconnects that subscriber; it never blocks
      the publisher or other subscribers
    - The heartbeat task runs iff at least one subscriber is registered
    - unsubscribe() is idempotent; only the first call reports removal

Design Decisions:
    - One bounded asyncio.Queue per subscriber: publish latency decoupled
      from the slowest reader
    - Closing a subscription drains its queue and enqueues a sentinel, so a
      reader blocked on get() wakes up and its stream ends
    - threading.Lock around the registry dict, held only for dict operations
      and never across an await
"""

import asyncio
import itertools
import logging
import threading
from typing import AsyncIterator, Iterable

from livechat.core.domain_types import EventKind, Nickname
from livechat.core.events import HEARTBEAT_EVENT, ChatEvent, ready_event

logger = logging.getLogger(__name__)

_CLOSED = None  # queue sentinel


class Subscription:
    """One live output channel. Created by BroadcastHub.subscribe()."""

    def __init__(self, subscription_id: int, nickname: Nickname | None, maxsize: int):
        self.id = subscription_id
        self.nickname = nickname
        self._queue: asyncio.Queue[ChatEvent | None] = asyncio.Queue(maxsize)
        self.closed = False

    def offer(self, event: ChatEvent) -> bool:
        """Enqueue without blocking. False when closed or the queue is full."""
        if self.closed:
            return False
        try:
            self._queue.put_nowait(event)
        except asyncio.QueueFull:
            return False
        return True

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        while not self._queue.empty():
            self._queue.get_nowait()
        self._queue.put_nowait(_CLOSED)

    def pending(self) -> int:
        return self._queue.qsize()

    async def events(self) -> AsyncIterator[ChatEvent]:
        """Yield queued events until the subscription is closed."""
        while True:
            event = await self._queue.get()
            if event is _CLOSED:
                return
            yield event

    async def next_event(self, timeout: float | None = None) -> ChatEvent | None:
        """Wait for one event; None once closed."""
        event = await asyncio.wait_for(self._queue.get(), timeout)
        if event is _CLOSED:
            self._queue.put_nowait(_CLOSED)
            return None
        return event

    def __repr__(self) -> str:
        return f"Subscription(id={self.id}, nickname={self.nickname!r}, closed={self.closed})"


class BroadcastHub:
    """Owns the live subscriber set and pushes events to all of them."""

    def __init__(
        self, heartbeat_interval: float = 25.0, queue_size: int = 256,
    ):
        self.heartbeat_interval = heartbeat_interval
        self.queue_size = queue_size
        self._subscribers: dict[int, Subscription] = {}
        self._lock = threading.Lock()
        self._ids = itertools.count(1)
        self._heartbeat_task: asyncio.Task | None = None

    # ─── Registry ─────────────────────────────────────────────────

    def subscribe(self, nickname: Nickname | None = None) -> Subscription:
        subscription = Subscription(next(self._ids), nickname, self.queue_size)
        subscription.offer(ready_event())
        with self._lock:
            self._subscribers[subscription.id] = subscription
            count = len(self._subscribers)
        self._ensure_heartbeat()
        logger.info(
            "Stream subscribed",
            extra={"nickname": nickname, "subscriber_count": count},
        )
        return subscription

    def unsubscribe(self, subscription: Subscription) -> bool:
        with self._lock:
            removed = self._subscribers.pop(subscription.id, None) is not None
            count = len(self._subscribers)
        subscription.close()
        if not removed:
            return False
        if count == 0:
            self._stop_heartbeat()
        logger.info(
            "Stream unsubscribed",
            extra={"nickname": subscription.nickname, "subscriber_count": count},
        )
        return True

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)

    @property
    def heartbeat_running(self) -> bool:
        return self._heartbeat_task is not None and not self._heartbeat_task.done()

    # ─── Fan-out ──────────────────────────────────────────────────

    def publish(self, kind: EventKind, payload: dict | None = None) -> int:
        return self.publish_batch([ChatEvent(kind, payload or {})])

    def publish_batch(self, events: Iterable[ChatEvent]) -> int:
        """Enqueue `events` in order to every subscriber. Returns delivered count."""
        batch = list(events)
        with self._lock:
            snapshot = list(self._subscribers.values())
        delivered = 0
        for subscription in snapshot:
            if all(subscription.offer(event) for event in batch):
                delivered += 1
            else:
                self._drop_slow(subscription)
        if batch:
            logger.debug(
                "Published events",
                extra={
                    "event": ",".join(e.kind.value for e in batch),
                    "subscriber_count": delivered,
                },
            )
        return delivered

    def _drop_slow(self, subscription: Subscription) -> None:
        if self.unsubscribe(subscription):
            logger.warning(
                "Disconnected slow subscriber",
                extra={"nickname": subscription.nickname, "event": "overflow"},
            )

    # ─── Heartbeat ────────────────────────────────────────────────

    def _ensure_heartbeat(self) -> None:
        if self.heartbeat_running:
            return
        self._heartbeat_task = asyncio.get_running_loop().create_task(
            self._heartbeat_loop(),
        )

    def _stop_heartbeat(self) -> None:
        task, self._heartbeat_task = self._heartbeat_task, None
        if task is not None and not task.done():
            task.cancel()

    async def _heartbeat_loop(self) -> None:
        while True:
            await asyncio.sleep(self.heartbeat_interval)
            self.publish_batch([HEARTBEAT_EVENT])

    # ─── Shutdown ─────────────────────────────────────────────────

    async def close(self) -> None:
        """Close every subscription and stop the heartbeat."""
        task = self._heartbeat_task
        with self._lock:
            snapshot = list(self._subscribers.values())
        for subscription in snapshot:
            self.unsubscribe(subscription)
        self._stop_heartbeat()
        if task is not None:
            try:
                await task
            except asyncio.CancelledError:
                pass
        logger.info("Broadcast hub closed", extra={"subscriber_count": 0})
