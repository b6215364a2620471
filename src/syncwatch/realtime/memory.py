"""In-process realtime backend using asyncio tasks."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections import deque
from uuid import uuid4

from syncwatch.realtime.base import BroadcastCallback, BroadcastMessage, RealtimeBackend

logger = logging.getLogger("syncwatch.realtime")


class InMemoryRealtime(RealtimeBackend):
    """Fan-out to every subscriber of a topic within one process.

    Each subscription owns a bounded buffer drained by its own task, so a
    slow callback never blocks the publisher. When a buffer is full the
    oldest message is dropped, mirroring a lossy network transport.
    """

    def __init__(self, max_queue_size: int = 100) -> None:
        self._max_queue_size = max_queue_size
        self._subscribers: dict[str, _Subscriber] = {}
        self._topics: dict[str, set[str]] = {}  # topic -> subscription ids
        self._closed = False

    async def publish(self, topic: str, message: BroadcastMessage) -> None:
        if self._closed:
            return
        for sub_id in list(self._topics.get(topic, ())):
            sub = self._subscribers.get(sub_id)
            if sub is not None:
                sub.push(message)

    async def subscribe(self, topic: str, callback: BroadcastCallback) -> str:
        sub_id = uuid4().hex
        sub = _Subscriber(sub_id, topic, callback, self._max_queue_size)
        self._subscribers[sub_id] = sub
        self._topics.setdefault(topic, set()).add(sub_id)
        sub.start()
        logger.debug("Subscription %s opened on %s", sub_id, topic)
        return sub_id

    async def unsubscribe(self, subscription_id: str) -> bool:
        sub = self._subscribers.pop(subscription_id, None)
        if sub is None:
            return False

        topic_subs = self._topics.get(sub.topic)
        if topic_subs is not None:
            topic_subs.discard(subscription_id)
            if not topic_subs:
                del self._topics[sub.topic]

        await sub.stop()
        logger.debug("Subscription %s closed on %s", subscription_id, sub.topic)
        return True

    async def close(self) -> None:
        """Stop all subscriptions and refuse further publishes."""
        self._closed = True
        for sub in list(self._subscribers.values()):
            await sub.stop()
        self._subscribers.clear()
        self._topics.clear()

    @property
    def subscription_count(self) -> int:
        return len(self._subscribers)

    @property
    def dropped_count(self) -> int:
        """Messages discarded so far because a subscriber fell behind."""
        return sum(sub.dropped for sub in self._subscribers.values())


class _Subscriber:
    """Buffer plus drain task for one subscription."""

    def __init__(
        self,
        sub_id: str,
        topic: str,
        callback: BroadcastCallback,
        max_queue_size: int,
    ) -> None:
        self.sub_id = sub_id
        self.topic = topic
        self.callback = callback
        self.dropped = 0
        self._buffer: deque[BroadcastMessage] = deque(maxlen=max_queue_size)
        self._wakeup = asyncio.Event()
        self._task: asyncio.Task[None] | None = None
        self._stopped = False

    def push(self, message: BroadcastMessage) -> None:
        if self._stopped:
            return
        if len(self._buffer) == self._buffer.maxlen:
            self.dropped += 1
        self._buffer.append(message)
        self._wakeup.set()

    def start(self) -> None:
        self._task = asyncio.create_task(self._drain(), name=f"realtime_sub:{self.sub_id}")

    async def stop(self) -> None:
        self._stopped = True
        self._buffer.clear()
        task, self._task = self._task, None
        # Unsubscribing from inside our own callback: the loop exits on its own.
        if task is None or task is asyncio.current_task():
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task

    async def _drain(self) -> None:
        while not self._stopped:
            await self._wakeup.wait()
            self._wakeup.clear()
            while self._buffer and not self._stopped:
                message = self._buffer.popleft()
                try:
                    await self.callback(message)
                except Exception:
                    logger.exception("Error in realtime callback for subscription %s", self.sub_id)
