"""Room-scoped sync event channel over a realtime backend."""

from __future__ import annotations

import logging
from collections.abc import Callable, Coroutine
from typing import Any

from pydantic import ValidationError

from syncwatch.core.codes import normalize_room_code
from syncwatch.errors import ChannelUnavailableError
from syncwatch.models.event import SyncEvent
from syncwatch.realtime.base import BroadcastMessage, RealtimeBackend, room_topic

logger = logging.getLogger("syncwatch.channel")

SYNC_EVENT = "sync"

SyncEventCallback = Callable[[SyncEvent], Coroutine[Any, Any, None]]


class Subscription:
    """Handle for one room subscription. ``cancel()`` is idempotent."""

    def __init__(self, realtime: RealtimeBackend, room_code: str, subscription_id: str) -> None:
        self._realtime = realtime
        self.room_code = room_code
        self.subscription_id = subscription_id
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    async def cancel(self) -> None:
        if not self._active:
            return
        self._active = False
        await self._realtime.unsubscribe(self.subscription_id)
        logger.debug("Unsubscribed from room %s", self.room_code)


class SyncChannel:
    """Carries sync events between the clients of a room.

    Delivery is whatever the backend gives: best-effort, possibly
    duplicated, unordered across senders. The channel only encodes and
    decodes; it never filters by sender.
    """

    def __init__(self, realtime: RealtimeBackend) -> None:
        self._realtime = realtime

    @property
    def realtime(self) -> RealtimeBackend:
        return self._realtime

    async def subscribe(self, room_code: str, on_event: SyncEventCallback) -> Subscription:
        code = normalize_room_code(room_code)

        async def _on_message(message: BroadcastMessage) -> None:
            if message.event != SYNC_EVENT:
                return
            try:
                event = SyncEvent.from_wire(message.payload)
            except ValidationError:
                logger.warning("Dropping malformed sync payload in room %s", code)
                return
            await on_event(event)

        sub_id = await self._realtime.subscribe_to_room(code, _on_message)
        logger.debug("Subscribed to room %s (%s)", code, sub_id)
        return Subscription(self._realtime, code, sub_id)

    async def publish(self, room_code: str, event: SyncEvent) -> None:
        """Broadcast *event*. Raises ``ChannelUnavailableError`` on transport failure."""
        code = normalize_room_code(room_code)
        message = BroadcastMessage(topic=room_topic(code), event=SYNC_EVENT, payload=event.to_wire())
        try:
            await self._realtime.publish_to_room(code, message)
        except ChannelUnavailableError:
            raise
        except Exception as exc:
            raise ChannelUnavailableError(f"Publish to room {code} failed: {exc}") from exc
