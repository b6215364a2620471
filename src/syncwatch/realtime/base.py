"""Abstract base class and message type for realtime backends."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable, Coroutine
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any
from uuid import uuid4


def room_topic(room_code: str) -> str:
    """Topic name every client of a room subscribes to."""
    return f"room:{room_code.upper()}"


@dataclass
class BroadcastMessage:
    """One fan-out message on a topic. Never persisted."""

    topic: str
    event: str
    payload: dict[str, Any] = field(default_factory=dict)
    id: str = field(default_factory=lambda: uuid4().hex)
    sent_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-serializable dictionary."""
        return {
            "id": self.id,
            "topic": self.topic,
            "event": self.event,
            "payload": self.payload,
            "sent_at": self.sent_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> BroadcastMessage:
        """Create a BroadcastMessage from a dictionary."""
        sent_at = data.get("sent_at")
        return cls(
            id=data.get("id") or uuid4().hex,
            topic=data["topic"],
            event=data["event"],
            payload=data.get("payload") or {},
            sent_at=datetime.fromisoformat(sent_at) if sent_at else datetime.now(UTC),
        )


BroadcastCallback = Callable[[BroadcastMessage], Coroutine[Any, Any, None]]


class RealtimeBackend(ABC):
    """Abstract base for realtime pub/sub backends.

    Delivery is best-effort: messages may be dropped, duplicated or
    reordered across senders, and every subscriber of a topic (including
    the publisher's own subscription) receives each message. Consumers do
    their own filtering.

    The library ships with ``InMemoryRealtime`` for single-process use and
    ``WebSocketRealtime`` for talking to a ``RelayServer``.
    """

    @abstractmethod
    async def publish(self, topic: str, message: BroadcastMessage) -> None:
        """Publish a message to a topic."""
        ...

    @abstractmethod
    async def subscribe(self, topic: str, callback: BroadcastCallback) -> str:
        """Subscribe to a topic.

        Returns:
            A subscription ID that can be used to unsubscribe.
        """
        ...

    @abstractmethod
    async def unsubscribe(self, subscription_id: str) -> bool:
        """Unsubscribe from a topic.

        Returns:
            True if the subscription existed and was removed.
        """
        ...

    async def publish_to_room(self, room_code: str, message: BroadcastMessage) -> None:
        """Convenience method to publish a message to a room topic."""
        await self.publish(room_topic(room_code), message)

    async def subscribe_to_room(self, room_code: str, callback: BroadcastCallback) -> str:
        """Convenience method to subscribe to a room topic."""
        return await self.subscribe(room_topic(room_code), callback)

    async def close(self) -> None:
        """Clean up resources.

        Override this method in subclasses that need cleanup.
        The default implementation does nothing.
        """
        return None
