"""Realtime backends for ephemeral broadcast messages."""

from syncwatch.realtime.base import (
    BroadcastCallback,
    BroadcastMessage,
    RealtimeBackend,
    room_topic,
)
from syncwatch.realtime.memory import InMemoryRealtime

__all__ = [
    "BroadcastCallback",
    "BroadcastMessage",
    "InMemoryRealtime",
    "RealtimeBackend",
    "room_topic",
]
