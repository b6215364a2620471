"""String enums for SyncWatch."""

from __future__ import annotations

from enum import StrEnum, unique


@unique
class SyncEventKind(StrEnum):
    PLAY = "play"
    PAUSE = "pause"
    SEEK = "seek"


@unique
class ConflictPolicy(StrEnum):
    """How inbound events from different senders are ordered."""

    # Apply every event in delivery order.
    LAST_RECEIVED = "last_received"
    # Order by (emitted_at, sender_id); older events are ignored.
    LATEST_EMITTED = "latest_emitted"
