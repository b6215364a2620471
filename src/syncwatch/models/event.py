"""Sync event model and its broadcast wire form."""

from __future__ import annotations

import time
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from syncwatch.models.enums import SyncEventKind


def now_ms() -> float:
    """Current wall-clock time in epoch milliseconds."""
    return time.time() * 1000.0


class SyncEvent(BaseModel):
    """A play/pause/seek intent, tagged with its originator.

    Wire form::

        {"type": "seek", "time": 42.0, "sender_id": "user_...", "timestamp": 1712345678901}
    """

    model_config = ConfigDict(frozen=True)

    kind: SyncEventKind
    time: float = Field(ge=0.0)
    sender_id: str = Field(min_length=1)
    emitted_at: float = Field(default_factory=now_ms)

    @property
    def ordering_key(self) -> tuple[float, str]:
        """Deterministic total order: newest emission wins, sender id breaks ties."""
        return (self.emitted_at, self.sender_id)

    @property
    def dedupe_key(self) -> tuple[str, str, float, float]:
        return (self.sender_id, self.kind.value, self.time, self.emitted_at)

    def to_wire(self) -> dict[str, Any]:
        return {
            "type": self.kind.value,
            "time": self.time,
            "sender_id": self.sender_id,
            "timestamp": self.emitted_at,
        }

    @classmethod
    def from_wire(cls, payload: dict[str, Any]) -> SyncEvent:
        """Parse a broadcast payload. Raises ``pydantic.ValidationError`` if malformed."""
        return cls.model_validate(
            {
                "kind": payload.get("type"),
                "time": payload.get("time"),
                "sender_id": payload.get("sender_id"),
                "emitted_at": payload.get("timestamp"),
            }
        )
