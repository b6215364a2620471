"""Room model."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, Field, field_validator


class MediaRefs(BaseModel):
    """URLs of the assets a room plays. The files themselves live elsewhere."""

    video_url: str | None = None
    art_url: str | None = None
    subtitle_url: str | None = None


class Room(BaseModel):
    """A shared viewing session."""

    id: str = Field(default_factory=lambda: uuid4().hex)
    code: str
    media: MediaRefs = Field(default_factory=MediaRefs)
    host_id: str
    playback_time: float = Field(default=0.0, ge=0.0)
    is_playing: bool = False
    last_sync_at: datetime | None = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @field_validator("code")
    @classmethod
    def _normalize_code(cls, v: str) -> str:
        return v.strip().upper()

    @field_validator("last_sync_at", "created_at")
    @classmethod
    def _assume_utc(cls, v: datetime | None) -> datetime | None:
        # Rows from `timestamp without time zone` columns come back naive.
        if v is not None and v.tzinfo is None:
            return v.replace(tzinfo=UTC)
        return v

    @property
    def has_video(self) -> bool:
        return bool(self.media.video_url)

    def position_at(self, now: datetime) -> float:
        """Extrapolate the authoritative position to *now*.

        ``playback_time`` is only meaningful relative to ``last_sync_at``:
        while the room is playing the position keeps advancing in real time.
        """
        if not self.is_playing or self.last_sync_at is None:
            return self.playback_time
        elapsed = (now - self.last_sync_at).total_seconds()
        return max(0.0, self.playback_time + max(0.0, elapsed))

    def to_record(self) -> dict[str, Any]:
        """Flatten into the persistent store row layout."""
        return {
            "id": self.id,
            "code": self.code,
            "video_url": self.media.video_url,
            "art_url": self.media.art_url,
            "subtitle_url": self.media.subtitle_url,
            "host_id": self.host_id,
            "playback_time": self.playback_time,
            "is_playing": self.is_playing,
            "last_sync_at": self.last_sync_at.isoformat() if self.last_sync_at else None,
            "created_at": self.created_at.isoformat(),
        }

    @classmethod
    def from_record(cls, data: dict[str, Any]) -> Room:
        """Build a Room from a store row. Null playback fields read as defaults."""
        fields: dict[str, Any] = {
            "code": data["code"],
            "host_id": data["host_id"],
            "media": MediaRefs(
                video_url=data.get("video_url"),
                art_url=data.get("art_url"),
                subtitle_url=data.get("subtitle_url"),
            ),
            "playback_time": data.get("playback_time") or 0.0,
            "is_playing": bool(data.get("is_playing")),
            "last_sync_at": data.get("last_sync_at"),
        }
        if data.get("id") is not None:
            fields["id"] = str(data["id"])
        if data.get("created_at") is not None:
            fields["created_at"] = data["created_at"]
        return cls.model_validate(fields)
