"""Abstract base class for room record storage."""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime

from syncwatch.models.room import Room


class RoomStore(ABC):
    """Persistent storage for room records.

    Implement this ABC to plug in any storage backend. The library ships
    with ``InMemoryRoomStore`` for development and testing,
    ``PostgresRoomStore`` and ``RestRoomStore`` (PostgREST / Supabase).

    Contract for implementations:

    * ``create_room`` raises ``RoomCodeConflictError`` if the code is taken.
    * ``update_*`` raise ``RoomNotFoundError`` for an unknown room id.
    * Transport failures raise ``StoreUnavailableError``.
    """

    @abstractmethod
    async def create_room(self, room: Room) -> Room:
        """Persist a new room."""
        ...

    @abstractmethod
    async def get_room(self, room_id: str) -> Room | None:
        """Get a room by id, or ``None`` if it doesn't exist."""
        ...

    @abstractmethod
    async def get_room_by_code(self, code: str) -> Room | None:
        """Get a room by its share code (case-insensitive)."""
        ...

    @abstractmethod
    async def update_playback(
        self,
        room_id: str,
        playback_time: float,
        is_playing: bool,
        last_sync_at: datetime,
    ) -> None:
        """Overwrite the authoritative playback fields of a room."""
        ...

    @abstractmethod
    async def update_subtitle(self, room_id: str, subtitle_url: str | None) -> None:
        """Set or clear the subtitle reference of a room."""
        ...

    async def close(self) -> None:
        """Release resources. The default implementation does nothing."""
        return None
