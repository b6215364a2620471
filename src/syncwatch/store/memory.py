"""In-memory implementation of RoomStore."""

from __future__ import annotations

from datetime import datetime

from syncwatch.errors import RoomCodeConflictError, RoomNotFoundError
from syncwatch.models.room import Room
from syncwatch.store.base import RoomStore


class InMemoryRoomStore(RoomStore):
    """Dict-based in-memory store for development and testing."""

    def __init__(self) -> None:
        self._rooms: dict[str, Room] = {}
        self._codes: dict[str, str] = {}  # upper-case code -> room id

    async def create_room(self, room: Room) -> Room:
        code = room.code.upper()
        if code in self._codes:
            raise RoomCodeConflictError(code)
        self._rooms[room.id] = room.model_copy(deep=True)
        self._codes[code] = room.id
        return room

    async def get_room(self, room_id: str) -> Room | None:
        room = self._rooms.get(room_id)
        return room.model_copy(deep=True) if room is not None else None

    async def get_room_by_code(self, code: str) -> Room | None:
        room_id = self._codes.get(code.upper())
        if room_id is None:
            return None
        return await self.get_room(room_id)

    async def update_playback(
        self,
        room_id: str,
        playback_time: float,
        is_playing: bool,
        last_sync_at: datetime,
    ) -> None:
        room = self._require(room_id)
        room.playback_time = max(0.0, playback_time)
        room.is_playing = is_playing
        room.last_sync_at = last_sync_at

    async def update_subtitle(self, room_id: str, subtitle_url: str | None) -> None:
        self._require(room_id).media.subtitle_url = subtitle_url

    @property
    def room_count(self) -> int:
        return len(self._rooms)

    def _require(self, room_id: str) -> Room:
        room = self._rooms.get(room_id)
        if room is None:
            raise RoomNotFoundError(room_id)
        return room
