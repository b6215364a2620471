"""A client's membership of one room."""

from __future__ import annotations

import logging

from syncwatch.core.engine import ListenerHandle, PlaybackState, ReconciliationEngine, SyncListener
from syncwatch.core.room_service import RoomService
from syncwatch.errors import NotJoinedError
from syncwatch.models.event import SyncEvent
from syncwatch.models.room import Room

logger = logging.getLogger("syncwatch.client")


class RoomSession:
    """What a joined client holds: the room, its engine and the room-level actions."""

    def __init__(self, engine: ReconciliationEngine, rooms: RoomService) -> None:
        self._engine = engine
        self._rooms = rooms

    @property
    def engine(self) -> ReconciliationEngine:
        return self._engine

    @property
    def room(self) -> Room:
        return self._engine.room

    @property
    def code(self) -> str:
        return self._engine.room.code

    @property
    def is_host(self) -> bool:
        return self._engine.is_host

    @property
    def active(self) -> bool:
        return self._engine.active

    @property
    def state(self) -> PlaybackState:
        return self._engine.state

    async def play(self) -> SyncEvent:
        return await self._engine.play()

    async def pause(self) -> SyncEvent:
        return await self._engine.pause()

    async def seek(self, position: float) -> SyncEvent:
        return await self._engine.seek(position)

    def add_listener(self, callback: SyncListener) -> ListenerHandle:
        return self._engine.add_listener(callback)

    async def update_subtitle(self, subtitle_url: str | None) -> bool:
        """Attach (or clear, with ``None``) a subtitle track for the room.

        The local copy changes first; the store write may fail, which is
        logged and reported as ``False``.

        Raises:
            NotJoinedError: The session has already left the room.
        """
        if not self._engine.active:
            raise NotJoinedError(f"Session for room {self.code} is not active")
        self.room.media.subtitle_url = subtitle_url
        return await self._rooms.update_subtitle(self.room.id, subtitle_url)

    async def leave(self) -> None:
        await self._engine.stop()
