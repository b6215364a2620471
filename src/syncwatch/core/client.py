"""Entry point for one participant."""

from __future__ import annotations

import logging
import time

from syncwatch.config import SyncConfig
from syncwatch.core.channel import SyncChannel
from syncwatch.core.engine import Clock, ReconciliationEngine, WallClock, utcnow
from syncwatch.core.room_service import RoomService
from syncwatch.core.session import RoomSession
from syncwatch.identity.base import IdentityStorage, get_or_create_identity
from syncwatch.models.room import Room
from syncwatch.player.base import MediaPlayer
from syncwatch.realtime.base import RealtimeBackend
from syncwatch.store.base import RoomStore

logger = logging.getLogger("syncwatch.client")


class SyncWatchClient:
    """Ties identity, room store and realtime transport together for one client.

    A client is in at most one room at a time: ``join`` leaves the current
    room before entering the next, so nothing from the old room can reach
    the new room's engine.

    Example:
        client = SyncWatchClient(InMemoryRoomStore(), InMemoryRealtime())
        room = await client.create_room("https://cdn.example.com/movie.mp4")
        session = await client.join(room.code, player)
        await session.play()
    """

    def __init__(
        self,
        store: RoomStore,
        realtime: RealtimeBackend,
        *,
        identity: str | None = None,
        identity_storage: IdentityStorage | None = None,
        config: SyncConfig | None = None,
        clock: Clock = time.monotonic,
        wall_clock: WallClock = utcnow,
        monitor_drift: bool = True,
    ) -> None:
        self._identity = identity or get_or_create_identity(identity_storage)
        self._config = config or SyncConfig()
        self._rooms = RoomService(store, self._identity, self._config)
        self._channel = SyncChannel(realtime)
        self._clock = clock
        self._wall_clock = wall_clock
        self._monitor_drift = monitor_drift
        self._session: RoomSession | None = None

    @property
    def identity(self) -> str:
        return self._identity

    @property
    def rooms(self) -> RoomService:
        return self._rooms

    @property
    def session(self) -> RoomSession | None:
        return self._session

    async def create_room(
        self,
        video_url: str | None,
        art_url: str | None = None,
        subtitle_url: str | None = None,
    ) -> Room:
        return await self._rooms.create_room(video_url, art_url, subtitle_url)

    async def fetch_room(self, code: str) -> Room:
        return await self._rooms.fetch_room(code)

    async def join(self, code: str, player: MediaPlayer) -> RoomSession:
        """Enter the room with *code*, driving *player*.

        Raises:
            RoomNotFoundError: The code matches no room.
            StoreUnavailableError: The room could not be loaded.
        """
        await self.leave()
        room = await self._rooms.fetch_room(code)
        engine = ReconciliationEngine(
            room,
            self._identity,
            player,
            channel=self._channel,
            rooms=self._rooms,
            config=self._config,
            clock=self._clock,
            wall_clock=self._wall_clock,
            monitor_drift=self._monitor_drift,
        )
        await engine.start()
        self._session = RoomSession(engine, self._rooms)
        return self._session

    async def leave(self) -> None:
        session, self._session = self._session, None
        if session is not None:
            await session.leave()

    async def close(self) -> None:
        await self.leave()
