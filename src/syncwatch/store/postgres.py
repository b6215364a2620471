"""PostgreSQL implementation of RoomStore using asyncpg."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any

from syncwatch.errors import RoomCodeConflictError, RoomNotFoundError, StoreUnavailableError
from syncwatch.models.room import Room
from syncwatch.store.base import RoomStore

_SCHEMA = """\
CREATE TABLE IF NOT EXISTS rooms (
    id TEXT PRIMARY KEY,
    code TEXT NOT NULL,
    video_url TEXT,
    art_url TEXT,
    subtitle_url TEXT,
    host_id TEXT NOT NULL,
    playback_time DOUBLE PRECISION NOT NULL DEFAULT 0 CHECK (playback_time >= 0),
    is_playing BOOLEAN DEFAULT false,
    last_sync_at TIMESTAMPTZ,
    created_at TIMESTAMPTZ NOT NULL DEFAULT now()
);
CREATE UNIQUE INDEX IF NOT EXISTS idx_rooms_code ON rooms (upper(code));
"""

_COLUMNS = (
    "id, code, video_url, art_url, subtitle_url, host_id, "
    "playback_time, is_playing, last_sync_at, created_at"
)


class PostgresRoomStore(RoomStore):
    """PostgreSQL-backed room store using asyncpg."""

    def __init__(
        self,
        dsn: str | None = None,
        pool: Any = None,
    ) -> None:
        try:
            import asyncpg as _asyncpg
        except ImportError as exc:
            raise ImportError(
                "asyncpg is required for PostgresRoomStore. "
                "Install it with: pip install syncwatch[postgres]"
            ) from exc
        self._asyncpg = _asyncpg
        self._dsn = dsn
        self._pool = pool
        self._owns_pool = pool is None

    async def init(self, min_size: int = 2, max_size: int = 10) -> None:
        """Create the connection pool (if needed) and ensure schema exists."""
        async with self._errors():
            if self._pool is None:
                self._pool = await self._asyncpg.create_pool(
                    self._dsn,
                    min_size=min_size,
                    max_size=max_size,
                )
            async with self._pool.acquire() as conn:
                await conn.execute(_SCHEMA)

    async def close(self) -> None:
        """Release the connection pool if we own it."""
        if self._pool is not None and self._owns_pool:
            await self._pool.close()
            self._pool = None

    async def __aenter__(self) -> PostgresRoomStore:
        await self.init()
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()

    async def create_room(self, room: Room) -> Room:
        try:
            async with self._errors(), self._pool.acquire() as conn:
                await conn.execute(
                    f"INSERT INTO rooms ({_COLUMNS}) "
                    "VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10)",
                    room.id,
                    room.code,
                    room.media.video_url,
                    room.media.art_url,
                    room.media.subtitle_url,
                    room.host_id,
                    room.playback_time,
                    room.is_playing,
                    room.last_sync_at,
                    room.created_at,
                )
        except self._asyncpg.UniqueViolationError as exc:
            raise RoomCodeConflictError(room.code) from exc
        return room

    async def get_room(self, room_id: str) -> Room | None:
        async with self._errors(), self._pool.acquire() as conn:
            row = await conn.fetchrow(f"SELECT {_COLUMNS} FROM rooms WHERE id = $1", room_id)
        return Room.from_record(dict(row)) if row is not None else None

    async def get_room_by_code(self, code: str) -> Room | None:
        async with self._errors(), self._pool.acquire() as conn:
            row = await conn.fetchrow(
                f"SELECT {_COLUMNS} FROM rooms WHERE upper(code) = upper($1)", code
            )
        return Room.from_record(dict(row)) if row is not None else None

    async def update_playback(
        self,
        room_id: str,
        playback_time: float,
        is_playing: bool,
        last_sync_at: datetime,
    ) -> None:
        async with self._errors(), self._pool.acquire() as conn:
            tag = await conn.execute(
                "UPDATE rooms SET playback_time = $2, is_playing = $3, last_sync_at = $4 "
                "WHERE id = $1",
                room_id,
                max(0.0, playback_time),
                is_playing,
                last_sync_at,
            )
        if tag == "UPDATE 0":
            raise RoomNotFoundError(room_id)

    async def update_subtitle(self, room_id: str, subtitle_url: str | None) -> None:
        async with self._errors(), self._pool.acquire() as conn:
            tag = await conn.execute(
                "UPDATE rooms SET subtitle_url = $2 WHERE id = $1", room_id, subtitle_url
            )
        if tag == "UPDATE 0":
            raise RoomNotFoundError(room_id)

    @asynccontextmanager
    async def _errors(self) -> AsyncIterator[None]:
        """Map driver and socket failures onto ``StoreUnavailableError``."""
        try:
            yield
        except self._asyncpg.UniqueViolationError:
            raise
        except (self._asyncpg.PostgresError, self._asyncpg.InterfaceError, OSError) as exc:
            raise StoreUnavailableError(f"PostgreSQL store failed: {exc}") from exc
