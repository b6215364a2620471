"""Client-side view of the room store."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime

from syncwatch.config import SyncConfig
from syncwatch.core.codes import generate_room_code, normalize_room_code
from syncwatch.errors import (
    RoomCodeConflictError,
    RoomNotFoundError,
    RoomValidationError,
    StoreUnavailableError,
    SyncWatchError,
)
from syncwatch.models.room import MediaRefs, Room
from syncwatch.store.base import RoomStore

logger = logging.getLogger("syncwatch.store")


class RoomService:
    """Fetch, create and update rooms on behalf of one client.

    Reads surface errors (the caller must know whether a room exists).
    Playback and subtitle writes are fire-and-forget: a failure is logged
    and reported as ``False``, never raised, because the local optimistic
    state has already moved on.
    """

    def __init__(
        self,
        store: RoomStore,
        identity: str,
        config: SyncConfig | None = None,
        *,
        code_factory: Callable[[], str] = generate_room_code,
    ) -> None:
        self._store = store
        self._identity = identity
        self._config = config or SyncConfig()
        self._code_factory = code_factory

    @property
    def store(self) -> RoomStore:
        return self._store

    async def fetch_room(self, code: str) -> Room:
        """Look up a room by code.

        Raises:
            RoomNotFoundError: No room has this code.
            StoreUnavailableError: The store could not be queried.
        """
        normalized = normalize_room_code(code)
        try:
            room = await self._store.get_room_by_code(normalized)
        except SyncWatchError:
            raise
        except Exception as exc:
            raise StoreUnavailableError(f"Failed to load room {normalized}: {exc}") from exc
        if room is None:
            raise RoomNotFoundError(normalized)
        return room

    async def create_room(
        self,
        video_url: str | None,
        art_url: str | None = None,
        subtitle_url: str | None = None,
    ) -> Room:
        """Create a room hosted by this client, paused at position 0.

        A fresh code is drawn for every attempt; a code already taken in the
        store is retried up to ``code_max_attempts`` times.

        Raises:
            RoomValidationError: No video reference was given.
            RoomCodeConflictError: Every attempted code was taken.
            StoreUnavailableError: The store rejected the write.
        """
        if not video_url or not video_url.strip():
            raise RoomValidationError("A room needs a video before it can be created")
        media = MediaRefs(video_url=video_url, art_url=art_url or None, subtitle_url=subtitle_url or None)

        last_conflict: RoomCodeConflictError | None = None
        for attempt in range(1, self._config.code_max_attempts + 1):
            room = Room(code=self._code_factory(), media=media, host_id=self._identity)
            try:
                created = await self._store.create_room(room)
            except RoomCodeConflictError as exc:
                last_conflict = exc
                logger.info(
                    "Room code %s taken (attempt %d/%d)",
                    room.code,
                    attempt,
                    self._config.code_max_attempts,
                )
                continue
            except SyncWatchError:
                raise
            except Exception as exc:
                raise StoreUnavailableError(f"Failed to create room: {exc}") from exc
            logger.info("Created room %s hosted by %s", created.code, self._identity)
            return created

        assert last_conflict is not None
        raise last_conflict

    async def update_room_state(
        self,
        room_id: str,
        playback_time: float,
        is_playing: bool,
        last_sync_at: datetime,
    ) -> bool:
        try:
            await self._store.update_playback(room_id, playback_time, is_playing, last_sync_at)
        except Exception:
            logger.warning("Failed to persist playback state for room %s", room_id, exc_info=True)
            return False
        return True

    async def update_subtitle(self, room_id: str, subtitle_url: str | None) -> bool:
        try:
            await self._store.update_subtitle(room_id, subtitle_url)
        except Exception:
            logger.warning("Failed to persist subtitle for room %s", room_id, exc_info=True)
            return False
        return True
