"""Shared test fixtures and helpers."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Callable, Coroutine
from datetime import UTC, datetime, timedelta
from typing import Any

import pytest

from syncwatch.config import SyncConfig
from syncwatch.core.channel import SyncChannel
from syncwatch.core.engine import ReconciliationEngine
from syncwatch.core.room_service import RoomService
from syncwatch.models.enums import SyncEventKind
from syncwatch.models.event import SyncEvent
from syncwatch.models.room import MediaRefs, Room
from syncwatch.player.mock import SimulatedPlayer
from syncwatch.realtime.memory import InMemoryRealtime
from syncwatch.store.memory import InMemoryRoomStore

VIDEO_URL = "https://cdn.example.com/movie.mp4"


class FakeClock:
    """Monotonic and wall clock that only move when advanced."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start
        self._start = start
        self._epoch = datetime(2025, 1, 1, tzinfo=UTC)

    def __call__(self) -> float:
        return self.now

    def wall(self) -> datetime:
        return self._epoch + timedelta(seconds=self.now - self._start)

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def advance() -> Callable[[int], Coroutine[Any, Any, None]]:
    """Yield control to let pending tasks run without real delay.

    Replaces ``await asyncio.sleep(0.05)`` patterns with zero-delay
    event loop yields::

        await advance()       # 5 yields (default)
        await advance(10)     # 10 yields for heavier workloads
    """

    async def _advance(n: int = 5) -> None:
        for _ in range(n):
            await asyncio.sleep(0)

    return _advance


@pytest.fixture
def store() -> InMemoryRoomStore:
    return InMemoryRoomStore()


@pytest.fixture
async def realtime() -> AsyncIterator[InMemoryRealtime]:
    backend = InMemoryRealtime()
    yield backend
    await backend.close()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


def make_room(
    code: str = "ABC234",
    host_id: str = "user_host",
    video_url: str | None = VIDEO_URL,
    **kwargs: Any,
) -> Room:
    return Room(code=code, host_id=host_id, media=MediaRefs(video_url=video_url), **kwargs)


def make_event(
    kind: SyncEventKind = SyncEventKind.SEEK,
    time: float = 0.0,
    sender_id: str = "user_peer",
    emitted_at: float = 1_735_689_600_000.0,
) -> SyncEvent:
    return SyncEvent(kind=kind, time=time, sender_id=sender_id, emitted_at=emitted_at)


async def make_engine(
    store: InMemoryRoomStore,
    realtime: InMemoryRealtime,
    clock: FakeClock,
    *,
    room: Room | None = None,
    identity: str = "user_local",
    player: SimulatedPlayer | None = None,
    config: SyncConfig | None = None,
    start: bool = True,
) -> ReconciliationEngine:
    """Build an engine on the in-memory stack, persisting *room* first if new."""
    room = room or make_room()
    if await store.get_room(room.id) is None:
        await store.create_room(room)
    engine = ReconciliationEngine(
        room.model_copy(deep=True),
        identity,
        player or SimulatedPlayer(),
        channel=SyncChannel(realtime),
        rooms=RoomService(store, identity, config),
        config=config,
        clock=clock,
        wall_clock=clock.wall,
        monitor_drift=False,
    )
    if start:
        await engine.start()
    return engine
