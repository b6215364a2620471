"""Per-client playback reconciliation."""

from __future__ import annotations

import asyncio
import logging
import time
from collections import OrderedDict
from collections.abc import Callable, Coroutine
from dataclasses import dataclass, replace
from datetime import UTC, datetime
from typing import Any

from syncwatch.config import SyncConfig
from syncwatch.core.channel import Subscription, SyncChannel
from syncwatch.core.drift import DriftMonitor, exceeds_drift
from syncwatch.core.room_service import RoomService
from syncwatch.errors import ChannelUnavailableError, NotJoinedError, RoomValidationError
from syncwatch.models.enums import ConflictPolicy, SyncEventKind
from syncwatch.models.event import SyncEvent
from syncwatch.models.room import Room
from syncwatch.player.base import MediaPlayer

logger = logging.getLogger("syncwatch.engine")

Clock = Callable[[], float]
WallClock = Callable[[], datetime]
SyncListener = Callable[[SyncEvent], Any]


def utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass
class PlaybackState:
    """What this client believes its own player is doing."""

    local_time: float = 0.0
    is_playing: bool = False
    has_started: bool = False
    target_time: float | None = None
    suppress_until: float = 0.0


@dataclass(frozen=True)
class AuthoritativeAnchor:
    """Last known room position, pinned to the local monotonic clock."""

    position: float
    is_playing: bool
    anchored_at: float

    def position_at(self, now: float) -> float:
        if not self.is_playing:
            return self.position
        return self.position + max(0.0, now - self.anchored_at)


class ListenerHandle:
    """Returned by ``add_listener``; ``remove()`` detaches that listener only."""

    def __init__(self, registry: list[ListenerHandle], callback: SyncListener) -> None:
        self._registry = registry
        self.callback = callback

    @property
    def active(self) -> bool:
        return self in self._registry

    def remove(self) -> None:
        if self in self._registry:
            self._registry.remove(self)


class ReconciliationEngine:
    """Keeps one client's player converged on the room's shared playback.

    Local intent (``play``/``pause``/``seek``) is applied to the player at
    once, then broadcast and persisted in the background. Peer events are
    applied unconditionally after dropping our own echoes and exact
    duplicates. Between events, ``check_drift`` pulls the player back to
    the extrapolated authoritative position when it wanders more than
    ``drift_threshold`` seconds.

    All methods must be called from the event loop that owns the engine;
    nothing here locks.
    """

    def __init__(
        self,
        room: Room,
        identity: str,
        player: MediaPlayer,
        *,
        channel: SyncChannel,
        rooms: RoomService,
        config: SyncConfig | None = None,
        clock: Clock = time.monotonic,
        wall_clock: WallClock = utcnow,
        monitor_drift: bool = True,
    ) -> None:
        self._room = room
        self._identity = identity
        self._player = player
        self._channel = channel
        self._rooms = rooms
        self._config = config or SyncConfig()
        self._clock = clock
        self._wall_clock = wall_clock

        self._state = PlaybackState()
        self._anchor = AuthoritativeAnchor(room.playback_time, room.is_playing, clock())
        self._guard_until = 0.0
        self._last_applied_key: tuple[float, str] | None = None
        self._recent: OrderedDict[tuple[str, str, float, float], None] = OrderedDict()
        self._listeners: list[ListenerHandle] = []
        self._pending: set[asyncio.Task[Any]] = set()
        self._subscription: Subscription | None = None
        self._monitor = (
            DriftMonitor(self.check_drift, self._config.drift_check_interval)
            if monitor_drift
            else None
        )
        self._started = False
        self._closed = False

    # -- Properties --

    @property
    def room(self) -> Room:
        return self._room

    @property
    def identity(self) -> str:
        return self._identity

    @property
    def is_host(self) -> bool:
        return self._room.host_id == self._identity

    @property
    def state(self) -> PlaybackState:
        """Snapshot of the local playback state."""
        return replace(self._state)

    @property
    def anchor(self) -> AuthoritativeAnchor:
        return self._anchor

    @property
    def active(self) -> bool:
        return self._started and not self._closed

    @property
    def pending_writes(self) -> int:
        return len(self._pending)

    def authoritative_position(self) -> float:
        return self._anchor.position_at(self._clock())

    # -- Lifecycle --

    async def start(self) -> None:
        """Adopt the room's stored state and start listening for peers."""
        if self._started:
            return
        now = self._clock()
        position = self._room.position_at(self._wall_clock())
        self._anchor = AuthoritativeAnchor(position, self._room.is_playing, now)
        self._state.is_playing = self._room.is_playing
        self._state.local_time = position
        self._state.target_time = position
        if self._player.current_time != position:
            self._player.seek(position)

        self._subscription = await self._channel.subscribe(self._room.code, self.handle_event)
        self._started = True
        if self._monitor is not None:
            self._monitor.start()
        logger.info("Joined room %s as %s at %.2fs", self._room.code, self._identity, position)

    async def stop(self) -> None:
        """Stop reacting to this room. Safe to call more than once.

        Background writes already scheduled are allowed to finish; they only
        ever touch this room's record.
        """
        if self._closed:
            return
        self._closed = True
        if self._monitor is not None:
            await self._monitor.stop()
        if self._subscription is not None:
            await self._subscription.cancel()
            self._subscription = None
        self._state.suppress_until = 0.0
        self._guard_until = 0.0
        self._listeners.clear()
        logger.info("Left room %s", self._room.code)

    async def flush(self) -> None:
        """Wait for every scheduled publish and store write to finish."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    # -- Outbound path --

    async def play(self) -> SyncEvent:
        self._ensure_ready()
        if not self._state.has_started and self._state.is_playing:
            # The room was already running when we joined: start where it is now.
            self._player.seek(self.authoritative_position())
        self._state.has_started = True
        self._state.is_playing = True
        self._player.play()
        return self._emit(SyncEventKind.PLAY, self._player.current_time)

    async def pause(self) -> SyncEvent:
        self._ensure_ready()
        self._state.is_playing = False
        self._player.pause()
        return self._emit(SyncEventKind.PAUSE, self._player.current_time)

    async def seek(self, position: float) -> SyncEvent:
        self._ensure_ready()
        position = max(0.0, position)
        self._player.seek(position)
        self._state.target_time = position
        return self._emit(SyncEventKind.SEEK, position)

    def _emit(self, kind: SyncEventKind, position: float) -> SyncEvent:
        now = self._clock()
        wall_now = self._wall_clock()
        position = max(0.0, position)
        is_playing = self._state.is_playing

        self._state.local_time = position
        self._state.suppress_until = now + self._config.suppress_window_seconds
        self._anchor = AuthoritativeAnchor(position, is_playing, now)
        self._update_cached_room(position, is_playing, wall_now)

        event = SyncEvent(
            kind=kind,
            time=position,
            sender_id=self._identity,
            emitted_at=wall_now.timestamp() * 1000.0,
        )
        self._bump_order(event)
        self._spawn(self._publish(event), f"sync_publish:{kind}")
        self._spawn(self._persist(position, is_playing, wall_now), f"sync_persist:{kind}")
        logger.debug("Sent %s at %.2fs in room %s", kind, position, self._room.code)
        return event

    async def _publish(self, event: SyncEvent) -> None:
        try:
            await self._channel.publish(self._room.code, event)
        except ChannelUnavailableError:
            logger.warning(
                "Failed to broadcast %s in room %s", event.kind, self._room.code, exc_info=True
            )

    async def _persist(self, position: float, is_playing: bool, at: datetime) -> None:
        await self._rooms.update_room_state(self._room.id, position, is_playing, at)

    # -- Inbound path --

    async def handle_event(self, event: SyncEvent) -> None:
        """Apply a sync event delivered by the channel."""
        if not self.active:
            return
        if event.sender_id == self._identity:
            logger.debug("Ignoring own %s echo in room %s", event.kind, self._room.code)
            return
        if not self._room.has_video:
            logger.warning("Dropping %s for room %s without video", event.kind, self._room.code)
            return
        if self._seen(event):
            logger.debug("Ignoring duplicate %s from %s", event.kind, event.sender_id)
            return
        if (
            self._config.conflict_policy == ConflictPolicy.LATEST_EMITTED
            and self._last_applied_key is not None
            and event.ordering_key < self._last_applied_key
        ):
            logger.debug("Ignoring superseded %s from %s", event.kind, event.sender_id)
            return

        self._bump_order(event)
        self._apply(event)
        await self._notify(event)

    def _apply(self, event: SyncEvent) -> None:
        now = self._clock()
        state = self._state
        state.suppress_until = now + self._config.suppress_window_seconds

        if event.kind == SyncEventKind.PLAY:
            state.is_playing = True
            state.target_time = event.time
            state.local_time = event.time
            self._player.seek(event.time)
            if state.has_started and self._player.paused:
                self._player.play()
        elif event.kind == SyncEventKind.PAUSE:
            # Pausing alone never moves the local position.
            state.is_playing = False
            if not self._player.paused:
                self._player.pause()
        else:
            state.target_time = event.time
            state.local_time = event.time
            self._player.seek(event.time)

        self._anchor = AuthoritativeAnchor(event.time, state.is_playing, now)
        self._update_cached_room(event.time, state.is_playing, self._wall_clock())
        logger.debug(
            "Applied %s at %.2fs from %s in room %s",
            event.kind,
            event.time,
            event.sender_id,
            self._room.code,
        )

    async def on_media_state(self, playing: bool) -> None:
        """Report a play/pause transition observed on the media element.

        Inside the suppression window the transition is our own reaction to
        a peer event and is not broadcast again. Outside it, it is the
        user's doing (native controls, media keys) and goes out as intent.
        """
        if not self.active:
            return
        if playing:
            # The media element is running, so remote plays may resume it from now on.
            self._state.has_started = True
        if self._clock() < self._state.suppress_until:
            logger.debug("Suppressed media %s echo", "play" if playing else "pause")
            self._state.is_playing = playing
            return
        if playing == self._state.is_playing:
            return
        if playing:
            await self.play()
        else:
            await self.pause()

    # -- Passive drift correction --

    def on_time_update(self, position: float) -> bool:
        """Record an observed position and run a drift check against it."""
        self._state.local_time = position
        return self.check_drift(position)

    def check_drift(self, observed: float | None = None) -> bool:
        """Snap the player back to the room position if it drifted too far.

        Returns True when a correction was issued.
        """
        state = self._state
        if not self.active or not state.is_playing or not state.has_started:
            return False
        now = self._clock()
        if now < self._guard_until or now < state.suppress_until:
            return False

        local = self._player.current_time if observed is None else observed
        state.local_time = local
        target = self._anchor.position_at(now)
        if not exceeds_drift(local, target, self._config.drift_threshold):
            return False

        logger.info(
            "Drift of %.2fs in room %s, correcting to %.2fs",
            local - target,
            self._room.code,
            target,
        )
        self._player.seek(target)
        state.local_time = target
        state.target_time = target
        self._guard_until = now + self._config.correction_guard_seconds
        return True

    # -- Listeners --

    def add_listener(self, callback: SyncListener) -> ListenerHandle:
        """Call *callback* with every peer event this engine applies.

        Callbacks may be plain functions or coroutines. Any number of
        listeners can be attached; each is detached through its handle.
        """
        handle = ListenerHandle(self._listeners, callback)
        self._listeners.append(handle)
        return handle

    async def _notify(self, event: SyncEvent) -> None:
        for handle in list(self._listeners):
            try:
                result = handle.callback(event)
                if hasattr(result, "__await__"):
                    await result
            except Exception:
                logger.exception("Error in sync listener for room %s", self._room.code)

    # -- Helpers --

    def _ensure_ready(self) -> None:
        if not self.active:
            raise NotJoinedError(f"Engine for room {self._room.code} is not running")
        if not self._room.has_video:
            raise RoomValidationError(f"Room {self._room.code} has no video to sync")

    def _seen(self, event: SyncEvent) -> bool:
        key = event.dedupe_key
        if key in self._recent:
            return True
        self._recent[key] = None
        while len(self._recent) > self._config.recent_event_cache:
            self._recent.popitem(last=False)
        return False

    def _bump_order(self, event: SyncEvent) -> None:
        key = event.ordering_key
        if self._last_applied_key is None or key > self._last_applied_key:
            self._last_applied_key = key

    def _update_cached_room(self, position: float, is_playing: bool, at: datetime) -> None:
        self._room.playback_time = position
        self._room.is_playing = is_playing
        self._room.last_sync_at = at

    def _spawn(self, coro: Coroutine[Any, Any, None], name: str) -> None:
        task = asyncio.create_task(coro, name=name)
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
