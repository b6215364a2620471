"""WebSocket realtime backend that talks to a ``RelayServer``."""

from __future__ import annotations

import asyncio
import contextlib
import json
import logging
from typing import Any
from uuid import uuid4

from syncwatch.errors import ChannelUnavailableError
from syncwatch.realtime.base import BroadcastCallback, BroadcastMessage, RealtimeBackend

# Optional dependency - import for type checking and availability check
try:
    import websockets
    from websockets.asyncio.client import ClientConnection
    from websockets.exceptions import ConnectionClosed, InvalidHandshake, InvalidURI

    HAS_WEBSOCKETS = True
except ImportError:
    websockets = None  # type: ignore[assignment]
    ClientConnection = None  # type: ignore[assignment, misc]
    HAS_WEBSOCKETS = False

logger = logging.getLogger("syncwatch.realtime.websocket")


class WebSocketRealtime(RealtimeBackend):
    """Pub/sub over a single WebSocket connection to a relay.

    Protocol (JSON text frames):

    - Client sends ``{"op": "subscribe", "topic": "room:ABC234"}``
    - Client sends ``{"op": "unsubscribe", "topic": "room:ABC234"}``
    - Client sends ``{"op": "broadcast", "message": {...}}``
    - Relay sends ``{"op": "message", "message": {...}}``

    The connection is opened on first use. If it drops, the next
    ``publish`` or ``subscribe`` reconnects and re-subscribes every topic
    that still has a local callback. Messages sent while disconnected are
    lost; the sync protocol tolerates that.

    Example:
        realtime = WebSocketRealtime("ws://localhost:8765")
        sub_id = await realtime.subscribe_to_room("ABC234", on_message)
    """

    def __init__(
        self,
        url: str,
        *,
        open_timeout: float = 10.0,
        ping_interval: float | None = 20.0,
        ping_timeout: float | None = 20.0,
    ) -> None:
        if not HAS_WEBSOCKETS:
            raise ImportError(
                "websockets is required for WebSocketRealtime. "
                "Install it with: pip install syncwatch[websocket]"
            )
        self._url = url
        self._open_timeout = open_timeout
        self._ping_interval = ping_interval
        self._ping_timeout = ping_timeout
        self._ws: ClientConnection | None = None
        self._reader: asyncio.Task[None] | None = None
        self._subs: dict[str, tuple[str, BroadcastCallback]] = {}
        self._connect_lock = asyncio.Lock()
        self._closed = False

    @property
    def connected(self) -> bool:
        return self._ws is not None

    async def publish(self, topic: str, message: BroadcastMessage) -> None:
        if self._closed:
            return
        ws = await self._ensure_connected()
        await self._send(ws, {"op": "broadcast", "message": {**message.to_dict(), "topic": topic}})

    async def subscribe(self, topic: str, callback: BroadcastCallback) -> str:
        if self._closed:
            raise ChannelUnavailableError("Realtime backend is closed")
        sub_id = uuid4().hex
        new_topic = topic not in self._topics()
        was_connected = self._ws is not None
        self._subs[sub_id] = (topic, callback)
        try:
            ws = await self._ensure_connected()
            # A fresh connection already subscribed every known topic.
            if was_connected and new_topic:
                await self._send(ws, {"op": "subscribe", "topic": topic})
        except ChannelUnavailableError:
            self._subs.pop(sub_id, None)
            raise
        return sub_id

    async def unsubscribe(self, subscription_id: str) -> bool:
        entry = self._subs.pop(subscription_id, None)
        if entry is None:
            return False
        topic = entry[0]
        ws = self._ws
        if ws is not None and topic not in self._topics():
            with contextlib.suppress(ChannelUnavailableError):
                await self._send(ws, {"op": "unsubscribe", "topic": topic})
        return True

    async def close(self) -> None:
        self._closed = True
        self._subs.clear()
        ws, self._ws = self._ws, None
        reader, self._reader = self._reader, None
        if ws is not None:
            with contextlib.suppress(Exception):
                await ws.close()
        if reader is not None and reader is not asyncio.current_task():
            reader.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await reader

    def _topics(self) -> set[str]:
        return {topic for topic, _ in self._subs.values()}

    async def _ensure_connected(self) -> ClientConnection:
        async with self._connect_lock:
            if self._ws is not None:
                return self._ws
            try:
                ws = await websockets.connect(
                    self._url,
                    open_timeout=self._open_timeout,
                    ping_interval=self._ping_interval,
                    ping_timeout=self._ping_timeout,
                )
            except (OSError, InvalidHandshake, InvalidURI) as exc:
                raise ChannelUnavailableError(f"Cannot reach relay at {self._url}: {exc}") from exc
            logger.info("Connected to relay %s", self._url)
            self._ws = ws
            for topic in sorted(self._topics()):
                await self._send(ws, {"op": "subscribe", "topic": topic})
            self._reader = asyncio.create_task(self._read_loop(ws), name="ws_realtime_reader")
            return ws

    async def _send(self, ws: ClientConnection, frame: dict[str, Any]) -> None:
        try:
            await ws.send(json.dumps(frame))
        except ConnectionClosed as exc:
            if self._ws is ws:
                self._ws = None
            raise ChannelUnavailableError(f"Relay connection closed: {exc}") from exc

    async def _read_loop(self, ws: ClientConnection) -> None:
        try:
            async for raw in ws:
                try:
                    frame = json.loads(raw)
                    if not isinstance(frame, dict) or frame.get("op") != "message":
                        continue
                    message = BroadcastMessage.from_dict(frame["message"])
                except (json.JSONDecodeError, KeyError, TypeError, ValueError):
                    logger.warning("Invalid frame from relay %s", self._url)
                    continue
                await self._dispatch(message)
        except asyncio.CancelledError:
            raise
        except ConnectionClosed:
            logger.debug("Relay connection closed")
        finally:
            if self._ws is ws:
                self._ws = None
                if not self._closed:
                    logger.warning("Lost connection to relay %s", self._url)

    async def _dispatch(self, message: BroadcastMessage) -> None:
        for sub_id, (topic, callback) in list(self._subs.items()):
            if topic != message.topic:
                continue
            try:
                await callback(message)
            except Exception:
                logger.exception("Error in realtime callback for subscription %s", sub_id)
