"""Minimal WebSocket relay fanning broadcasts out to topic subscribers."""

from __future__ import annotations

import json
import logging
from typing import Any

try:
    from websockets.asyncio.server import Server, ServerConnection, serve
    from websockets.exceptions import ConnectionClosed

    HAS_WEBSOCKETS = True
except ImportError:
    Server = None  # type: ignore[assignment, misc]
    ServerConnection = None  # type: ignore[assignment, misc]
    HAS_WEBSOCKETS = False

logger = logging.getLogger("syncwatch.realtime.relay")


class RelayServer:
    """Topic-scoped broadcast relay for ``WebSocketRealtime`` clients.

    The relay keeps no state beyond who is subscribed to what. It does not
    filter: a broadcast reaches every connection subscribed to its topic,
    the sender included.

    Example:
        async with RelayServer(port=8765) as relay:
            await relay.serve_forever()
    """

    def __init__(self, host: str = "127.0.0.1", port: int = 8765) -> None:
        if not HAS_WEBSOCKETS:
            raise ImportError(
                "websockets is required for RelayServer. "
                "Install it with: pip install syncwatch[websocket]"
            )
        self._host = host
        self._port = port
        self._server: Server | None = None
        self._topics: dict[str, set[ServerConnection]] = {}

    @property
    def port(self) -> int:
        """Bound port (useful when constructed with ``port=0``)."""
        if self._server is None:
            return self._port
        return int(next(iter(self._server.sockets)).getsockname()[1])

    @property
    def url(self) -> str:
        return f"ws://{self._host}:{self.port}"

    def subscriber_count(self, topic: str) -> int:
        return len(self._topics.get(topic, ()))

    async def start(self) -> None:
        self._server = await serve(self._handle, self._host, self._port)
        logger.info("Relay listening on %s", self.url)

    async def stop(self) -> None:
        if self._server is None:
            return
        self._server.close()
        await self._server.wait_closed()
        self._server = None
        self._topics.clear()
        logger.info("Relay stopped")

    async def serve_forever(self) -> None:
        if self._server is None:
            await self.start()
        assert self._server is not None
        await self._server.serve_forever()

    async def __aenter__(self) -> RelayServer:
        await self.start()
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.stop()

    async def _handle(self, connection: ServerConnection) -> None:
        joined: set[str] = set()
        try:
            async for raw in connection:
                try:
                    frame = json.loads(raw)
                except (json.JSONDecodeError, TypeError):
                    logger.warning("Invalid frame from %s", connection.remote_address)
                    continue
                if not isinstance(frame, dict):
                    continue

                op = frame.get("op")
                topic = frame.get("topic")
                if op == "subscribe" and isinstance(topic, str):
                    self._topics.setdefault(topic, set()).add(connection)
                    joined.add(topic)
                elif op == "unsubscribe" and isinstance(topic, str):
                    self._leave(topic, connection)
                    joined.discard(topic)
                elif op == "broadcast" and isinstance(frame.get("message"), dict):
                    await self._fan_out(frame["message"])
                else:
                    logger.debug("Ignoring frame with op %r", op)
        except ConnectionClosed:
            logger.debug("Connection %s dropped", connection.remote_address)
        finally:
            for topic in joined:
                self._leave(topic, connection)

    async def _fan_out(self, message: dict[str, Any]) -> None:
        topic = message.get("topic")
        if not isinstance(topic, str):
            return
        data = json.dumps({"op": "message", "message": message})
        for conn in list(self._topics.get(topic, ())):
            try:
                await conn.send(data)
            except ConnectionClosed:
                logger.debug("Skipping closed subscriber on %s", topic)

    def _leave(self, topic: str, connection: ServerConnection) -> None:
        subs = self._topics.get(topic)
        if subs is None:
            return
        subs.discard(connection)
        if not subs:
            del self._topics[topic]
