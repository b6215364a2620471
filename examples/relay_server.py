"""Standalone WebSocket relay.

Runs the broadcast relay that ``WebSocketRealtime`` clients connect to.

Run with:
    RELAY_HOST=0.0.0.0 RELAY_PORT=8765 uv run python examples/relay_server.py
"""

from __future__ import annotations

import asyncio
import logging
import os

from syncwatch.realtime.relay import RelayServer

logging.basicConfig(level=logging.INFO)


async def main() -> None:
    host = os.environ.get("RELAY_HOST", "127.0.0.1")
    port = int(os.environ.get("RELAY_PORT", "8765"))
    async with RelayServer(host=host, port=port) as relay:
        await relay.serve_forever()


if __name__ == "__main__":
    asyncio.run(main())
