"""Join a room over a WebSocket relay.

Starts (or joins) a room through a running relay and a PostgREST room
store. Shows:
- RestRoomStore configured from environment variables
- WebSocketRealtime as the broadcast transport
- A persistent identity kept in ~/.syncwatch/identity.json

Run a relay first (examples/relay_server.py), then:
    SYNCWATCH_REST_URL=https://<project>.supabase.co SYNCWATCH_REST_KEY=<anon key> \
    RELAY_URL=ws://127.0.0.1:8765 uv run python examples/websocket_viewer.py [ROOM_CODE]

Without a room code a new room is created.
"""

from __future__ import annotations

import asyncio
import logging
import os
import sys

from syncwatch import FileIdentityStorage, RestStoreConfig, SimulatedPlayer, SyncWatchClient
from syncwatch.realtime.websocket import WebSocketRealtime
from syncwatch.store.rest import RestRoomStore

logging.basicConfig(level=logging.INFO, format="%(name)s | %(message)s")


async def main() -> None:
    config = RestStoreConfig(
        base_url=os.environ["SYNCWATCH_REST_URL"],
        api_key=os.environ.get("SYNCWATCH_REST_KEY"),
    )
    store = RestRoomStore(config)
    realtime = WebSocketRealtime(os.environ.get("RELAY_URL", "ws://127.0.0.1:8765"))
    client = SyncWatchClient(store, realtime, identity_storage=FileIdentityStorage())

    if len(sys.argv) > 1:
        code = sys.argv[1]
    else:
        room = await client.create_room("https://cdn.example.com/big-buck-bunny.mp4")
        code = room.code
        print(f"Created room {code}; share it with a friend")

    player = SimulatedPlayer()
    session = await client.join(code, player)
    session.add_listener(lambda e: print(f"<- {e.kind} at {e.time:.1f}s"))
    await session.play()

    try:
        while True:
            await asyncio.sleep(1.0)
            player.advance(1.0)
            session.engine.on_time_update(player.current_time)
    finally:
        await client.close()
        await realtime.close()
        await store.close()


if __name__ == "__main__":
    asyncio.run(main())
