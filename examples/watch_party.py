"""Two viewers watching together on the in-memory stack.

Demonstrates the full sync loop in one process. Shows:
- Creating a room and sharing its code
- Joining from a second client and receiving play/pause/seek
- Passive drift correction pulling a stalled player back in step

Run with:
    uv run python examples/watch_party.py
"""

from __future__ import annotations

import asyncio
import logging

from syncwatch import (
    InMemoryRealtime,
    InMemoryRoomStore,
    SimulatedPlayer,
    SyncEvent,
    SyncWatchClient,
)

logging.basicConfig(level=logging.INFO, format="%(name)s | %(message)s")


async def main() -> None:
    store = InMemoryRoomStore()
    realtime = InMemoryRealtime()

    host = SyncWatchClient(store, realtime, monitor_drift=False)
    guest = SyncWatchClient(store, realtime, monitor_drift=False)

    room = await host.create_room("https://cdn.example.com/big-buck-bunny.mp4")
    print(f"Room code: {room.code}")

    host_player = SimulatedPlayer()
    guest_player = SimulatedPlayer()
    host_session = await host.join(room.code, host_player)
    guest_session = await guest.join(room.code, guest_player)

    def on_sync(event: SyncEvent) -> None:
        print(f"  guest <- {event.kind} at {event.time:.1f}s from {event.sender_id}")

    guest_session.add_listener(on_sync)

    # Guest presses play once so remote play commands may start its media.
    await guest_session.play()
    await guest_session.pause()

    print("\nHost plays, then skips ahead:")
    await host_session.play()
    await host_session.seek(120.0)
    await asyncio.sleep(0.1)
    print(f"  guest player at {guest_player.current_time:.1f}s, paused={guest_player.paused}")

    print("\nGuest buffers and falls behind:")
    await asyncio.sleep(2.5)
    host_player.advance(2.5)
    guest_player.jump(118.0)
    corrected = guest_session.engine.check_drift()
    print(f"  corrected={corrected}, guest player at {guest_player.current_time:.1f}s")

    print("\nHost pauses:")
    await host_session.pause()
    await asyncio.sleep(0.1)
    print(f"  guest paused={guest_player.paused}")

    await host.close()
    await guest.close()
    await realtime.close()


if __name__ == "__main__":
    asyncio.run(main())
