"""Tests for the in-process realtime backend."""

from __future__ import annotations

import asyncio

from syncwatch.realtime import BroadcastMessage, InMemoryRealtime, RealtimeBackend, room_topic


def _message(topic: str = "room:ABC234", n: int = 0) -> BroadcastMessage:
    return BroadcastMessage(topic=topic, event="sync", payload={"n": n})


class TestBroadcastMessage:
    def test_to_dict_and_from_dict(self) -> None:
        message = _message(n=3)
        restored = BroadcastMessage.from_dict(message.to_dict())

        assert restored.id == message.id
        assert restored.topic == message.topic
        assert restored.event == message.event
        assert restored.payload == message.payload
        assert restored.sent_at == message.sent_at

    def test_default_values(self) -> None:
        message = BroadcastMessage(topic="t", event="sync")
        assert message.id
        assert message.payload == {}

    def test_room_topic(self) -> None:
        assert room_topic("abc234") == "room:ABC234"


class TestInMemoryRealtime:
    async def test_publish_subscribe(self, advance) -> None:
        backend = InMemoryRealtime()
        received: list[BroadcastMessage] = []

        async def callback(message: BroadcastMessage) -> None:
            received.append(message)

        sub_id = await backend.subscribe("room:ABC234", callback)
        message = _message()
        await backend.publish("room:ABC234", message)
        await advance()

        assert received == [message]

        assert await backend.unsubscribe(sub_id) is True
        await backend.close()

    async def test_publisher_receives_own_message(self, advance) -> None:
        backend = InMemoryRealtime()
        received: list[BroadcastMessage] = []

        async def callback(message: BroadcastMessage) -> None:
            received.append(message)

        await backend.subscribe_to_room("abc234", callback)
        await backend.publish_to_room("ABC234", _message())
        await advance()

        assert len(received) == 1
        await backend.close()

    async def test_multiple_subscribers(self, advance) -> None:
        backend = InMemoryRealtime()
        received1: list[BroadcastMessage] = []
        received2: list[BroadcastMessage] = []

        async def callback1(message: BroadcastMessage) -> None:
            received1.append(message)

        async def callback2(message: BroadcastMessage) -> None:
            received2.append(message)

        await backend.subscribe("room:ABC234", callback1)
        await backend.subscribe("room:ABC234", callback2)
        await backend.publish("room:ABC234", _message())
        await advance()

        assert len(received1) == 1
        assert len(received2) == 1
        assert received1[0].id == received2[0].id
        await backend.close()

    async def test_topics_are_isolated(self, advance) -> None:
        backend = InMemoryRealtime()
        received: list[BroadcastMessage] = []

        async def callback(message: BroadcastMessage) -> None:
            received.append(message)

        await backend.subscribe("room:ABC234", callback)
        await backend.publish("room:ZZZ999", _message("room:ZZZ999"))
        await advance()

        assert received == []
        await backend.close()

    async def test_unsubscribe_stops_delivery(self, advance) -> None:
        backend = InMemoryRealtime()
        received: list[BroadcastMessage] = []

        async def callback(message: BroadcastMessage) -> None:
            received.append(message)

        sub_id = await backend.subscribe("room:ABC234", callback)
        await backend.publish("room:ABC234", _message(n=1))
        await advance()
        await backend.unsubscribe(sub_id)
        await backend.publish("room:ABC234", _message(n=2))
        await advance()

        assert [m.payload["n"] for m in received] == [1]
        assert backend.subscription_count == 0
        await backend.close()

    async def test_unsubscribe_unknown(self) -> None:
        backend = InMemoryRealtime()
        assert await backend.unsubscribe("nope") is False
        await backend.close()

    async def test_unsubscribe_from_inside_callback(self, advance) -> None:
        backend = InMemoryRealtime()
        received: list[BroadcastMessage] = []
        sub_ids: list[str] = []

        async def callback(message: BroadcastMessage) -> None:
            received.append(message)
            await backend.unsubscribe(sub_ids[0])

        sub_ids.append(await backend.subscribe("room:ABC234", callback))
        await backend.publish("room:ABC234", _message(n=1))
        await backend.publish("room:ABC234", _message(n=2))
        await advance()

        assert len(received) == 1
        assert backend.subscription_count == 0
        await backend.close()

    async def test_callback_error_does_not_stop_delivery(self, advance) -> None:
        backend = InMemoryRealtime()
        received: list[BroadcastMessage] = []

        async def callback(message: BroadcastMessage) -> None:
            if message.payload["n"] == 1:
                raise RuntimeError("boom")
            received.append(message)

        await backend.subscribe("room:ABC234", callback)
        await backend.publish("room:ABC234", _message(n=1))
        await backend.publish("room:ABC234", _message(n=2))
        await advance()

        assert [m.payload["n"] for m in received] == [2]
        await backend.close()

    async def test_overflow_drops_oldest(self, advance) -> None:
        backend = InMemoryRealtime(max_queue_size=3)
        received: list[BroadcastMessage] = []
        gate = asyncio.Event()

        async def callback(message: BroadcastMessage) -> None:
            await gate.wait()
            received.append(message)

        await backend.subscribe("room:ABC234", callback)
        await backend.publish("room:ABC234", _message(n=0))
        await advance()
        # The first message is now held by the callback; the buffer holds three more.
        for n in range(1, 6):
            await backend.publish("room:ABC234", _message(n=n))

        assert backend.dropped_count == 2
        gate.set()
        await advance()

        assert [m.payload["n"] for m in received] == [0, 3, 4, 5]
        await backend.close()

    async def test_close_refuses_publishes(self, advance) -> None:
        backend = InMemoryRealtime()
        received: list[BroadcastMessage] = []

        async def callback(message: BroadcastMessage) -> None:
            received.append(message)

        await backend.subscribe("room:ABC234", callback)
        await backend.close()
        await backend.publish("room:ABC234", _message())
        await advance()

        assert received == []
        assert backend.subscription_count == 0

    def test_is_realtime_backend(self) -> None:
        assert issubclass(InMemoryRealtime, RealtimeBackend)
