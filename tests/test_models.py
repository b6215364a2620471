"""Tests for data models and configuration."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest
from pydantic import ValidationError

from syncwatch.config import RestStoreConfig, SyncConfig
from syncwatch.models.enums import ConflictPolicy, SyncEventKind
from syncwatch.models.event import SyncEvent
from syncwatch.models.room import MediaRefs, Room
from tests.conftest import make_event, make_room

T0 = datetime(2025, 1, 1, tzinfo=UTC)


class TestRoom:
    def test_defaults(self) -> None:
        room = Room(code="abc234", host_id="user_1")
        assert room.code == "ABC234"
        assert room.id
        assert room.playback_time == 0.0
        assert room.is_playing is False
        assert room.last_sync_at is None
        assert room.has_video is False

    def test_negative_playback_time_rejected(self) -> None:
        with pytest.raises(ValidationError):
            make_room(playback_time=-1.0)

    def test_position_while_paused_is_stored_time(self) -> None:
        room = make_room(playback_time=12.0, last_sync_at=T0)
        assert room.position_at(T0 + timedelta(seconds=30)) == 12.0

    def test_position_while_playing_advances(self) -> None:
        room = make_room(playback_time=12.0, is_playing=True, last_sync_at=T0)
        assert room.position_at(T0 + timedelta(seconds=3.5)) == 15.5

    def test_position_ignores_clock_skew(self) -> None:
        room = make_room(playback_time=12.0, is_playing=True, last_sync_at=T0)
        assert room.position_at(T0 - timedelta(seconds=5)) == 12.0

    def test_record_round_trip(self) -> None:
        room = Room(
            code="XYZ789",
            host_id="user_1",
            media=MediaRefs(video_url="v.mp4", art_url="a.jpg", subtitle_url="s.vtt"),
            playback_time=3.0,
            is_playing=True,
            last_sync_at=T0,
        )
        record = room.to_record()

        assert record["video_url"] == "v.mp4"
        assert record["last_sync_at"] == T0.isoformat()
        assert Room.from_record(record) == room

    def test_from_record_naive_timestamps_are_utc(self) -> None:
        room = Room.from_record(
            {
                "code": "ABC234",
                "host_id": "user_1",
                "playback_time": 12.0,
                "is_playing": True,
                "last_sync_at": "2025-01-01T00:00:00",
                "created_at": "2025-01-01T00:00:00",
            }
        )

        assert room.last_sync_at == T0
        assert room.created_at == T0
        assert room.position_at(T0 + timedelta(seconds=3)) == 15.0

    def test_from_record_null_playback_fields(self) -> None:
        room = Room.from_record(
            {
                "id": "r1",
                "code": "abc234",
                "host_id": "user_1",
                "video_url": "v.mp4",
                "playback_time": None,
                "is_playing": None,
            }
        )
        assert room.code == "ABC234"
        assert room.playback_time == 0.0
        assert room.is_playing is False


class TestSyncEvent:
    def test_wire_format(self) -> None:
        event = make_event(SyncEventKind.SEEK, 42.0, "user_a", 1712345678901.0)
        assert event.to_wire() == {
            "type": "seek",
            "time": 42.0,
            "sender_id": "user_a",
            "timestamp": 1712345678901.0,
        }

    def test_from_wire(self) -> None:
        event = SyncEvent.from_wire(
            {"type": "play", "time": 12.5, "sender_id": "user_a", "timestamp": 1000}
        )
        assert event.kind == SyncEventKind.PLAY
        assert event.time == 12.5
        assert event.emitted_at == 1000.0

    @pytest.mark.parametrize(
        "payload",
        [
            {"type": "rewind", "time": 1, "sender_id": "u", "timestamp": 1},
            {"type": "seek", "time": -1, "sender_id": "u", "timestamp": 1},
            {"type": "seek", "time": 1, "sender_id": "", "timestamp": 1},
            {"type": "seek", "sender_id": "u", "timestamp": 1},
        ],
    )
    def test_from_wire_rejects_malformed(self, payload: dict) -> None:
        with pytest.raises(ValidationError):
            SyncEvent.from_wire(payload)

    def test_events_are_immutable(self) -> None:
        event = make_event()
        with pytest.raises(ValidationError):
            event.time = 5.0  # type: ignore[misc]

    def test_ordering_key_breaks_ties_by_sender(self) -> None:
        a = make_event(sender_id="user_a", emitted_at=5.0)
        b = make_event(sender_id="user_b", emitted_at=5.0)
        c = make_event(sender_id="user_a", emitted_at=6.0)
        assert a.ordering_key < b.ordering_key < c.ordering_key

    def test_emitted_at_defaults_to_now(self) -> None:
        event = SyncEvent(kind=SyncEventKind.PAUSE, time=0.0, sender_id="u")
        assert event.emitted_at > 1_600_000_000_000


class TestConfig:
    def test_sync_defaults(self) -> None:
        config = SyncConfig()
        assert config.drift_threshold == 2.0
        assert config.correction_guard_seconds == 0.5
        assert config.suppress_window_seconds == 0.5
        assert config.conflict_policy == ConflictPolicy.LAST_RECEIVED

    def test_rejects_non_positive_threshold(self) -> None:
        with pytest.raises(ValidationError):
            SyncConfig(drift_threshold=0)

    def test_rest_api_key_is_secret(self) -> None:
        config = RestStoreConfig(base_url="https://db.example.com", api_key="s3cret")
        assert "s3cret" not in repr(config)
        assert config.api_key is not None
        assert config.api_key.get_secret_value() == "s3cret"


class TestEnums:
    def test_event_kinds(self) -> None:
        assert [k.value for k in SyncEventKind] == ["play", "pause", "seek"]

    def test_conflict_policy_from_string(self) -> None:
        assert ConflictPolicy("latest_emitted") == ConflictPolicy.LATEST_EMITTED
