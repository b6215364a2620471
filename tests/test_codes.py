"""Tests for room code generation."""

from __future__ import annotations

from syncwatch.core.codes import (
    ROOM_CODE_ALPHABET,
    ROOM_CODE_LENGTH,
    generate_room_code,
    is_valid_room_code,
    normalize_room_code,
)


class TestGenerateRoomCode:
    def test_length_and_alphabet(self) -> None:
        for _ in range(200):
            code = generate_room_code()
            assert len(code) == ROOM_CODE_LENGTH
            assert set(code) <= set(ROOM_CODE_ALPHABET)

    def test_ambiguous_symbols_never_appear(self) -> None:
        seen = "".join(generate_room_code() for _ in range(500))
        assert not set("01IO") & set(seen)

    def test_codes_vary(self) -> None:
        assert len({generate_room_code() for _ in range(50)}) > 1

    def test_custom_length(self) -> None:
        assert len(generate_room_code(8)) == 8


class TestNormalize:
    def test_strips_and_uppercases(self) -> None:
        assert normalize_room_code("  abc234 ") == "ABC234"

    def test_validity(self) -> None:
        assert is_valid_room_code("ABC234")
        assert not is_valid_room_code("ABC23")
        assert not is_valid_room_code("ABC230")
        assert not is_valid_room_code("abc234")
