"""Tests for client identity."""

from __future__ import annotations

import json
import logging
import re

import pytest

from syncwatch.identity import (
    IDENTITY_KEY,
    FileIdentityStorage,
    IdentityStorage,
    InMemoryIdentityStorage,
    generate_identity,
    get_or_create_identity,
)

IDENTITY_RE = re.compile(r"^user_\d+_[0-9a-z]{9}$")


class BrokenStorage(IdentityStorage):
    def get(self, key: str) -> str | None:
        raise OSError("storage disabled")

    def set(self, key: str, value: str) -> None:
        raise OSError("storage disabled")


class ReadOnlyStorage(InMemoryIdentityStorage):
    def set(self, key: str, value: str) -> None:
        raise PermissionError("read only")


class TestGenerateIdentity:
    def test_format(self) -> None:
        assert IDENTITY_RE.match(generate_identity())

    def test_unique(self) -> None:
        assert generate_identity() != generate_identity()


class TestGetOrCreateIdentity:
    def test_creates_and_persists(self) -> None:
        storage = InMemoryIdentityStorage()

        identity = get_or_create_identity(storage)

        assert IDENTITY_RE.match(identity)
        assert storage.get(IDENTITY_KEY) == identity

    def test_stable_across_calls(self) -> None:
        storage = InMemoryIdentityStorage()
        assert get_or_create_identity(storage) == get_or_create_identity(storage)

    def test_returns_stored_value(self) -> None:
        storage = InMemoryIdentityStorage({IDENTITY_KEY: "user_1_abcdefghi"})
        assert get_or_create_identity(storage) == "user_1_abcdefghi"

    def test_without_storage_is_ephemeral(self) -> None:
        assert get_or_create_identity(None) != get_or_create_identity(None)

    def test_unreadable_storage_falls_back(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.WARNING, logger="syncwatch.identity"):
            identity = get_or_create_identity(BrokenStorage())

        assert IDENTITY_RE.match(identity)
        assert "ephemeral identity" in caplog.text

    def test_unwritable_storage_still_returns_identity(self) -> None:
        identity = get_or_create_identity(ReadOnlyStorage())
        assert IDENTITY_RE.match(identity)


class TestFileIdentityStorage:
    def test_survives_restart(self, tmp_path) -> None:
        path = tmp_path / "nested" / "identity.json"

        first = get_or_create_identity(FileIdentityStorage(path))
        second = get_or_create_identity(FileIdentityStorage(path))

        assert first == second
        assert json.loads(path.read_text()) == {IDENTITY_KEY: first}

    def test_missing_file_reads_none(self, tmp_path) -> None:
        assert FileIdentityStorage(tmp_path / "none.json").get(IDENTITY_KEY) is None

    def test_keeps_other_keys(self, tmp_path) -> None:
        path = tmp_path / "identity.json"
        path.write_text(json.dumps({"theme": "dark"}))
        storage = FileIdentityStorage(path)

        storage.set(IDENTITY_KEY, "user_1_abcdefghi")

        assert json.loads(path.read_text()) == {"theme": "dark", IDENTITY_KEY: "user_1_abcdefghi"}

    def test_corrupt_file_falls_back(self, tmp_path) -> None:
        path = tmp_path / "identity.json"
        path.write_text("[1, 2, 3]")

        with pytest.raises(ValueError):
            FileIdentityStorage(path).get(IDENTITY_KEY)
        assert IDENTITY_RE.match(get_or_create_identity(FileIdentityStorage(path)))
