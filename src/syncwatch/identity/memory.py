"""In-memory identity storage."""

from __future__ import annotations

from syncwatch.identity.base import IdentityStorage


class InMemoryIdentityStorage(IdentityStorage):
    """Dict-backed storage; the identity lasts as long as the object."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._values: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._values.get(key)

    def set(self, key: str, value: str) -> None:
        self._values[key] = value
