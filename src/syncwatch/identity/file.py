"""JSON-file identity storage."""

from __future__ import annotations

import json
import os
from pathlib import Path

from syncwatch.identity.base import IdentityStorage


def default_identity_path() -> Path:
    return Path.home() / ".syncwatch" / "identity.json"


class FileIdentityStorage(IdentityStorage):
    """Keeps key/value pairs in a small JSON object on disk.

    Writes go to a temporary sibling file first and are moved into place,
    so a crash never leaves a half-written file behind.
    """

    def __init__(self, path: str | Path | None = None) -> None:
        self._path = Path(path) if path is not None else default_identity_path()

    @property
    def path(self) -> Path:
        return self._path

    def get(self, key: str) -> str | None:
        data = self._read()
        value = data.get(key)
        return value if isinstance(value, str) else None

    def set(self, key: str, value: str) -> None:
        data = self._read()
        data[key] = value
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self._path.with_suffix(self._path.suffix + ".tmp")
        tmp.write_text(json.dumps(data, indent=2), encoding="utf-8")
        os.replace(tmp, self._path)

    def _read(self) -> dict[str, object]:
        if not self._path.exists():
            return {}
        data = json.loads(self._path.read_text(encoding="utf-8"))
        if not isinstance(data, dict):
            raise ValueError(f"Identity file {self._path} does not hold a JSON object")
        return data
