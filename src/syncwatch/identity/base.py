"""Per-client session identity."""

from __future__ import annotations

import logging
import secrets
import string
import time
from abc import ABC, abstractmethod

logger = logging.getLogger("syncwatch.identity")

IDENTITY_KEY = "syncwatch_user_id"

_BASE36 = string.digits + string.ascii_lowercase


class IdentityStorage(ABC):
    """Small synchronous key/value store that survives client restarts.

    Implement this to keep the identity somewhere else (keyring, browser
    storage bridge, ...). The library ships with ``InMemoryIdentityStorage``
    and ``FileIdentityStorage``.
    """

    @abstractmethod
    def get(self, key: str) -> str | None:
        """Return the stored value, or ``None`` if the key was never written."""
        ...

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Persist *value* under *key*."""
        ...


def generate_identity() -> str:
    """Return a fresh ``user_<epoch-ms>_<9 base36 chars>`` identifier."""
    suffix = "".join(secrets.choice(_BASE36) for _ in range(9))
    return f"user_{int(time.time() * 1000)}_{suffix}"


def get_or_create_identity(
    storage: IdentityStorage | None = None,
    key: str = IDENTITY_KEY,
) -> str:
    """Return this client's identity, creating and persisting it on first use.

    Never raises. If *storage* is missing or broken, a fresh identity is
    returned that lives only as long as the process.
    """
    if storage is None:
        return generate_identity()

    try:
        stored = storage.get(key)
    except Exception:
        logger.warning("Identity storage unreadable, using ephemeral identity", exc_info=True)
        return generate_identity()
    if stored:
        return stored

    identity = generate_identity()
    try:
        storage.set(key, identity)
    except Exception:
        logger.warning("Could not persist identity %s", identity, exc_info=True)
    else:
        logger.info("Created new client identity %s", identity)
    return identity
