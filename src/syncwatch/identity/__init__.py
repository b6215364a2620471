"""Session identity."""

from syncwatch.identity.base import (
    IDENTITY_KEY,
    IdentityStorage,
    generate_identity,
    get_or_create_identity,
)
from syncwatch.identity.file import FileIdentityStorage
from syncwatch.identity.memory import InMemoryIdentityStorage

__all__ = [
    "FileIdentityStorage",
    "IDENTITY_KEY",
    "IdentityStorage",
    "InMemoryIdentityStorage",
    "generate_identity",
    "get_or_create_identity",
]
