"""Exception hierarchy for SyncWatch."""

from __future__ import annotations


class SyncWatchError(Exception):
    """Base exception for all SyncWatch errors."""


class RoomNotFoundError(SyncWatchError):
    """No room record matches the given code or id."""

    def __init__(self, code: str) -> None:
        super().__init__(f"Room not found: {code}")
        self.code = code


class UnavailableError(SyncWatchError):
    """An external collaborator (store or channel) could not be reached."""


class StoreUnavailableError(UnavailableError):
    """The room store failed to answer."""


class ChannelUnavailableError(UnavailableError):
    """The realtime transport failed to deliver a publish."""


class RoomValidationError(SyncWatchError):
    """Room data was rejected before any write happened."""


class RoomCodeConflictError(SyncWatchError):
    """A room with the same code already exists."""

    def __init__(self, code: str) -> None:
        super().__init__(f"Room code already in use: {code}")
        self.code = code


class NotJoinedError(SyncWatchError):
    """Operation requires an active room session."""
