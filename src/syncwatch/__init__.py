"""SyncWatch - keep remote video players in step within a shared room."""

from syncwatch._version import __version__
from syncwatch.config import RestStoreConfig, SyncConfig
from syncwatch.core.channel import Subscription, SyncChannel
from syncwatch.core.client import SyncWatchClient
from syncwatch.core.codes import (
    ROOM_CODE_ALPHABET,
    ROOM_CODE_LENGTH,
    generate_room_code,
    is_valid_room_code,
    normalize_room_code,
)
from syncwatch.core.drift import DriftMonitor, exceeds_drift
from syncwatch.core.engine import (
    AuthoritativeAnchor,
    ListenerHandle,
    PlaybackState,
    ReconciliationEngine,
)
from syncwatch.core.room_service import RoomService
from syncwatch.core.session import RoomSession
from syncwatch.errors import (
    ChannelUnavailableError,
    NotJoinedError,
    RoomCodeConflictError,
    RoomNotFoundError,
    RoomValidationError,
    StoreUnavailableError,
    SyncWatchError,
    UnavailableError,
)
from syncwatch.identity import (
    IDENTITY_KEY,
    FileIdentityStorage,
    IdentityStorage,
    InMemoryIdentityStorage,
    get_or_create_identity,
)
from syncwatch.models.enums import ConflictPolicy, SyncEventKind
from syncwatch.models.event import SyncEvent
from syncwatch.models.room import MediaRefs, Room
from syncwatch.player.base import MediaPlayer
from syncwatch.player.mock import SimulatedPlayer
from syncwatch.realtime import BroadcastMessage, InMemoryRealtime, RealtimeBackend
from syncwatch.store.base import RoomStore
from syncwatch.store.memory import InMemoryRoomStore

__all__ = [
    "AuthoritativeAnchor",
    "BroadcastMessage",
    "ChannelUnavailableError",
    "ConflictPolicy",
    "DriftMonitor",
    "FileIdentityStorage",
    "IDENTITY_KEY",
    "IdentityStorage",
    "InMemoryIdentityStorage",
    "InMemoryRealtime",
    "InMemoryRoomStore",
    "ListenerHandle",
    "MediaPlayer",
    "MediaRefs",
    "NotJoinedError",
    "PlaybackState",
    "ROOM_CODE_ALPHABET",
    "ROOM_CODE_LENGTH",
    "RealtimeBackend",
    "ReconciliationEngine",
    "RestStoreConfig",
    "Room",
    "RoomCodeConflictError",
    "RoomNotFoundError",
    "RoomService",
    "RoomSession",
    "RoomStore",
    "RoomValidationError",
    "SimulatedPlayer",
    "StoreUnavailableError",
    "Subscription",
    "SyncChannel",
    "SyncConfig",
    "SyncEvent",
    "SyncEventKind",
    "SyncWatchClient",
    "SyncWatchError",
    "UnavailableError",
    "__version__",
    "exceeds_drift",
    "generate_room_code",
    "get_or_create_identity",
    "is_valid_room_code",
    "normalize_room_code",
]
