"""roomrelay - code-addressed ephemeral rooms with realtime fan-out and presence."""

from roomrelay._version import __version__
from roomrelay.codes import generate_room_code, normalize_room_code, share_text, share_url
from roomrelay.config import RelayConfig
from roomrelay.core.board import Board, board_layout
from roomrelay.content import classify_kind, validate_payload
from roomrelay.core.presence import PresenceTracker
from roomrelay.core.relay import RoomRelay
from roomrelay.core.session import RoomSession
from roomrelay.core.sweeper import RetentionSweeper
from roomrelay.errors import (
    ParseError,
    RoomDestroyedError,
    RoomRelayError,
    SessionClosedError,
    TransientIOError,
    ValidationError,
)
from roomrelay.models import (
    FileContent,
    FileEnvelope,
    ImageContent,
    LinkContent,
    Message,
    MessageContent,
    MessageKind,
    PresenceEntry,
    RoomState,
    Sender,
    TextContent,
    UnparseableContent,
)
from roomrelay.realtime import (
    InMemoryRealtime,
    RealtimeBackend,
    RelayCallback,
    RelayEvent,
    RelayEventType,
    room_topic,
)
from roomrelay.store import InMemoryMessageStore, MessageStore

__all__ = [
    "Board",
    "FileContent",
    "FileEnvelope",
    "ImageContent",
    "InMemoryMessageStore",
    "InMemoryRealtime",
    "LinkContent",
    "Message",
    "MessageContent",
    "MessageKind",
    "MessageStore",
    "ParseError",
    "PresenceEntry",
    "PresenceTracker",
    "RealtimeBackend",
    "RelayCallback",
    "RelayConfig",
    "RelayEvent",
    "RelayEventType",
    "RetentionSweeper",
    "RoomDestroyedError",
    "RoomRelay",
    "RoomRelayError",
    "RoomSession",
    "RoomState",
    "Sender",
    "SessionClosedError",
    "TextContent",
    "TransientIOError",
    "UnparseableContent",
    "ValidationError",
    "__version__",
    "board_layout",
    "classify_kind",
    "generate_room_code",
    "normalize_room_code",
    "room_topic",
    "share_text",
    "share_url",
    "validate_payload",
]
