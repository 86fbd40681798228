"""Data models for roomrelay."""

from roomrelay.models.enums import MessageKind, RoomState, Sender
from roomrelay.models.message import (
    FileContent,
    FileEnvelope,
    ImageContent,
    LinkContent,
    Message,
    MessageContent,
    TextContent,
    UnparseableContent,
    decode_data_uri,
    encode_data_uri,
    parse_content,
    parse_file_envelope,
)
from roomrelay.models.presence import PresenceEntry

__all__ = [
    "FileContent",
    "FileEnvelope",
    "ImageContent",
    "LinkContent",
    "Message",
    "MessageContent",
    "MessageKind",
    "PresenceEntry",
    "RoomState",
    "Sender",
    "TextContent",
    "UnparseableContent",
    "decode_data_uri",
    "encode_data_uri",
    "parse_content",
    "parse_file_envelope",
]
