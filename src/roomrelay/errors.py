"""Exception hierarchy for roomrelay."""

from __future__ import annotations

__all__ = [
    "ParseError",
    "RoomDestroyedError",
    "RoomRelayError",
    "SessionClosedError",
    "TransientIOError",
    "ValidationError",
]


class RoomRelayError(Exception):
    """Base exception for all roomrelay errors."""


class ValidationError(RoomRelayError):
    """Payload or room code rejected before anything was written."""

    def __init__(
        self,
        message: str,
        *,
        kind: str | None = None,
        size: int | None = None,
        limit: int | None = None,
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.size = size
        self.limit = limit


class TransientIOError(RoomRelayError):
    """A store or channel operation failed. The caller may resubmit."""


class ParseError(RoomRelayError):
    """A stored payload could not be decoded."""


class RoomDestroyedError(RoomRelayError):
    """The room was torn down while this session was inside it."""

    def __init__(self, room_code: str) -> None:
        super().__init__(f"Room {room_code} has been destroyed")
        self.room_code = room_code


class SessionClosedError(RoomRelayError):
    """Operation attempted on a session that already left its room."""
