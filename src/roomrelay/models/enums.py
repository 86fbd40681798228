"""All string enums for roomrelay."""

from __future__ import annotations

from enum import StrEnum, unique


@unique
class MessageKind(StrEnum):
    TEXT = "text"
    IMAGE = "image"
    FILE = "file"
    LINK = "link"


@unique
class Sender(StrEnum):
    """Local-only affinity of a message on a board."""

    MINE = "mine"
    OTHER = "other"


@unique
class RoomState(StrEnum):
    UNJOINED = "unjoined"
    JOINED = "joined"
    DESTROYED = "destroyed"
    LEFT = "left"
