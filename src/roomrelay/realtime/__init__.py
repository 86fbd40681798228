"""Realtime fan-out backend for room events."""

from roomrelay.realtime.base import (
    RealtimeBackend,
    RelayCallback,
    RelayEvent,
    RelayEventType,
    room_topic,
)
from roomrelay.realtime.memory import InMemoryRealtime

__all__ = [
    "InMemoryRealtime",
    "RealtimeBackend",
    "RelayCallback",
    "RelayEvent",
    "RelayEventType",
    "room_topic",
]
