"""Occupancy derived from presence-sync events."""

from __future__ import annotations

from roomrelay.models.presence import PresenceEntry
from roomrelay.realtime.base import RelayEvent, RelayEventType


class PresenceTracker:
    """Per-room view of who is connected, rebuilt from every ``presence_sync``.

    Holds no history: each sync replaces the previous set for its room.
    """

    def __init__(self) -> None:
        self._members: dict[str, list[PresenceEntry]] = {}

    def apply(self, event: RelayEvent) -> bool:
        """Apply a ``presence_sync`` event. Other event types are ignored.

        Returns:
            True if the event was a presence sync.
        """
        if event.type != RelayEventType.PRESENCE_SYNC:
            return False
        members = event.presences
        if members:
            self._members[event.room_code] = members
        else:
            self._members.pop(event.room_code, None)
        return True

    def occupancy(self, room_code: str) -> int:
        return len(self._members.get(room_code, ()))

    def members(self, room_code: str) -> list[PresenceEntry]:
        return list(self._members.get(room_code, ()))

    def forget(self, room_code: str) -> None:
        self._members.pop(room_code, None)
