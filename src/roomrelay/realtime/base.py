"""Abstract base class and types for realtime fan-out backends."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable, Coroutine
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any
from uuid import uuid4

from roomrelay.models.presence import PresenceEntry


class RelayEventType(StrEnum):
    """Kinds of events carried on a room topic."""

    MESSAGE_INSERTED = "message_inserted"
    ROOM_DESTROYED = "room_destroyed"
    PRESENCE_SYNC = "presence_sync"


TOPIC_PREFIX = "room:"


def room_topic(room_code: str) -> str:
    """Topic name for a room."""
    return f"{TOPIC_PREFIX}{room_code}"


@dataclass
class RelayEvent:
    """An event delivered to the subscribers of a room topic."""

    room_code: str
    type: RelayEventType
    id: str = field(default_factory=lambda: uuid4().hex)
    data: dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))

    def to_dict(self) -> dict[str, Any]:
        """Wire form of the event, as sent to socket clients."""
        return {
            "id": self.id,
            "room_code": self.room_code,
            "type": self.type.value,
            "data": self.data,
            "timestamp": self.timestamp.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> RelayEvent:
        """Inverse of ``to_dict``."""
        return cls(
            id=data["id"],
            room_code=data["room_code"],
            type=RelayEventType(data["type"]),
            data=data.get("data", {}),
            timestamp=datetime.fromisoformat(data["timestamp"]),
        )

    @property
    def presences(self) -> list[PresenceEntry]:
        """Presence set carried by a ``presence_sync`` event."""
        return [PresenceEntry.model_validate(p) for p in self.data.get("presences", [])]


RelayCallback = Callable[[RelayEvent], Coroutine[Any, Any, None]]


class RealtimeBackend(ABC):
    """Abstract base for realtime pub/sub backends with a presence registry.

    Implement this to plug in any realtime backend (Redis pub/sub, NATS,
    a hosted channel service, etc.). The library ships with
    ``InMemoryRealtime`` for single-process deployments.

    Delivery is at-most-once: subscribers that are not connected when an
    event is published never see it.

    Presence entries belong to a subscription. ``track`` is only valid on a
    confirmed subscription, and ``unsubscribe`` drops the entry. Every
    change to a topic's presence set publishes a ``presence_sync`` event
    carrying the full set.
    """

    @abstractmethod
    async def publish(self, channel: str, event: RelayEvent) -> None:
        """Deliver *event* to every current subscriber of *channel*."""
        ...

    @abstractmethod
    async def subscribe(self, channel: str, callback: RelayCallback) -> str:
        """Subscribe to a channel.

        Returning means the subscription is confirmed.

        Returns:
            A subscription ID that can be used to track presence and to
            unsubscribe.
        """
        ...

    @abstractmethod
    async def unsubscribe(self, subscription_id: str) -> bool:
        """Unsubscribe from a channel, dropping any tracked presence.

        Returns:
            False if *subscription_id* was unknown.
        """
        ...

    @abstractmethod
    async def track(self, subscription_id: str, entry: PresenceEntry) -> None:
        """Register *entry* as the presence of a subscription."""
        ...

    @abstractmethod
    async def untrack(self, subscription_id: str) -> bool:
        """Remove the presence of a subscription without unsubscribing.

        Returns:
            True if a presence entry was removed.
        """
        ...

    @abstractmethod
    def presence_state(self, channel: str) -> dict[str, PresenceEntry]:
        """Current presence set of a channel, keyed by subscription ID."""
        ...

    async def publish_to_room(self, room_code: str, event: RelayEvent) -> None:
        """Publish on the topic of *room_code*."""
        await self.publish(room_topic(room_code), event)

    async def subscribe_to_room(self, room_code: str, callback: RelayCallback) -> str:
        """Subscribe to the topic of *room_code*."""
        return await self.subscribe(room_topic(room_code), callback)

    def presence_sync_event(self, channel: str) -> RelayEvent:
        """Build a ``presence_sync`` event for the current set of *channel*."""
        entries = sorted(self.presence_state(channel).values(), key=lambda e: e.online_at)
        return RelayEvent(
            room_code=channel.removeprefix(TOPIC_PREFIX),
            type=RelayEventType.PRESENCE_SYNC,
            data={"presences": [e.model_dump(mode="json") for e in entries]},
        )

    async def close(self) -> None:
        """Stop every subscription. Backends holding connections override this."""
        return None
