"""Abstract base class for message storage."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable, Coroutine
from datetime import UTC, datetime, timedelta
from typing import Any

from roomrelay.config import (
    DEFAULT_MAX_BINARY_BYTES,
    DEFAULT_MAX_TEXT_LENGTH,
    DEFAULT_RETENTION_SECONDS,
)
from roomrelay.content import validate_payload
from roomrelay.models.enums import MessageKind
from roomrelay.models.message import Message

logger = logging.getLogger("roomrelay.store")

InsertListener = Callable[[Message], Coroutine[Any, Any, None]]
Clock = Callable[[], datetime]


def utcnow() -> datetime:
    return datetime.now(UTC)


class MessageStore(ABC):
    """Append-only message log keyed by room code, with a retention window.

    Implement ``_insert``, ``_list_since``, ``_delete_before`` and
    ``delete_all`` to plug in any storage backend. The library ships with
    ``InMemoryMessageStore`` for development and testing and
    ``PostgresMessageStore`` for production.

    Every committed insert is reported to the registered insert listeners;
    this is the only path by which new messages reach the realtime channel.
    """

    def __init__(
        self,
        *,
        retention_seconds: int = DEFAULT_RETENTION_SECONDS,
        max_text_length: int = DEFAULT_MAX_TEXT_LENGTH,
        max_binary_bytes: int = DEFAULT_MAX_BINARY_BYTES,
        clock: Clock | None = None,
    ) -> None:
        self.retention = timedelta(seconds=retention_seconds)
        self._max_text_length = max_text_length
        self._max_binary_bytes = max_binary_bytes
        self._clock = clock or utcnow
        self._insert_listeners: list[InsertListener] = []

    def now(self) -> datetime:
        return self._clock()

    def cutoff(self, now: datetime | None = None) -> datetime:
        """Oldest ``created_at`` still visible at *now*."""
        return (now or self.now()) - self.retention

    # Message operations

    async def append(self, room_code: str, kind: MessageKind, payload: str) -> Message:
        """Persist a message and return it with its store-assigned id and timestamp.

        Raises:
            ValidationError: If the payload exceeds the bound for its kind.
        """
        validate_payload(
            kind,
            payload,
            max_text_length=self._max_text_length,
            max_binary_bytes=self._max_binary_bytes,
        )
        return await self._insert(room_code, kind, payload)

    async def list_active(self, room_code: str, limit: int = 50) -> list[Message]:
        """Up to *limit* non-expired messages for the room, newest first.

        The retention filter is applied here, whether or not a sweep has
        physically removed expired rows yet.
        """
        return await self._list_since(room_code, self.cutoff(), limit)

    async def delete_expired(self, room_code: str, cutoff: datetime) -> int:
        """Remove messages created before *cutoff*. Best effort.

        Failures are logged and swallowed; the next sweep catches up.
        Returns the number of rows removed (0 on failure).
        """
        try:
            removed = await self._delete_before(room_code, cutoff)
        except Exception:
            logger.warning("Expired-message cleanup failed for room %s", room_code, exc_info=True)
            return 0
        if removed:
            logger.debug("Removed %d expired message(s) from room %s", removed, room_code)
        return removed

    @abstractmethod
    async def delete_all(self, room_code: str) -> int:
        """Remove every message of the room. Returns the number removed."""
        ...

    @abstractmethod
    async def _insert(self, room_code: str, kind: MessageKind, payload: str) -> Message:
        """Write one row, assigning id and ``created_at``."""
        ...

    @abstractmethod
    async def _list_since(self, room_code: str, cutoff: datetime, limit: int) -> list[Message]:
        """Rows with ``created_at >= cutoff``, newest first (id breaks ties)."""
        ...

    @abstractmethod
    async def _delete_before(self, room_code: str, cutoff: datetime) -> int:
        """Delete rows with ``created_at < cutoff``. May raise."""
        ...

    # Change notifications

    def add_insert_listener(self, listener: InsertListener) -> None:
        self._insert_listeners.append(listener)

    def remove_insert_listener(self, listener: InsertListener) -> None:
        if listener in self._insert_listeners:
            self._insert_listeners.remove(listener)

    async def _notify_inserted(self, message: Message) -> None:
        for listener in list(self._insert_listeners):
            try:
                await listener(message.model_copy())
            except Exception:
                logger.exception("Insert listener failed for message %s", message.id)

    async def close(self) -> None:
        """Release backend resources. The base store holds none."""
        return None
