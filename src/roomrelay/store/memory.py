"""In-memory implementation of MessageStore."""

from __future__ import annotations

import itertools
from datetime import datetime
from typing import Any

from roomrelay.models.enums import MessageKind
from roomrelay.models.message import Message
from roomrelay.store.base import MessageStore


class InMemoryMessageStore(MessageStore):
    """Dict-based in-memory store for development and testing."""

    def __init__(self, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self._room_messages: dict[str, list[Message]] = {}
        self._ids = itertools.count(1)

    async def _insert(self, room_code: str, kind: MessageKind, payload: str) -> Message:
        message = Message(
            id=next(self._ids),
            room_code=room_code,
            type=kind,
            content=payload,
            created_at=self.now(),
        )
        self._room_messages.setdefault(room_code, []).append(message)
        await self._notify_inserted(message)
        return message.model_copy()

    async def _list_since(self, room_code: str, cutoff: datetime, limit: int) -> list[Message]:
        messages = [m for m in self._room_messages.get(room_code, []) if m.created_at >= cutoff]
        messages.sort(key=Message.sort_key, reverse=True)
        return [m.model_copy() for m in messages[:limit]]

    async def _delete_before(self, room_code: str, cutoff: datetime) -> int:
        messages = self._room_messages.get(room_code)
        if not messages:
            return 0
        kept = [m for m in messages if m.created_at >= cutoff]
        removed = len(messages) - len(kept)
        if kept:
            self._room_messages[room_code] = kept
        else:
            del self._room_messages[room_code]
        return removed

    async def delete_all(self, room_code: str) -> int:
        return len(self._room_messages.pop(room_code, []))

    def count(self, room_code: str) -> int:
        """Physical row count for a room, expired rows included."""
        return len(self._room_messages.get(room_code, []))
