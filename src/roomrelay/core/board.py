"""Local, newest-first message board kept by a room session."""

from __future__ import annotations

from collections.abc import Iterable, Iterator

from roomrelay.models.enums import MessageKind, Sender
from roomrelay.models.message import Message

NOTE_MAX_LENGTH = 80


class Board:
    """Messages visible in a room, newest first, without duplicates.

    A full reload replaces the list with the store's ordering. Live
    inserts are prepended as they arrive, so between reloads the order
    may differ slightly from a fresh read.
    """

    def __init__(self) -> None:
        self._messages: list[Message] = []
        self._by_id: dict[int, Message] = {}

    def replace(self, messages: Iterable[Message]) -> None:
        mine = {m.id for m in self._messages if m.sender == Sender.MINE}
        self._messages = []
        self._by_id = {}
        for message in messages:
            if message.id in self._by_id:
                continue
            if message.id in mine:
                message = message.model_copy(update={"sender": Sender.MINE})
            self._messages.append(message)
            self._by_id[message.id] = message

    def add(self, message: Message) -> bool:
        """Prepend *message* unless already present.

        A duplicate that is known to be ours upgrades the stored affinity.

        Returns:
            True if the message was new.
        """
        existing = self._by_id.get(message.id)
        if existing is not None:
            if message.sender == Sender.MINE and existing.sender != Sender.MINE:
                existing.sender = Sender.MINE
            return False
        self._messages.insert(0, message)
        self._by_id[message.id] = message
        return True

    def clear(self) -> None:
        self._messages = []
        self._by_id = {}

    def get(self, message_id: int) -> Message | None:
        return self._by_id.get(message_id)

    @property
    def messages(self) -> list[Message]:
        return list(self._messages)

    def __len__(self) -> int:
        return len(self._messages)

    def __iter__(self) -> Iterator[Message]:
        return iter(list(self._messages))


def is_note(message: Message) -> bool:
    return message.type == MessageKind.TEXT and len(message.content) < NOTE_MAX_LENGTH


def board_layout(messages: Iterable[Message]) -> list[Message]:
    """Grid ordering: short text notes first, then everything else.

    Relative order inside each group is preserved.
    """
    items = list(messages)
    return [m for m in items if is_note(m)] + [m for m in items if not is_note(m)]
