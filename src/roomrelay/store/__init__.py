"""Message storage backends."""

from roomrelay.store.base import InsertListener, MessageStore
from roomrelay.store.memory import InMemoryMessageStore

__all__ = [
    "InMemoryMessageStore",
    "InsertListener",
    "MessageStore",
]
