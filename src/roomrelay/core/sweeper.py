"""Retention sweeper: lazy expiry triggered by room reads."""

from __future__ import annotations

import asyncio
import logging

from roomrelay.store.base import MessageStore

logger = logging.getLogger("roomrelay.sweeper")


class RetentionSweeper:
    """Deletes expired messages of a room whenever the room is read.

    There is no background schedule: a room nobody opens is never swept,
    and reads stay correct anyway because the store filters by age.
    """

    def __init__(self, store: MessageStore) -> None:
        self._store = store
        self._pending: set[asyncio.Task[int]] = set()

    def sweep(self, room_code: str) -> asyncio.Task[int]:
        """Start a sweep of *room_code* without waiting for it."""
        cutoff = self._store.cutoff()
        logger.debug("Sweeping room %s (cutoff %s)", room_code, cutoff.isoformat())
        task = asyncio.create_task(self._store.delete_expired(room_code, cutoff))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    @property
    def pending(self) -> int:
        return len(self._pending)

    async def drain(self) -> None:
        """Wait for in-flight sweeps to finish."""
        if self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)
