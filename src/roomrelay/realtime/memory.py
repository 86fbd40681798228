"""In-process fan-out of room events with a presence registry."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections import deque
from uuid import uuid4

from roomrelay.models.presence import PresenceEntry
from roomrelay.realtime.base import RealtimeBackend, RelayCallback, RelayEvent

logger = logging.getLogger("roomrelay.realtime")


class InMemoryRealtime(RealtimeBackend):
    """Realtime backend for a single process.

    Every subscriber drains its own bounded buffer in a background task, so
    a slow callback never holds up publishers. When a buffer is full the
    oldest pending event is discarded. Use a broker-backed
    ``RealtimeBackend`` when several processes share rooms.
    """

    def __init__(self, max_queue_size: int = 100) -> None:
        """
        Args:
            max_queue_size: Events buffered per subscriber before the oldest
                pending ones are dropped.
        """
        self._buffer_size = max_queue_size
        self._topics: dict[str, _Topic] = {}
        self._subscribers: dict[str, _Subscriber] = {}
        self._closed = False

    @property
    def subscription_count(self) -> int:
        return len(self._subscribers)

    async def publish(self, channel: str, event: RelayEvent) -> None:
        topic = self._topics.get(channel)
        if self._closed or topic is None:
            return
        for subscriber in list(topic.members.values()):
            subscriber.push(event)

    async def subscribe(self, channel: str, callback: RelayCallback) -> str:
        if self._closed:
            raise RuntimeError("Realtime backend is closed")
        subscriber = _Subscriber(channel, callback, self._buffer_size)
        self._subscribers[subscriber.id] = subscriber
        self._topics.setdefault(channel, _Topic()).members[subscriber.id] = subscriber
        subscriber.start()
        return subscriber.id

    async def unsubscribe(self, subscription_id: str) -> bool:
        subscriber = self._subscribers.pop(subscription_id, None)
        if subscriber is None:
            return False
        await subscriber.stop()

        topic = self._topics.get(subscriber.channel)
        if topic is None:
            return True
        topic.members.pop(subscription_id, None)
        was_present = topic.presence.pop(subscription_id, None) is not None
        if not topic.members:
            del self._topics[subscriber.channel]
        if was_present:
            await self._sync(subscriber.channel)
        return True

    async def track(self, subscription_id: str, entry: PresenceEntry) -> None:
        subscriber = self._subscribers.get(subscription_id)
        if subscriber is None:
            raise ValueError(f"Unknown subscription {subscription_id}")
        self._topics[subscriber.channel].presence[subscription_id] = entry
        await self._sync(subscriber.channel)

    async def untrack(self, subscription_id: str) -> bool:
        subscriber = self._subscribers.get(subscription_id)
        if subscriber is None:
            return False
        if self._topics[subscriber.channel].presence.pop(subscription_id, None) is None:
            return False
        await self._sync(subscriber.channel)
        return True

    def presence_state(self, channel: str) -> dict[str, PresenceEntry]:
        topic = self._topics.get(channel)
        return dict(topic.presence) if topic is not None else {}

    async def _sync(self, channel: str) -> None:
        await self.publish(channel, self.presence_sync_event(channel))

    async def close(self) -> None:
        self._closed = True
        subscribers = list(self._subscribers.values())
        self._subscribers.clear()
        self._topics.clear()
        for subscriber in subscribers:
            await subscriber.stop()


class _Topic:
    """Subscribers and presence entries of one channel, both keyed by subscription."""

    def __init__(self) -> None:
        self.members: dict[str, _Subscriber] = {}
        self.presence: dict[str, PresenceEntry] = {}


class _Subscriber:
    def __init__(self, channel: str, callback: RelayCallback, buffer_size: int) -> None:
        self.id = uuid4().hex
        self.channel = channel
        self._callback = callback
        # A full deque discards from the left: the oldest pending event.
        self._pending: deque[RelayEvent] = deque(maxlen=buffer_size)
        self._wakeup = asyncio.Event()
        self._task: asyncio.Task[None] | None = None
        self._active = True

    def push(self, event: RelayEvent) -> None:
        if not self._active:
            return
        self._pending.append(event)
        self._wakeup.set()

    def start(self) -> None:
        self._task = asyncio.create_task(self._drain(), name=f"relay-sub-{self.id[:8]}")

    async def stop(self) -> None:
        self._active = False
        self._pending.clear()
        task, self._task = self._task, None
        # A callback may unsubscribe its own subscription.
        if task is None or task is asyncio.current_task():
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task

    async def _drain(self) -> None:
        while self._active:
            await self._wakeup.wait()
            self._wakeup.clear()
            while self._pending and self._active:
                event = self._pending.popleft()
                try:
                    await self._callback(event)
                except Exception:
                    logger.exception(
                        "Realtime callback failed for subscription %s on %s",
                        self.id,
                        self.channel,
                    )
