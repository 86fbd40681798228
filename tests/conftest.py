"""Shared test fixtures and helpers."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Callable, Coroutine
from datetime import UTC, datetime, timedelta
from typing import Any

import pytest

from roomrelay.core.relay import RoomRelay
from roomrelay.models.enums import MessageKind
from roomrelay.models.message import Message
from roomrelay.realtime.base import RelayEvent
from roomrelay.realtime.memory import InMemoryRealtime
from roomrelay.store.memory import InMemoryMessageStore


class FakeClock:
    """Controllable clock handed to stores instead of ``datetime.now``."""

    def __init__(self, start: datetime | None = None) -> None:
        self.current = start or datetime(2026, 1, 1, 12, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs: float) -> None:
        self.current += timedelta(**kwargs)


@pytest.fixture
def advance() -> Callable[..., Coroutine[Any, Any, None]]:
    """Yield control to let pending tasks run without real delay.

    Replaces ``await asyncio.sleep(0.05)`` patterns with zero-delay
    event loop yields::

        await advance()       # 10 yields (default)
        await advance(30)     # more yields for heavier workloads
    """

    async def _advance(n: int = 10) -> None:
        for _ in range(n):
            await asyncio.sleep(0)

    return _advance


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store(clock: FakeClock) -> InMemoryMessageStore:
    return InMemoryMessageStore(clock=clock)


@pytest.fixture
async def realtime() -> AsyncIterator[InMemoryRealtime]:
    backend = InMemoryRealtime()
    yield backend
    await backend.close()


@pytest.fixture
async def relay(store: InMemoryMessageStore, realtime: InMemoryRealtime) -> AsyncIterator[RoomRelay]:
    r = RoomRelay(store=store, realtime=realtime)
    yield r
    await r.close()


class Recorder:
    """Collects events delivered to a raw topic subscription."""

    def __init__(self) -> None:
        self.events: list[RelayEvent] = []

    async def __call__(self, event: RelayEvent) -> None:
        self.events.append(event)

    def of_type(self, type_: str) -> list[RelayEvent]:
        return [e for e in self.events if e.type == type_]


def make_message(
    id: int = 1,  # noqa: A002
    room_code: str = "1234",
    kind: MessageKind = MessageKind.TEXT,
    content: str = "hello",
    created_at: datetime | None = None,
) -> Message:
    return Message(
        id=id,
        room_code=room_code,
        type=kind,
        content=content,
        created_at=created_at or datetime(2026, 1, 1, 12, 0, tzinfo=UTC),
    )
