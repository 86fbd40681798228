"""Tests for InMemoryMessageStore."""

from __future__ import annotations

import logging
from datetime import datetime

import pytest

from roomrelay.errors import ValidationError
from roomrelay.models.enums import MessageKind
from roomrelay.models.message import Message
from roomrelay.store.memory import InMemoryMessageStore
from tests.conftest import FakeClock


class TestAppend:
    async def test_assigns_id_and_timestamp(
        self, store: InMemoryMessageStore, clock: FakeClock
    ) -> None:
        first = await store.append("1234", MessageKind.TEXT, "one")
        second = await store.append("1234", MessageKind.TEXT, "two")
        assert second.id > first.id
        assert first.created_at == clock.current
        assert first.room_code == "1234"

    async def test_text_size_bound(self, store: InMemoryMessageStore) -> None:
        await store.append("1234", MessageKind.TEXT, "a" * 30_000)
        with pytest.raises(ValidationError):
            await store.append("1234", MessageKind.TEXT, "a" * 30_001)
        assert store.count("1234") == 1

    async def test_rejected_payload_not_notified(self, store: InMemoryMessageStore) -> None:
        seen: list[Message] = []

        async def listener(message: Message) -> None:
            seen.append(message)

        store.add_insert_listener(listener)
        with pytest.raises(ValidationError):
            await store.append("1234", MessageKind.TEXT, "")
        assert seen == []

    async def test_insert_listeners_receive_committed_row(self, store: InMemoryMessageStore) -> None:
        seen: list[Message] = []

        async def listener(message: Message) -> None:
            seen.append(message)

        store.add_insert_listener(listener)
        message = await store.append("1234", MessageKind.TEXT, "hi")
        assert [m.id for m in seen] == [message.id]

        store.remove_insert_listener(listener)
        await store.append("1234", MessageKind.TEXT, "again")
        assert len(seen) == 1

    async def test_failing_listener_does_not_fail_append(
        self, store: InMemoryMessageStore, caplog: pytest.LogCaptureFixture
    ) -> None:
        async def broken(message: Message) -> None:
            raise RuntimeError("boom")

        store.add_insert_listener(broken)
        with caplog.at_level(logging.ERROR, logger="roomrelay.store"):
            message = await store.append("1234", MessageKind.TEXT, "hi")
        assert message.id == 1
        assert "Insert listener failed" in caplog.text


class TestListActive:
    async def test_newest_first(self, store: InMemoryMessageStore, clock: FakeClock) -> None:
        for body in ("a", "b", "c"):
            await store.append("1234", MessageKind.TEXT, body)
            clock.advance(seconds=1)
        messages = await store.list_active("1234")
        assert [m.content for m in messages] == ["c", "b", "a"]

    async def test_equal_timestamps_ordered_by_id(self, store: InMemoryMessageStore) -> None:
        for body in ("a", "b", "c"):
            await store.append("1234", MessageKind.TEXT, body)
        messages = await store.list_active("1234")
        assert [m.id for m in messages] == [3, 2, 1]

    async def test_limit(self, store: InMemoryMessageStore) -> None:
        for i in range(10):
            await store.append("1234", MessageKind.TEXT, f"m{i}")
        assert len(await store.list_active("1234", limit=4)) == 4

    async def test_rooms_are_isolated(self, store: InMemoryMessageStore) -> None:
        await store.append("1111", MessageKind.TEXT, "one")
        await store.append("2222", MessageKind.TEXT, "two")
        assert [m.content for m in await store.list_active("1111")] == ["one"]

    async def test_expired_hidden_before_deletion(
        self, store: InMemoryMessageStore, clock: FakeClock
    ) -> None:
        await store.append("1234", MessageKind.TEXT, "old")
        clock.advance(hours=23)
        await store.append("1234", MessageKind.TEXT, "new")
        clock.advance(hours=1, seconds=1)

        messages = await store.list_active("1234")
        assert [m.content for m in messages] == ["new"]
        # Nothing has been physically deleted yet.
        assert store.count("1234") == 2

    async def test_message_exactly_at_window_edge_visible(
        self, store: InMemoryMessageStore, clock: FakeClock
    ) -> None:
        await store.append("1234", MessageKind.TEXT, "edge")
        clock.advance(hours=24)
        assert len(await store.list_active("1234")) == 1


class TestDeleteExpired:
    async def test_removes_only_older_rows(
        self, store: InMemoryMessageStore, clock: FakeClock
    ) -> None:
        await store.append("1234", MessageKind.TEXT, "old")
        clock.advance(hours=25)
        await store.append("1234", MessageKind.TEXT, "new")

        removed = await store.delete_expired("1234", store.cutoff())
        assert removed == 1
        assert store.count("1234") == 1

    async def test_idempotent(self, store: InMemoryMessageStore, clock: FakeClock) -> None:
        await store.append("1234", MessageKind.TEXT, "old")
        clock.advance(hours=25)
        await store.append("1234", MessageKind.TEXT, "new")
        cutoff = store.cutoff()

        await store.delete_expired("1234", cutoff)
        once = await store.list_active("1234")
        assert await store.delete_expired("1234", cutoff) == 0
        twice = await store.list_active("1234")
        assert [m.id for m in once] == [m.id for m in twice]

    async def test_unknown_room(self, store: InMemoryMessageStore) -> None:
        assert await store.delete_expired("9999", store.cutoff()) == 0

    async def test_failure_is_swallowed(self, caplog: pytest.LogCaptureFixture) -> None:
        class FlakyStore(InMemoryMessageStore):
            async def _delete_before(self, room_code: str, cutoff: datetime) -> int:
                raise ConnectionError("backend unavailable")

        flaky = FlakyStore()
        with caplog.at_level(logging.WARNING, logger="roomrelay.store"):
            assert await flaky.delete_expired("1234", flaky.cutoff()) == 0
        assert "cleanup failed" in caplog.text


class TestDeleteAll:
    async def test_wipes_room(self, store: InMemoryMessageStore) -> None:
        await store.append("1234", MessageKind.TEXT, "a")
        await store.append("1234", MessageKind.TEXT, "b")
        await store.append("5678", MessageKind.TEXT, "c")

        assert await store.delete_all("1234") == 2
        assert await store.list_active("1234") == []
        assert len(await store.list_active("5678")) == 1

    async def test_repeated_delete_is_harmless(self, store: InMemoryMessageStore) -> None:
        await store.append("1234", MessageKind.TEXT, "a")
        await store.delete_all("1234")
        assert await store.delete_all("1234") == 0


class TestRetentionConfig:
    async def test_custom_retention(self, clock: FakeClock) -> None:
        store = InMemoryMessageStore(retention_seconds=60, clock=clock)
        await store.append("1234", MessageKind.TEXT, "a")
        clock.advance(seconds=61)
        assert await store.list_active("1234") == []

    def test_cutoff(self, store: InMemoryMessageStore, clock: FakeClock) -> None:
        assert (clock.current - store.cutoff()).total_seconds() == 24 * 3600
