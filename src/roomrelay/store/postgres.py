"""PostgreSQL implementation of MessageStore using asyncpg."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import Any

from roomrelay.models.enums import MessageKind
from roomrelay.models.message import Message
from roomrelay.store.base import MessageStore

logger = logging.getLogger("roomrelay.store")

NOTIFY_CHANNEL = "roomrelay_messages"

_SCHEMA = """\
CREATE TABLE IF NOT EXISTS messages (
    id BIGSERIAL PRIMARY KEY,
    room_code TEXT NOT NULL,
    type TEXT NOT NULL,
    content TEXT NOT NULL,
    created_at TIMESTAMPTZ NOT NULL DEFAULT now()
);
CREATE INDEX IF NOT EXISTS idx_messages_room_created
    ON messages(room_code, created_at DESC, id DESC);

CREATE OR REPLACE FUNCTION roomrelay_notify_insert() RETURNS trigger AS $$
BEGIN
    PERFORM pg_notify('roomrelay_messages', NEW.id::text);
    RETURN NEW;
END;
$$ LANGUAGE plpgsql;

DROP TRIGGER IF EXISTS messages_notify_insert ON messages;
CREATE TRIGGER messages_notify_insert
    AFTER INSERT ON messages
    FOR EACH ROW EXECUTE FUNCTION roomrelay_notify_insert();
"""

_COLUMNS = "id, room_code, type, content, created_at"


def _to_message(row: Any) -> Message:
    return Message(
        id=row["id"],
        room_code=row["room_code"],
        type=MessageKind(row["type"]),
        content=row["content"],
        created_at=row["created_at"],
    )


def _rowcount(tag: str) -> int:
    # asyncpg returns the command tag, e.g. "DELETE 3"
    try:
        return int(tag.rsplit(" ", 1)[-1])
    except ValueError:
        return 0


class PostgresMessageStore(MessageStore):
    """PostgreSQL-backed message store using asyncpg.

    Insert notifications come from the database itself: an ``AFTER INSERT``
    trigger issues ``pg_notify`` and a dedicated listening connection
    fetches the committed row and hands it to the insert listeners, so
    rows written by other processes fan out too.

    With ``listen=False`` the store reports its own inserts directly and
    writes from other processes are not seen.
    """

    def __init__(
        self,
        dsn: str | None = None,
        pool: Any = None,
        *,
        listen: bool = True,
        **kwargs: Any,
    ) -> None:
        super().__init__(**kwargs)
        try:
            import asyncpg as _asyncpg
        except ImportError as exc:
            raise ImportError(
                "asyncpg is required for PostgresMessageStore. "
                "Install it with: pip install roomrelay[postgres]"
            ) from exc
        self._asyncpg = _asyncpg
        self._dsn = dsn
        self._pool = pool
        self._owns_pool = pool is None
        self._listen = listen
        self._listen_conn: Any = None
        self._pending: set[asyncio.Task[None]] = set()

    async def init(self, min_size: int = 2, max_size: int = 10) -> None:
        """Create the connection pool (if needed), ensure the schema and start listening."""
        if self._pool is None:
            self._pool = await self._asyncpg.create_pool(
                self._dsn,
                min_size=min_size,
                max_size=max_size,
            )
        async with self._pool.acquire() as conn:
            await conn.execute(_SCHEMA)
        if self._listen and self._listen_conn is None:
            self._listen_conn = await self._pool.acquire()
            await self._listen_conn.add_listener(NOTIFY_CHANNEL, self._on_notify)

    async def close(self) -> None:
        """Stop listening and release the pool if we own it."""
        if self._listen_conn is not None:
            await self._listen_conn.remove_listener(NOTIFY_CHANNEL, self._on_notify)
            await self._pool.release(self._listen_conn)
            self._listen_conn = None
        for task in list(self._pending):
            task.cancel()
        if self._pool is not None and self._owns_pool:
            await self._pool.close()
            self._pool = None

    async def __aenter__(self) -> PostgresMessageStore:
        await self.init()
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()

    # ── Message operations ───────────────────────────────────────

    async def _insert(self, room_code: str, kind: MessageKind, payload: str) -> Message:
        async with self._pool.acquire() as conn:
            row = await conn.fetchrow(
                f"INSERT INTO messages (room_code, type, content) VALUES ($1, $2, $3) "
                f"RETURNING {_COLUMNS}",
                room_code,
                kind.value,
                payload,
            )
        message = _to_message(row)
        if not self._listen:
            await self._notify_inserted(message)
        return message

    async def _list_since(self, room_code: str, cutoff: datetime, limit: int) -> list[Message]:
        async with self._pool.acquire() as conn:
            rows = await conn.fetch(
                f"SELECT {_COLUMNS} FROM messages "
                "WHERE room_code = $1 AND created_at >= $2 "
                "ORDER BY created_at DESC, id DESC LIMIT $3",
                room_code,
                cutoff,
                limit,
            )
        return [_to_message(r) for r in rows]

    async def _delete_before(self, room_code: str, cutoff: datetime) -> int:
        async with self._pool.acquire() as conn:
            tag = await conn.execute(
                "DELETE FROM messages WHERE room_code = $1 AND created_at < $2",
                room_code,
                cutoff,
            )
        return _rowcount(tag)

    async def delete_all(self, room_code: str) -> int:
        async with self._pool.acquire() as conn:
            tag = await conn.execute("DELETE FROM messages WHERE room_code = $1", room_code)
        return _rowcount(tag)

    # ── Change notifications ─────────────────────────────────────

    def _on_notify(self, _conn: Any, _pid: int, _channel: str, payload: str) -> None:
        task = asyncio.get_running_loop().create_task(self._dispatch(int(payload)))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _dispatch(self, message_id: int) -> None:
        try:
            async with self._pool.acquire() as conn:
                row = await conn.fetchrow(
                    f"SELECT {_COLUMNS} FROM messages WHERE id = $1", message_id
                )
        except Exception:
            logger.exception("Failed to load inserted message %s", message_id)
            return
        # Already deleted (room destroyed right after insert).
        if row is None:
            return
        await self._notify_inserted(_to_message(row))
