"""RoomRelay: room lifecycle controller tying the store and the realtime channel."""

from __future__ import annotations

import logging
from types import TracebackType

from roomrelay.codes import generate_room_code, normalize_room_code, share_url
from roomrelay.config import RelayConfig
from roomrelay.content import classify_kind
from roomrelay.core.session import RoomSession
from roomrelay.core.sweeper import RetentionSweeper
from roomrelay.errors import RoomRelayError, TransientIOError
from roomrelay.models.enums import MessageKind
from roomrelay.models.message import Message
from roomrelay.realtime.base import RealtimeBackend, RelayEvent, RelayEventType, room_topic
from roomrelay.realtime.memory import InMemoryRealtime
from roomrelay.store.base import MessageStore
from roomrelay.store.memory import InMemoryMessageStore

logger = logging.getLogger("roomrelay.relay")


class RoomRelay:
    """Orchestrates joins, posts and teardown of code-addressed rooms.

    Rooms have no record of their own: a room is whatever messages and
    presence entries share a code. New messages reach subscribers only
    through the store's insert notifications, which the relay republishes
    as ``message_inserted`` events on the room topic.
    """

    def __init__(
        self,
        store: MessageStore | None = None,
        realtime: RealtimeBackend | None = None,
        config: RelayConfig | None = None,
    ) -> None:
        self.config = config or RelayConfig()
        self._store = store or InMemoryMessageStore(
            retention_seconds=self.config.retention_seconds,
            max_text_length=self.config.max_text_length,
            max_binary_bytes=self.config.max_binary_bytes,
        )
        self._realtime = realtime or InMemoryRealtime(max_queue_size=self.config.queue_size)
        self._sweeper = RetentionSweeper(self._store)
        self._sessions: set[RoomSession] = set()
        self._store.add_insert_listener(self._on_message_committed)

    @property
    def store(self) -> MessageStore:
        return self._store

    @property
    def realtime(self) -> RealtimeBackend:
        return self._realtime

    @property
    def sweeper(self) -> RetentionSweeper:
        return self._sweeper

    # -- Codes --

    def normalize_code(self, raw: str) -> str:
        """Resolve a bare code or a share link to a room code."""
        return normalize_room_code(raw, self.config.code_length)

    def new_room_code(self) -> str:
        return generate_room_code(self.config.code_length)

    def share_url(self, room_code: str) -> str:
        return share_url(room_code, self.config.share_base_url)

    # -- Join --

    def join(self, code_or_url: str) -> RoomSession:
        """Return an unopened session for a room; use it with ``async with``.

        Raises:
            ValidationError: If *code_or_url* does not contain a room code.
        """
        return RoomSession(self, self.normalize_code(code_or_url))

    async def connect(self, code_or_url: str) -> RoomSession:
        """Join a room and return the open session. The caller must release it."""
        return await self.join(code_or_url).open()

    # -- Messages --

    async def read_active(self, room_code: str) -> list[Message]:
        """Active messages of a room, newest first. Starts a sweep of the room."""
        self._sweeper.sweep(room_code)
        try:
            return await self._store.list_active(room_code, self.config.list_limit)
        except Exception as exc:
            raise TransientIOError(f"Could not load messages of room {room_code}") from exc

    async def post(
        self, room_code: str, content: str, kind: MessageKind = MessageKind.TEXT
    ) -> Message:
        """Classify, validate and store a message.

        Text and links are trimmed; a text that is exactly one URL is
        stored as ``link``.

        Raises:
            ValidationError: Payload rejected; nothing was written.
            TransientIOError: The store could not be reached.
        """
        if kind in (MessageKind.TEXT, MessageKind.LINK):
            content = content.strip()
        kind = classify_kind(content, kind)
        try:
            return await self._store.append(room_code, kind, content)
        except RoomRelayError:
            raise
        except Exception as exc:
            raise TransientIOError(f"Could not send message to room {room_code}") from exc

    async def _on_message_committed(self, message: Message) -> None:
        await self._realtime.publish_to_room(
            message.room_code,
            RelayEvent(
                room_code=message.room_code,
                type=RelayEventType.MESSAGE_INSERTED,
                data=message.model_dump(mode="json"),
            ),
        )

    # -- Teardown --

    async def destroy(self, room_code: str) -> bool:
        """Tear a room down: announce it, then wipe its messages.

        The announcement goes first so current viewers leave even if the
        wipe is slow or fails. Destroying an already destroyed room is
        harmless: it announces again and deletes nothing.

        Returns:
            True if the messages were wiped, False if only the
            announcement succeeded.

        Raises:
            TransientIOError: If the announcement could not be published.
        """
        try:
            await self._realtime.publish_to_room(
                room_code, RelayEvent(room_code=room_code, type=RelayEventType.ROOM_DESTROYED)
            )
        except Exception as exc:
            raise TransientIOError(f"Could not announce destruction of room {room_code}") from exc

        try:
            removed = await self._store.delete_all(room_code)
        except Exception:
            logger.warning(
                "Room %s announced destroyed but its messages were not wiped",
                room_code,
                exc_info=True,
            )
            return False
        logger.info("Destroyed room %s (%d message(s) removed)", room_code, removed)
        return True

    # -- Presence --

    def occupancy(self, room_code: str) -> int:
        """Number of live presence entries registered on the room topic."""
        return len(self._realtime.presence_state(room_topic(room_code)))

    # -- Sessions --

    def _attach_session(self, session: RoomSession) -> None:
        self._sessions.add(session)

    def _detach_session(self, session: RoomSession) -> None:
        self._sessions.discard(session)

    # -- Shutdown --

    async def close(self) -> None:
        """Release every open session, then shut the backends down."""
        for session in list(self._sessions):
            await session.close()
        self._store.remove_insert_listener(self._on_message_committed)
        await self._sweeper.drain()
        await self._realtime.close()
        await self._store.close()

    async def __aenter__(self) -> RoomRelay:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()
