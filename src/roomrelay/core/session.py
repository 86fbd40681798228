"""RoomSession: a scoped subscription plus presence registration in one room."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Coroutine
from types import TracebackType
from typing import TYPE_CHECKING, Any

from roomrelay.core.board import Board
from roomrelay.core.presence import PresenceTracker
from roomrelay.errors import (
    RoomDestroyedError,
    RoomRelayError,
    SessionClosedError,
    TransientIOError,
)
from roomrelay.models.enums import MessageKind, RoomState, Sender
from roomrelay.models.message import FileEnvelope, Message, encode_data_uri
from roomrelay.models.presence import PresenceEntry
from roomrelay.realtime.base import RelayEvent, RelayEventType

if TYPE_CHECKING:
    from roomrelay.core.relay import RoomRelay

logger = logging.getLogger("roomrelay.relay")

DestroyedHandler = Callable[["RoomSession"], Coroutine[Any, Any, None]]
EventHandler = Callable[[RelayEvent], Coroutine[Any, Any, None]]


class RoomSession:
    """One client's membership of a room.

    Opening the session subscribes to the room topic, registers presence
    once the subscription is confirmed, then loads the active messages.
    ``release()`` drops the subscription and the presence entry and runs on
    every exit path: leaving, forced teardown, or leaving the ``async with``
    block for any reason including cancellation.

    Usage::

        async with relay.join("1234") as session:
            await session.send("hello")
            ...
            await session.leave()  # voluntary exit, may destroy an empty room
    """

    def __init__(self, relay: RoomRelay, room_code: str) -> None:
        self._relay = relay
        self.room_code = room_code
        self.state = RoomState.UNJOINED
        self.presence = PresenceEntry()
        self.board = Board()
        self._tracker = PresenceTracker()
        self._subscription_id: str | None = None
        self._destroyed_handlers: list[DestroyedHandler] = []
        self._event_handlers: list[EventHandler] = []
        self._destroyed = asyncio.Event()

    # -- Lifecycle --

    async def open(self) -> RoomSession:
        """Join the room. Raises ``TransientIOError`` if the room cannot be reached."""
        if self.state != RoomState.UNJOINED:
            raise SessionClosedError(f"Session for room {self.room_code} was already opened")

        realtime = self._relay.realtime
        try:
            self._subscription_id = await realtime.subscribe_to_room(
                self.room_code, self._on_event
            )
        except Exception as exc:
            raise TransientIOError(f"Could not subscribe to room {self.room_code}") from exc

        try:
            await realtime.track(self._subscription_id, self.presence)
            self.state = RoomState.JOINED
            self.board.replace(await self._relay.read_active(self.room_code))
        except BaseException as exc:
            await self.release()
            self.state = RoomState.LEFT
            if isinstance(exc, Exception) and not isinstance(exc, RoomRelayError):
                raise TransientIOError(f"Could not join room {self.room_code}") from exc
            raise

        self._relay._attach_session(self)
        logger.info("Joined room %s as %s", self.room_code, self.presence.id)
        return self

    async def release(self) -> None:
        """Drop the subscription and the presence entry. Safe to call repeatedly."""
        self._relay._detach_session(self)
        sub_id, self._subscription_id = self._subscription_id, None
        if sub_id is None:
            return
        try:
            await self._relay.realtime.unsubscribe(sub_id)
        except Exception:
            logger.warning("Failed to unsubscribe from room %s", self.room_code, exc_info=True)

    async def leave(self, *, destroy_if_empty: bool = True) -> bool:
        """Voluntarily exit the room.

        If this session is the last occupant it observes, the room is
        destroyed before the session is released.

        Returns:
            True if leaving destroyed the room.
        """
        destroyed = False
        try:
            if destroy_if_empty and self.state == RoomState.JOINED and self.occupancy <= 1:
                logger.info("Last occupant leaving room %s, destroying it", self.room_code)
                await self._relay.destroy(self.room_code)
                destroyed = True
        finally:
            await self.release()
            if self.state == RoomState.JOINED:
                self.state = RoomState.DESTROYED if destroyed else RoomState.LEFT
            if destroyed:
                self._destroyed.set()
        logger.info("Left room %s", self.room_code)
        return destroyed

    async def destroy(self) -> None:
        """Destroy the room for every participant, then release this session."""
        self._ensure_joined()
        await self._relay.destroy(self.room_code)
        await self._teardown()

    async def close(self) -> None:
        """Release the session without destroying the room."""
        await self.release()
        if self.state == RoomState.JOINED:
            self.state = RoomState.LEFT

    async def __aenter__(self) -> RoomSession:
        if self.state == RoomState.UNJOINED:
            await self.open()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()

    # -- Messages --

    async def send(self, content: str, kind: MessageKind = MessageKind.TEXT) -> Message:
        """Post *content* to the room and add it to the local board as ours.

        Raises:
            ValidationError: Payload rejected; nothing was written.
            TransientIOError: The store could not be reached.
            RoomDestroyedError: The room was destroyed.
        """
        self._ensure_joined()
        message = await self._relay.post(self.room_code, content, kind)
        message.sender = Sender.MINE
        self.board.add(message)
        return message

    async def send_image(self, data: bytes, mime_type: str = "image/jpeg") -> Message:
        return await self.send(encode_data_uri(data, mime_type), MessageKind.IMAGE)

    async def send_file(
        self, name: str, data: bytes, mime_type: str = "application/octet-stream"
    ) -> Message:
        envelope = FileEnvelope(name=name, size=len(data), data=encode_data_uri(data, mime_type))
        return await self.send(envelope.to_payload(), MessageKind.FILE)

    async def reload(self) -> list[Message]:
        """Replace the board with a fresh read of the active messages."""
        self._ensure_joined()
        self.board.replace(await self._relay.read_active(self.room_code))
        return self.board.messages

    @property
    def messages(self) -> list[Message]:
        return self.board.messages

    # -- Presence --

    @property
    def occupancy(self) -> int:
        """Occupancy as last reported by a presence sync on this session."""
        return self._tracker.occupancy(self.room_code)

    @property
    def members(self) -> list[PresenceEntry]:
        return self._tracker.members(self.room_code)

    # -- Callbacks --

    def on_destroyed(self, handler: DestroyedHandler) -> None:
        """Run *handler* when the room is torn down by any participant."""
        self._destroyed_handlers.append(handler)

    def on_event(self, handler: EventHandler) -> None:
        """Run *handler* for every event received on the room topic."""
        self._event_handlers.append(handler)

    async def wait_destroyed(self) -> None:
        await self._destroyed.wait()

    @property
    def is_active(self) -> bool:
        return self.state == RoomState.JOINED

    # -- Internals --

    def _ensure_joined(self) -> None:
        if self.state == RoomState.DESTROYED:
            raise RoomDestroyedError(self.room_code)
        if self.state != RoomState.JOINED:
            raise SessionClosedError(f"Session for room {self.room_code} is {self.state.value}")

    async def _on_event(self, event: RelayEvent) -> None:
        if event.type == RelayEventType.MESSAGE_INSERTED:
            if self.state == RoomState.JOINED:
                self.board.add(Message.model_validate(event.data))
        elif event.type == RelayEventType.PRESENCE_SYNC:
            self._tracker.apply(event)
            logger.debug("Room %s occupancy is %d", self.room_code, self.occupancy)

        for handler in list(self._event_handlers):
            try:
                await handler(event)
            except Exception:
                logger.exception("Event handler failed in room %s", self.room_code)

        # Handlers see the destroy event before the session is torn down.
        if event.type == RelayEventType.ROOM_DESTROYED:
            logger.info("Room %s was destroyed, leaving", self.room_code)
            await self._teardown()

    async def _teardown(self) -> None:
        if self.state == RoomState.DESTROYED:
            return
        self.state = RoomState.DESTROYED
        self.board.clear()
        self._tracker.forget(self.room_code)
        await self.release()
        self._destroyed.set()
        for handler in list(self._destroyed_handlers):
            try:
                await handler(self)
            except Exception:
                logger.exception("Destroy handler failed in room %s", self.room_code)
