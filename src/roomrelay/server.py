"""FastAPI front end: REST endpoints plus one WebSocket per room session.

Install with ``pip install roomrelay[server]`` and run, for example::

    uvicorn roomrelay.server:app
"""

from __future__ import annotations

import contextlib
import json
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from typing import Any

from fastapi import FastAPI, HTTPException, WebSocket, WebSocketDisconnect, status
from pydantic import BaseModel

from roomrelay._version import __version__
from roomrelay.core.relay import RoomRelay
from roomrelay.core.session import RoomSession
from roomrelay.errors import (
    RoomDestroyedError,
    SessionClosedError,
    TransientIOError,
    ValidationError,
)
from roomrelay.models.enums import MessageKind
from roomrelay.models.message import Message
from roomrelay.realtime.base import RelayEvent

logger = logging.getLogger("roomrelay.server")

# Application close codes (4000-4999 range)
CLOSE_INVALID_CODE = 4400
CLOSE_ROOM_DESTROYED = 4410
CLOSE_UNAVAILABLE = 4503


class CreateRoomResponse(BaseModel):
    code: str
    url: str
    ttl_seconds: int


class ResolveResponse(BaseModel):
    code: str


class DestroyResponse(BaseModel):
    code: str
    wiped: bool


def message_to_dict(message: Message) -> dict[str, Any]:
    return {**message.model_dump(mode="json"), "sender": message.sender.value}


async def send_error(ws: WebSocket, code: str, message: str) -> None:
    """Send a structured error frame to the client."""
    try:
        await ws.send_json(
            {
                "type": "error",
                "code": code,
                "message": message,
                "timestamp": datetime.now(UTC).isoformat(),
            }
        )
    except Exception:
        logger.debug("Could not deliver error frame", exc_info=True)


def create_app(relay: RoomRelay | None = None) -> FastAPI:
    """Build the app around *relay* (a fresh in-memory relay by default)."""
    relay = relay or RoomRelay()

    @asynccontextmanager
    async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
        logger.info("Room relay server starting")
        yield
        logger.info("Room relay server shutting down")
        await relay.close()

    app = FastAPI(title="Room Relay", version=__version__, lifespan=lifespan)
    app.state.relay = relay

    def resolve(raw: str) -> str:
        try:
            return relay.normalize_code(raw)
        except ValidationError as exc:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    @app.get("/api/health")
    async def health() -> dict[str, Any]:
        return {"status": "ok", "version": __version__}

    @app.post("/api/rooms", response_model=CreateRoomResponse)
    async def create_room() -> CreateRoomResponse:
        code = relay.new_room_code()
        return CreateRoomResponse(
            code=code,
            url=relay.share_url(code),
            ttl_seconds=relay.config.retention_seconds,
        )

    @app.get("/api/resolve", response_model=ResolveResponse)
    async def resolve_code(input: str) -> ResolveResponse:  # noqa: A002
        return ResolveResponse(code=resolve(input))

    @app.get("/api/rooms/{code:path}/messages")
    async def list_messages(code: str) -> dict[str, Any]:
        room_code = resolve(code)
        try:
            messages = await relay.read_active(room_code)
        except TransientIOError as exc:
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)
            ) from exc
        return {
            "code": room_code,
            "occupancy": relay.occupancy(room_code),
            "messages": [m.model_dump(mode="json") for m in messages],
        }

    @app.delete("/api/rooms/{code:path}", response_model=DestroyResponse)
    async def destroy_room(code: str) -> DestroyResponse:
        room_code = resolve(code)
        try:
            wiped = await relay.destroy(room_code)
        except TransientIOError as exc:
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)
            ) from exc
        return DestroyResponse(code=room_code, wiped=wiped)

    # ``code`` is a bare code or a percent-encoded share link.
    @app.websocket("/ws/rooms/{code:path}")
    async def room_socket(ws: WebSocket, code: str) -> None:
        await ws.accept()
        try:
            session = relay.join(code)
        except ValidationError as exc:
            await send_error(ws, "validation", str(exc))
            await ws.close(code=CLOSE_INVALID_CODE)
            return

        async def forward(event: RelayEvent) -> None:
            await ws.send_json(event.to_dict())

        session.on_event(forward)
        try:
            await session.open()
        except TransientIOError as exc:
            await send_error(ws, "transient", str(exc))
            await ws.close(code=CLOSE_UNAVAILABLE)
            return

        try:
            await ws.send_json(
                {
                    "type": "joined",
                    "room_code": session.room_code,
                    "presence_id": session.presence.id,
                    "messages": [message_to_dict(m) for m in session.messages],
                }
            )
            await _serve_session(ws, session)
        finally:
            await session.release()

    return app


async def _serve_session(ws: WebSocket, session: RoomSession) -> None:
    """Handle client actions until the socket closes or the room is destroyed."""

    async def close_destroyed(_session: RoomSession) -> None:
        with contextlib.suppress(Exception):
            await ws.close(code=CLOSE_ROOM_DESTROYED)

    session.on_destroyed(close_destroyed)
    try:
        await _receive_actions(ws, session)
    except WebSocketDisconnect:
        return
    with contextlib.suppress(Exception):
        await ws.close()


async def _receive_actions(ws: WebSocket, session: RoomSession) -> None:
    while session.is_active:
        raw = await ws.receive_text()
        try:
            data = json.loads(raw)
        except ValueError:
            await send_error(ws, "validation", "frame is not valid JSON")
            continue
        action = data.get("action") if isinstance(data, dict) else None
        try:
            if action == "send":
                await _handle_send(ws, session, data)
            elif action == "reload":
                messages = await session.reload()
                await ws.send_json(
                    {"type": "messages", "messages": [message_to_dict(m) for m in messages]}
                )
            elif action == "destroy":
                await session.destroy()
                return
            elif action == "leave":
                destroyed = await session.leave()
                await ws.send_json({"type": "left", "destroyed": destroyed})
                return
            else:
                await send_error(ws, "validation", f"unknown action {action!r}")
        except ValidationError as exc:
            await send_error(ws, "validation", str(exc))
        except TransientIOError as exc:
            await send_error(ws, "transient", str(exc))
        except (RoomDestroyedError, SessionClosedError):
            return


async def _handle_send(ws: WebSocket, session: RoomSession, data: dict[str, Any]) -> None:
    content = data.get("content")
    if not isinstance(content, str):
        await send_error(ws, "validation", "content must be a string")
        return
    try:
        kind = MessageKind(data.get("kind", MessageKind.TEXT.value))
    except ValueError:
        await send_error(ws, "validation", f"unknown kind {data.get('kind')!r}")
        return
    message = await session.send(content, kind)
    await ws.send_json({"type": "sent", "message": message_to_dict(message)})


app = create_app()
