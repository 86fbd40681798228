"""Message record and its parsed content variants."""

from __future__ import annotations

import base64
import binascii
import re
from datetime import datetime
from typing import Annotated, Any, Literal

import pydantic
from pydantic import BaseModel, Field, PrivateAttr, field_validator

from roomrelay.errors import ParseError
from roomrelay.models.enums import MessageKind, Sender

_DATA_URI_RE = re.compile(
    r"^data:(?P<mime>[^;,]*)(?P<params>(;[^;,]*)*?);base64,(?P<data>.*)$", re.S
)


class TextContent(BaseModel):
    """Plain text note."""

    type: Literal["text"] = "text"
    body: str


class LinkContent(BaseModel):
    """A message consisting of a single URL."""

    type: Literal["link"] = "link"
    url: str


class ImageContent(BaseModel):
    """Inline image carried as a base64 data URI."""

    type: Literal["image"] = "image"
    data_uri: str
    mime_type: str = "image/jpeg"


class FileContent(BaseModel):
    """Small file carried inside a JSON envelope."""

    type: Literal["file"] = "file"
    name: str
    size: int | None = None
    data_uri: str
    mime_type: str = "application/octet-stream"


class UnparseableContent(BaseModel):
    """Stored payload that could not be decoded for its kind."""

    type: Literal["unparseable"] = "unparseable"
    kind: MessageKind
    raw: str
    reason: str

    @property
    def label(self) -> str:
        """Placeholder shown instead of the content."""
        return f"[Unreadable {self.kind.value}]"


MessageContent = Annotated[
    TextContent | LinkContent | ImageContent | FileContent | UnparseableContent,
    Field(discriminator="type"),
]


class FileEnvelope(BaseModel):
    """JSON envelope stored as the payload of ``file`` messages."""

    name: str
    size: int | None = Field(default=None, ge=0)
    data: str

    @field_validator("data")
    @classmethod
    def _validate_data(cls, v: str) -> str:
        if not v.startswith("data:"):
            raise ValueError("data must be a data: URI")
        return v

    def to_payload(self) -> str:
        return self.model_dump_json()


def parse_file_envelope(raw: str) -> FileEnvelope:
    """Parse a stored file payload.

    Raises:
        ParseError: If *raw* is not a valid envelope.
    """
    try:
        return FileEnvelope.model_validate_json(raw)
    except pydantic.ValidationError as exc:
        raise ParseError(f"Malformed file envelope: {exc.error_count()} error(s)") from exc


def data_uri_mime(uri: str) -> str:
    """Return the MIME type declared by a base64 data URI.

    Raises:
        ParseError: If *uri* is not a base64 data URI.
    """
    match = _DATA_URI_RE.match(uri)
    if match is None:
        raise ParseError("Not a base64 data URI")
    return match.group("mime") or "application/octet-stream"


def decode_data_uri(uri: str) -> tuple[str, bytes]:
    """Decode a base64 data URI into ``(mime_type, bytes)``.

    Raises:
        ParseError: If *uri* is not a base64 data URI or the data is corrupt.
    """
    mime = data_uri_mime(uri)
    data = uri.split(";base64,", 1)[1]
    try:
        return mime, base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ParseError("Corrupt base64 data") from exc


def encode_data_uri(data: bytes, mime_type: str) -> str:
    return f"data:{mime_type};base64,{base64.b64encode(data).decode('ascii')}"


def parse_content(kind: MessageKind, raw: str) -> MessageContent:
    """Turn a stored ``(kind, content)`` pair into its tagged variant.

    Never raises: payloads that do not decode become ``UnparseableContent``.
    """
    if kind == MessageKind.TEXT:
        return TextContent(body=raw)
    if kind == MessageKind.LINK:
        return LinkContent(url=raw)
    try:
        if kind == MessageKind.IMAGE:
            return ImageContent(data_uri=raw, mime_type=data_uri_mime(raw))
        envelope = parse_file_envelope(raw)
        return FileContent(
            name=envelope.name,
            size=envelope.size,
            data_uri=envelope.data,
            mime_type=data_uri_mime(envelope.data),
        )
    except ParseError as exc:
        return UnparseableContent(kind=kind, raw=raw, reason=str(exc))


class Message(BaseModel):
    """A message on a room board.

    ``content`` is the payload exactly as stored; ``parsed`` is its decoded
    variant, computed once when the record is built. ``sender`` is local
    affinity and never serialized.
    """

    id: int
    room_code: str
    type: MessageKind
    content: str
    created_at: datetime
    sender: Sender = Field(default=Sender.OTHER, exclude=True)

    _parsed: Any = PrivateAttr(default=None)

    def model_post_init(self, __context: Any) -> None:
        self._parsed = parse_content(self.type, self.content)

    @property
    def parsed(self) -> MessageContent:
        return self._parsed  # type: ignore[no-any-return]

    @property
    def timestamp_ms(self) -> int:
        return int(self.created_at.timestamp() * 1000)

    def sort_key(self) -> tuple[datetime, int]:
        """Board ordering key: store timestamp, then store id as tiebreak."""
        return (self.created_at, self.id)

    def export(self) -> tuple[str, bytes]:
        """Return ``(filename, data)`` for saving or sharing this message.

        Raises:
            ParseError: If the stored payload could not be decoded.
        """
        content = self.parsed
        if isinstance(content, UnparseableContent):
            raise ParseError(f"Message {self.id}: {content.reason}")
        if isinstance(content, ImageContent):
            _, data = decode_data_uri(content.data_uri)
            return f"roomrelay_{self.timestamp_ms}.jpg", data
        if isinstance(content, FileContent):
            _, data = decode_data_uri(content.data_uri)
            return content.name, data
        return f"roomrelay_{self.timestamp_ms}.txt", self.content.encode("utf-8")
