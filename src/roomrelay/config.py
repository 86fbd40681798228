"""Relay configuration."""

from __future__ import annotations

from urllib.parse import urlparse

from pydantic import BaseModel, Field, field_validator

DEFAULT_RETENTION_SECONDS = 24 * 60 * 60
DEFAULT_MAX_TEXT_LENGTH = 30_000
DEFAULT_MAX_BINARY_BYTES = 5 * 1024 * 1024


class RelayConfig(BaseModel):
    """Limits and defaults shared by every relay component.

    Attributes:
        retention_seconds: Messages older than this are invisible to reads
            and eligible for deletion.
        max_text_length: Upper bound on characters for text and link payloads.
        max_binary_bytes: Upper bound on the payload string for images and files.
        list_limit: Number of messages fetched when a room is opened.
        code_length: Number of digits in a room code.
        share_base_url: Public origin used to build shareable room links.
        queue_size: Per-subscription event queue of the in-memory realtime backend.
    """

    retention_seconds: int = Field(default=DEFAULT_RETENTION_SECONDS, gt=0)
    max_text_length: int = Field(default=DEFAULT_MAX_TEXT_LENGTH, gt=0)
    max_binary_bytes: int = Field(default=DEFAULT_MAX_BINARY_BYTES, gt=0)
    list_limit: int = Field(default=50, gt=0)
    code_length: int = Field(default=4, ge=1, le=12)
    share_base_url: str | None = None
    queue_size: int = Field(default=100, gt=0)

    @field_validator("share_base_url")
    @classmethod
    def _validate_share_base_url(cls, v: str | None) -> str | None:
        if v is None:
            return None
        v = v.strip()
        parsed = urlparse(v)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError("share_base_url must be an http:// or https:// URL")
        return v.rstrip("/")
