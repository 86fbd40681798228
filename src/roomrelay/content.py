"""Payload classification and size validation."""

from __future__ import annotations

import re

from roomrelay.config import DEFAULT_MAX_BINARY_BYTES, DEFAULT_MAX_TEXT_LENGTH
from roomrelay.errors import ValidationError
from roomrelay.models.enums import MessageKind

# The whole message must be a single URL; URLs inside prose stay text.
_LINK_RE = re.compile(r"^https?://\S+$", re.IGNORECASE)


def is_link(text: str) -> bool:
    return _LINK_RE.match(text.strip()) is not None


def classify_kind(payload: str, requested: MessageKind = MessageKind.TEXT) -> MessageKind:
    """Return the stored kind for *payload*.

    Only text is reclassified: a text payload that is exactly one URL
    becomes ``link``. Other kinds are kept as requested.
    """
    if requested == MessageKind.TEXT and is_link(payload):
        return MessageKind.LINK
    return requested


def validate_payload(
    kind: MessageKind,
    payload: str,
    *,
    max_text_length: int = DEFAULT_MAX_TEXT_LENGTH,
    max_binary_bytes: int = DEFAULT_MAX_BINARY_BYTES,
) -> None:
    """Check *payload* against the bound for *kind*.

    Raises:
        ValidationError: If the payload is empty or exceeds its bound.
    """
    if not payload.strip():
        raise ValidationError("Message is empty", kind=kind.value, size=0)

    size = len(payload)
    if kind in (MessageKind.TEXT, MessageKind.LINK):
        limit = max_text_length
        unit = "characters"
    else:
        limit = max_binary_bytes
        unit = "bytes"
    if size > limit:
        raise ValidationError(
            f"{kind.value} payload is {size} {unit}, limit is {limit}",
            kind=kind.value,
            size=size,
            limit=limit,
        )
