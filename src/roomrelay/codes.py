"""Room codes: generation, join-input normalization and share links."""

from __future__ import annotations

import secrets

from roomrelay.errors import ValidationError

ROOM_PATH_MARKER = "/room/"


def generate_room_code(length: int = 4) -> str:
    """Return a random numeric code of *length* digits without a leading zero."""
    low = 10 ** (length - 1)
    return str(low + secrets.randbelow(9 * low))


def normalize_room_code(raw: str, length: int = 4) -> str:
    """Resolve a bare code or a shareable room URL to the room code.

    ``"5821"``, ``" 5821 "``, ``"https://host/room/5821"`` and
    ``"https://host/room/5821/"`` all resolve to ``"5821"``.

    Raises:
        ValidationError: If the input does not contain a code of *length*
            digits.
    """
    code = raw.strip()
    if ROOM_PATH_MARKER in code:
        code = code.split(ROOM_PATH_MARKER)[-1]
        code = code.split("?", 1)[0].split("#", 1)[0]
        code = code.rstrip("/")
    if not code:
        raise ValidationError("Room code is empty")
    if len(code) != length or not code.isdigit():
        raise ValidationError(f"Invalid room code {code!r}: expected {length} digits")
    return code


def share_url(code: str, base_url: str | None) -> str:
    """Build the shareable link for a room (also the QR payload).

    Without a base URL the bare code is returned, which is what a QR
    code carries when no public origin is known.
    """
    if not base_url:
        return code
    return f"{base_url.rstrip('/')}{ROOM_PATH_MARKER}{code}"


def share_text(code: str) -> str:
    """Invitation line sent through the platform share sheet."""
    return f"Join my room: {code}"
