"""Tests for payload classification and size validation."""

from __future__ import annotations

import pytest

from roomrelay.content import classify_kind, is_link, validate_payload
from roomrelay.errors import ValidationError
from roomrelay.models.enums import MessageKind


class TestLinkDetection:
    def test_url_alone_is_link(self) -> None:
        assert classify_kind("https://example.com/page") == MessageKind.LINK

    def test_url_inside_text_stays_text(self) -> None:
        assert classify_kind("check https://example.com/page out") == MessageKind.TEXT

    def test_surrounding_whitespace_ignored(self) -> None:
        assert is_link("  http://example.com  ")

    def test_case_insensitive_scheme(self) -> None:
        assert is_link("HTTPS://EXAMPLE.COM")

    def test_other_schemes_are_text(self) -> None:
        assert classify_kind("ftp://example.com/file") == MessageKind.TEXT

    def test_two_urls_are_text(self) -> None:
        assert classify_kind("https://a.com https://b.com") == MessageKind.TEXT

    def test_non_text_kinds_untouched(self) -> None:
        assert classify_kind("https://example.com", MessageKind.FILE) == MessageKind.FILE


class TestValidatePayload:
    def test_text_at_limit_accepted(self) -> None:
        validate_payload(MessageKind.TEXT, "a" * 30_000)

    def test_text_over_limit_rejected(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            validate_payload(MessageKind.TEXT, "a" * 30_001)
        assert exc_info.value.size == 30_001
        assert exc_info.value.limit == 30_000
        assert exc_info.value.kind == "text"

    def test_binary_bound(self) -> None:
        limit = 5 * 1024 * 1024
        validate_payload(MessageKind.IMAGE, "d" * limit)
        with pytest.raises(ValidationError):
            validate_payload(MessageKind.IMAGE, "d" * (limit + 1))

    def test_binary_kinds_not_bound_by_text_limit(self) -> None:
        validate_payload(MessageKind.FILE, "x" * 40_000)

    def test_empty_rejected(self) -> None:
        with pytest.raises(ValidationError):
            validate_payload(MessageKind.TEXT, "   ")

    def test_custom_limits(self) -> None:
        with pytest.raises(ValidationError):
            validate_payload(MessageKind.LINK, "https://x.io/abc", max_text_length=5)
