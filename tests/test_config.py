"""Tests for RelayConfig."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from roomrelay.config import RelayConfig


class TestRelayConfig:
    def test_defaults(self) -> None:
        cfg = RelayConfig()
        assert cfg.retention_seconds == 86400
        assert cfg.max_text_length == 30_000
        assert cfg.max_binary_bytes == 5 * 1024 * 1024
        assert cfg.list_limit == 50
        assert cfg.code_length == 4
        assert cfg.share_base_url is None

    def test_share_base_url_trailing_slash_stripped(self) -> None:
        cfg = RelayConfig(share_base_url=" https://relay.example/app/ ")
        assert cfg.share_base_url == "https://relay.example/app"

    @pytest.mark.parametrize("url", ["relay.example", "ftp://relay.example", "https://"])
    def test_share_base_url_must_be_http(self, url: str) -> None:
        with pytest.raises(ValidationError):
            RelayConfig(share_base_url=url)

    @pytest.mark.parametrize(
        "field", ["retention_seconds", "max_text_length", "max_binary_bytes", "list_limit"]
    )
    def test_positive_limits(self, field: str) -> None:
        with pytest.raises(ValidationError):
            RelayConfig(**{field: 0})

    def test_code_length_bounds(self) -> None:
        with pytest.raises(ValidationError):
            RelayConfig(code_length=0)
        assert RelayConfig(code_length=6).code_length == 6
