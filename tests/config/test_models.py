"""Tests for the config section models."""

import pytest
from pydantic import ValidationError

from transmute.config.models import (
    DEFAULT_MAX_PAYLOAD_BYTES,
    CapsuleConfig,
    JsonCodecConfig,
    RegistryConfig,
)


class TestRegistryConfig:
    def test_defaults(self) -> None:
        cfg = RegistryConfig()
        assert cfg.strict_rules is False
        assert cfg.load_plugins is True
        assert cfg.plugin_dir is None

    def test_frozen(self) -> None:
        cfg = RegistryConfig()
        with pytest.raises(ValidationError):
            cfg.strict_rules = True  # type: ignore[misc]


class TestJsonCodecConfig:
    def test_equals_separator_allowed_by_default(self) -> None:
        assert JsonCodecConfig().allow_equals_separator is True


class TestCapsuleConfig:
    def test_default_limit(self) -> None:
        assert CapsuleConfig().max_payload_bytes == DEFAULT_MAX_PAYLOAD_BYTES

    @pytest.mark.parametrize("limit", [0, -1])
    def test_limit_must_be_positive(self, limit: int) -> None:
        with pytest.raises(ValidationError):
            CapsuleConfig(max_payload_bytes=limit)
