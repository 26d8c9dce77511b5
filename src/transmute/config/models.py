"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults baked here, transmute.toml only contains
overrides.  An empty (or missing) file is a valid configuration.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

DEFAULT_MAX_PAYLOAD_BYTES = 16 * 1024 * 1024


class RegistryConfig(BaseModel):
    """[registry] section."""

    model_config = {"frozen": True}

    strict_rules: bool = False
    load_plugins: bool = True
    plugin_dir: str | None = None


class JsonCodecConfig(BaseModel):
    """[json_codec] section."""

    model_config = {"frozen": True}

    allow_equals_separator: bool = True


class CapsuleConfig(BaseModel):
    """[capsule] section."""

    model_config = {"frozen": True}

    max_payload_bytes: int = Field(default=DEFAULT_MAX_PAYLOAD_BYTES, gt=0)
