"""Tests for TransmuteSettings: unified settings with TOML source."""

from pathlib import Path

import click
import pytest
from pydantic import ValidationError

from transmute.config.models import DEFAULT_MAX_PAYLOAD_BYTES
from transmute.config.settings import TransmuteSettings


class TestTransmuteSettingsDefaults:
    def test_all_defaults(self, tmp_path: Path) -> None:
        """With no TOML and no env vars, all fields use code defaults."""
        settings = TransmuteSettings.from_cli(cwd=tmp_path)
        assert settings.config_path is None
        assert settings.json_output is False
        assert settings.quiet is False
        assert settings.verbose is False
        assert settings.strict is False
        assert settings.registry.load_plugins is True
        assert settings.registry.plugin_dir is None
        assert settings.json_codec.allow_equals_separator is True
        assert settings.capsule.max_payload_bytes == DEFAULT_MAX_PAYLOAD_BYTES

    def test_frozen(self, tmp_path: Path) -> None:
        settings = TransmuteSettings.from_cli(cwd=tmp_path)
        with pytest.raises(ValidationError):
            settings.quiet = True  # type: ignore[misc]


class TestTomlSource:
    def test_loads_from_toml(self, tmp_path: Path) -> None:
        toml = tmp_path / "transmute.toml"
        toml.write_text(
            "[registry]\nload_plugins = false\n"
            "[json_codec]\nallow_equals_separator = false\n"
            "[capsule]\nmax_payload_bytes = 2048\n"
        )
        settings = TransmuteSettings.from_cli(cwd=tmp_path)
        assert settings.config_path == toml
        assert settings.registry.load_plugins is False
        assert settings.json_codec.allow_equals_separator is False
        assert settings.capsule.max_payload_bytes == 2048

    def test_sparse_override(self, tmp_path: Path) -> None:
        (tmp_path / "transmute.toml").write_text("[registry]\nstrict_rules = true\n")
        settings = TransmuteSettings.from_cli(cwd=tmp_path)
        assert settings.registry.strict_rules is True
        assert settings.registry.load_plugins is True  # default

    def test_empty_toml_uses_defaults(self, tmp_path: Path) -> None:
        (tmp_path / "transmute.toml").write_text("")
        settings = TransmuteSettings.from_cli(cwd=tmp_path)
        assert settings.capsule.max_payload_bytes == DEFAULT_MAX_PAYLOAD_BYTES

    def test_explicit_config_path(self, tmp_path: Path) -> None:
        custom = tmp_path / "custom" / "my.toml"
        custom.parent.mkdir(parents=True)
        custom.write_text("[capsule]\nmax_payload_bytes = 64\n")
        settings = TransmuteSettings.from_cli(config_path=str(custom), cwd=tmp_path)
        assert settings.capsule.max_payload_bytes == 64
        assert settings.config_path == custom

    def test_missing_explicit_config_fails(self, tmp_path: Path) -> None:
        with pytest.raises(click.ClickException, match="Config file not found"):
            TransmuteSettings.from_cli(config_path=str(tmp_path / "nope.toml"))

    def test_invalid_toml_fails(self, tmp_path: Path) -> None:
        (tmp_path / "transmute.toml").write_text("[capsule\n")
        with pytest.raises(click.ClickException, match="Invalid TOML"):
            TransmuteSettings.from_cli(cwd=tmp_path)

    def test_non_positive_payload_limit_rejected(self, tmp_path: Path) -> None:
        (tmp_path / "transmute.toml").write_text("[capsule]\nmax_payload_bytes = 0\n")
        with pytest.raises(ValidationError):
            TransmuteSettings.from_cli(cwd=tmp_path)


class TestPriority:
    def test_env_overrides_toml(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        (tmp_path / "transmute.toml").write_text("[capsule]\nmax_payload_bytes = 2048\n")
        monkeypatch.setenv("TRANSMUTE_CAPSULE__MAX_PAYLOAD_BYTES", "4096")
        settings = TransmuteSettings.from_cli(cwd=tmp_path)
        assert settings.capsule.max_payload_bytes == 4096

    def test_cli_overrides_env(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("TRANSMUTE_VERBOSE", "false")
        settings = TransmuteSettings.from_cli(cwd=tmp_path, verbose=True)
        assert settings.verbose is True

    def test_unset_cli_flag_keeps_env(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("TRANSMUTE_QUIET", "true")
        settings = TransmuteSettings.from_cli(cwd=tmp_path, quiet=False)
        assert settings.quiet is True


class TestStrictRules:
    def test_flag_enables_strict_rules(self, tmp_path: Path) -> None:
        settings = TransmuteSettings.from_cli(cwd=tmp_path, strict=True)
        assert settings.strict_rules is True

    def test_toml_enables_strict_rules(self, tmp_path: Path) -> None:
        (tmp_path / "transmute.toml").write_text("[registry]\nstrict_rules = true\n")
        settings = TransmuteSettings.from_cli(cwd=tmp_path)
        assert settings.strict is False
        assert settings.strict_rules is True

    def test_off_by_default(self, tmp_path: Path) -> None:
        assert TransmuteSettings.from_cli(cwd=tmp_path).strict_rules is False
