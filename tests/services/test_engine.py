"""Tests for Engine assembly from settings."""

from __future__ import annotations

from typing import Any

from transmute.config.settings import TransmuteSettings
from transmute.domain.ranges import TypeRange
from transmute.plugins import PluginManager, hookimpl
from transmute.services.engine import Engine
from transmute.services.registry import ConversionRule


def shout(converter: Any, value: int, target: type, context: Any) -> str:
    return f"#{value}"


class ShoutPlugin:
    @hookimpl
    def transmute_conversion_rules(self) -> list[ConversionRule]:
        return [ConversionRule(TypeRange.exactly(int), TypeRange.exactly(str), shout, "shout")]


def _settings(**kwargs: Any) -> TransmuteSettings:
    return TransmuteSettings(**kwargs)


class TestEngineDefaults:
    def test_default_engine(self, engine: Engine) -> None:
        assert engine.converter.registry is engine.registry
        assert engine.json.name == "json"
        assert engine.capsule.name == "capsule"
        assert engine.plugin_names == []


class TestFromSettings:
    def test_strict_flag(self) -> None:
        settings = _settings(strict=True, registry={"load_plugins": False})
        assert Engine.from_settings(settings).registry.strict

    def test_strict_rules_from_config(self) -> None:
        settings = _settings(registry={"strict_rules": True, "load_plugins": False})
        assert Engine.from_settings(settings).registry.strict

    def test_codec_settings(self) -> None:
        settings = _settings(
            registry={"load_plugins": False},
            json_codec={"allow_equals_separator": False},
            capsule={"max_payload_bytes": 64},
        )
        engine = Engine.from_settings(settings)
        assert engine.json.key_separators == frozenset(":")
        assert engine.capsule.max_payload_bytes == 64

    def test_plugin_rules_go_first(self) -> None:
        pm = PluginManager()
        pm.register_plugin(ShoutPlugin(), name="shout")
        engine = Engine.from_settings(_settings(), plugin_manager=pm)
        assert engine.registry.rules[0].label == "shout"
        assert "shout" in engine.plugin_names
        assert engine.converter.convert(7, str) == "#7"

    def test_plugins_disabled(self) -> None:
        pm = PluginManager()
        pm.register_plugin(ShoutPlugin(), name="shout")
        settings = _settings(registry={"load_plugins": False})
        engine = Engine.from_settings(settings, plugin_manager=pm)
        assert engine.plugin_names == []
        assert engine.registry.rules[0].label == "recursion"
