"""Shared pytest fixtures for transmute tests."""

from __future__ import annotations

import logging
import os
from collections.abc import Generator
from pathlib import Path

import pytest
from click.testing import CliRunner

from transmute.formats.capsule import CapsuleCodec
from transmute.formats.json_format import JsonCodec
from transmute.services.converter import Converter
from transmute.services.engine import Engine
from transmute.services.handlers import default_registry
from transmute.services.registry import HandlerRegistry
from transmute.services.telemetry import _current_span, disable_telemetry


@pytest.fixture(autouse=True)
def _isolated_environment(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Run every test from an empty directory with no ``TRANSMUTE_*`` variables.

    Keeps a developer's own transmute.toml (or environment) out of the tests.
    """
    for name in list(os.environ):
        if name.startswith("TRANSMUTE_"):
            monkeypatch.delenv(name)
    monkeypatch.chdir(tmp_path)


@pytest.fixture(autouse=True)
def _restore_global_state() -> Generator[None]:
    """Undo what the CLI does to logging and telemetry."""
    root = logging.getLogger()
    original_handlers = root.handlers[:]
    original_level = root.level
    pkg = logging.getLogger("transmute")
    pkg_level = pkg.level
    yield
    root.handlers = original_handlers
    root.setLevel(original_level)
    pkg.setLevel(pkg_level)
    disable_telemetry()
    _current_span.set(None)


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def registry() -> HandlerRegistry:
    return default_registry()


@pytest.fixture
def converter(registry: HandlerRegistry) -> Converter:
    return Converter(registry)


@pytest.fixture
def json_codec() -> JsonCodec:
    return JsonCodec()


@pytest.fixture
def capsule_codec() -> CapsuleCodec:
    return CapsuleCodec()


@pytest.fixture
def engine() -> Engine:
    """Engine with the built-in rules only (no plugin discovery)."""
    return Engine()
