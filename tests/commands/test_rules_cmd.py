"""Tests for the ``rules`` command."""

from __future__ import annotations

import json
from pathlib import Path

from click.testing import CliRunner

from transmute.cli import cli


class TestRules:
    def test_lists_rules(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["rules"])
        assert result.exit_code == 0
        lines = result.stdout.splitlines()
        assert lines[:2] == ["recursion", "null"]
        assert lines[-1] == "object->str"

    def test_json_output(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["--json", "rules"])
        payload = json.loads(result.stdout)
        assert payload["data"]["strict"] is False
        assert payload["data"]["rules"][0] == "recursion"

    def test_strict_flag(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["--json", "--strict", "rules"])
        assert json.loads(result.stdout)["data"]["strict"] is True

    def test_strict_from_config(self, cli_runner: CliRunner, tmp_path: Path) -> None:
        (tmp_path / "transmute.toml").write_text("[registry]\nstrict_rules = true\n")
        result = cli_runner.invoke(cli, ["--json", "rules"])
        assert json.loads(result.stdout)["data"]["strict"] is True
