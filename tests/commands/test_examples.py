"""Tests for the --examples flag on CLI commands."""

from __future__ import annotations

import pytest
from click.testing import CliRunner

from transmute.cli import cli

# (CLI args, expected keywords in output)
EXAMPLES_COMMANDS: list[tuple[list[str], list[str]]] = [
    (["json", "--examples"], ["transmute json reformat", "transmute json classify"]),
    (["json", "reformat", "--examples"], ["transmute --json json reformat"]),
    (["json", "classify", "--examples"], ["this0"]),
    (["capsule", "--examples"], ["transmute capsule encode", "transmute capsule decode"]),
    (["capsule", "encode", "--examples"], ["transmute capsule encode"]),
    (["capsule", "decode", "--examples"], ["transmute capsule decode -"]),
    (["convert", "--examples"], ["transmute convert list", "array[int]"]),
    (["rules", "--examples"], ["transmute --strict rules"]),
]


def _examples_id(item: tuple[list[str], list[str]]) -> str:
    args, _ = item
    return "_".join(a for a in args if a != "--examples")


@pytest.mark.parametrize(
    ("args", "keywords"),
    EXAMPLES_COMMANDS,
    ids=[_examples_id(item) for item in EXAMPLES_COMMANDS],
)
def test_examples_flag(cli_runner: CliRunner, args: list[str], keywords: list[str]) -> None:
    result = cli_runner.invoke(cli, args)
    assert result.exit_code == 0, result.output
    assert "Examples for" in result.stdout
    for keyword in keywords:
        assert keyword in result.stdout


def test_examples_listed_in_help(cli_runner: CliRunner) -> None:
    result = cli_runner.invoke(cli, ["convert", "--help"])
    assert "--examples" in result.stdout


def test_examples_does_not_run_the_command(cli_runner: CliRunner) -> None:
    result = cli_runner.invoke(cli, ["json", "reformat", "--examples"], input="@")
    assert result.exit_code == 0
    assert "ERROR" not in result.output
