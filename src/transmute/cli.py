"""Root CLI group for transmute with global flags and command registration."""

from __future__ import annotations

import click

from transmute import __version__
from transmute.commands import register_commands
from transmute.commands._context import AppContext
from transmute.config.settings import TransmuteSettings


@click.group(invoke_without_command=True)
@click.version_option(version=__version__, prog_name="transmute")
@click.option("--json", "json_output", is_flag=True, help="Structured JSON output.")
@click.option("-q", "--quiet", is_flag=True, help="Minimal output.")
@click.option("-v", "--verbose", is_flag=True, help="Debug logging and timing spans.")
@click.option("--log-json", is_flag=True, help="Structured JSON log output to stderr.")
@click.option("--strict", is_flag=True, help="Treat ambiguous conversion rules as errors.")
@click.option("-c", "--config", "config_path", default=None, help="Override config file path.")
@click.pass_context
def cli(
    ctx: click.Context,
    json_output: bool,
    quiet: bool,
    verbose: bool,
    log_json: bool,
    strict: bool,
    config_path: str | None,
) -> None:
    """transmute: convert, reformat and encapsulate cyclic data."""
    ctx.ensure_object(dict)
    settings = TransmuteSettings.from_cli(
        config_path=config_path,
        json_output=json_output,
        quiet=quiet,
        verbose=verbose,
        log_json=log_json,
        strict=strict,
    )
    ctx.obj = AppContext(settings)
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


register_commands(cli)
