"""AppContext: shared Click context for all commands.

Created once by the root CLI group and handed to subcommands via
``@click.pass_obj``.  Builds the conversion engine lazily and owns result
emission (stdout/stderr routing and exit codes).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from transmute.output.formatters import OutputSettings, format_diagnostics, format_result

if TYPE_CHECKING:
    from transmute.config.settings import TransmuteSettings
    from transmute.services.engine import Engine
    from transmute.services.result import ServiceResult


class AppContext:
    """Shared context flowing through Click's command hierarchy.

    The engine (registry, plugins, codecs) is built on first use so
    ``--help`` and ``--version`` never load plugins.
    """

    def __init__(self, settings: TransmuteSettings) -> None:
        self.settings = settings
        self._engine: Engine | None = None

        from transmute.config.logging import configure_logging

        configure_logging(verbose=settings.verbose, log_json=settings.log_json)

        if settings.verbose:
            from transmute.services.telemetry import enable_telemetry

            enable_telemetry()

    @property
    def engine(self) -> Engine:
        """The conversion engine (created lazily on first access)."""
        if self._engine is None:
            from transmute.services.engine import Engine

            self._engine = Engine.from_settings(self.settings)
        return self._engine

    @property
    def output_settings(self) -> OutputSettings:
        return OutputSettings(
            json_output=self.settings.json_output,
            quiet=self.settings.quiet,
            verbose=self.settings.verbose,
        )

    def emit(self, result: ServiceResult) -> None:
        """Format and output a ServiceResult with correct exit semantics.

        * Success: payload to stdout, warnings and timing to stderr.
        * Failure: error to stderr, exit code 1.
        """
        settings = self.output_settings
        output = format_result(result, settings=settings)
        diagnostics = format_diagnostics(result, settings=settings)
        if result.ok:
            click.echo(output)
            # In JSON mode, warnings are already in the serialized payload.
            if not settings.json_output:
                for warning in result.warnings:
                    click.echo(f"WARNING: {warning}", err=True)
            if diagnostics:
                click.echo(diagnostics, err=True)
        else:
            click.echo(output, err=True)
            if diagnostics:
                click.echo(diagnostics, err=True)
            raise SystemExit(1)
