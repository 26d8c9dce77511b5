"""Command: list the active conversion rules."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from transmute.commands._base import TransmuteCommand

if TYPE_CHECKING:
    from transmute.commands._context import AppContext


@click.command(
    cls=TransmuteCommand,
    examples="""\
  transmute rules
  transmute --json rules
  transmute --strict rules""",
)
@click.pass_obj
def rules(app: AppContext) -> None:
    """List conversion rules in resolution order (plugin rules first)."""
    from transmute.services.transcode import TranscodeService

    app.emit(TranscodeService(app.engine).rules())
