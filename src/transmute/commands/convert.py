"""Command: convert a JSON value to another type."""

from __future__ import annotations

from typing import TYPE_CHECKING, TextIO

import click

from transmute.commands._base import TransmuteCommand, source_argument

if TYPE_CHECKING:
    from transmute.commands._context import AppContext


@click.command(
    cls=TransmuteCommand,
    examples="""\
  echo '{0:"zero",2:"two"}' | transmute convert list
  echo '[1,2,2]' | transmute convert set
  echo '["1","2"]' | transmute convert 'array[int]'
  echo '"42"' | transmute convert int""",
)
@click.argument("target")
@source_argument()
@click.pass_obj
def convert(app: AppContext, target: str, source: TextIO) -> None:
    """Convert the JSON value in SOURCE to TARGET and print it as JSON.

    TARGET is one of list, tuple, set, frozenset, dict, str, int, float,
    bool, decimal, or array[<component>].
    """
    from transmute.services.transcode import TranscodeService

    app.emit(TranscodeService(app.engine).convert(source.read(), target))
