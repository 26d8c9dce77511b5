"""Command group: JSON reformatting and classification."""

from __future__ import annotations

from typing import TYPE_CHECKING, TextIO

import click

from transmute.commands._base import TransmuteGroup, source_argument

if TYPE_CHECKING:
    from transmute.commands._context import AppContext


@click.group(
    "json",
    cls=TransmuteGroup,
    examples="""\
  transmute json reformat data.json
  echo '{"a":[1,2]}' | transmute json reformat
  echo '[1,2]' | transmute json classify""",
)
def json_group() -> None:
    """Read and rewrite JSON text (with this<N> back-references)."""


@json_group.command(
    examples="""\
  transmute json reformat data.json
  transmute json reformat - < data.json
  transmute --json json reformat data.json""",
)
@source_argument()
@click.pass_obj
def reformat(app: AppContext, source: TextIO) -> None:
    """Parse SOURCE and print it back pretty-printed."""
    from transmute.services.transcode import TranscodeService

    app.emit(TranscodeService(app.engine).reformat(source.read()))


@json_group.command(
    examples="""\
  echo '{}' | transmute json classify
  echo 'this0' | transmute json classify""",
)
@source_argument()
@click.pass_obj
def classify(app: AppContext, source: TextIO) -> None:
    """Print the token kind SOURCE starts with."""
    from transmute.services.transcode import TranscodeService

    app.emit(TranscodeService(app.engine).classify(source.read()))
