"""Command group: Base64 capsules."""

from __future__ import annotations

from typing import TYPE_CHECKING, TextIO

import click

from transmute.commands._base import TransmuteGroup, source_argument

if TYPE_CHECKING:
    from transmute.commands._context import AppContext


@click.group(
    cls=TransmuteGroup,
    examples="""\
  transmute capsule encode data.json > data.capsule
  transmute capsule decode data.capsule""",
)
def capsule() -> None:
    """Wrap JSON values in opaque Base64 capsules and back."""


@capsule.command(
    examples="""\
  transmute capsule encode data.json
  echo '{"self":this0}' | transmute capsule encode""",
)
@source_argument()
@click.pass_obj
def encode(app: AppContext, source: TextIO) -> None:
    """Parse JSON from SOURCE and print it as a capsule."""
    from transmute.services.transcode import TranscodeService

    app.emit(TranscodeService(app.engine).encode_capsule(source.read()))


@capsule.command(
    examples="""\
  transmute capsule decode data.capsule
  transmute capsule decode - < data.capsule""",
)
@source_argument()
@click.pass_obj
def decode(app: AppContext, source: TextIO) -> None:
    """Open the capsule in SOURCE and print its value as JSON."""
    from transmute.services.transcode import TranscodeService

    app.emit(TranscodeService(app.engine).decode_capsule(source.read()))
