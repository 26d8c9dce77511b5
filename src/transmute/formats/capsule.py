"""CapsuleCodec: values as one Base64 literal.

The value is packed into the private envelope (:mod:`transmute.formats.envelope`)
and the bytes are Base64 encoded without line wrapping.  Parsing consumes
the rest of the reader as a single literal, ignoring surrounding
whitespace, and decodes it strictly.
"""

from __future__ import annotations

import base64
import binascii
import logging
from collections.abc import Iterable
from typing import Any, TextIO

from transmute.domain.context import ConversionContext
from transmute.domain.errors import ParseError
from transmute.domain.ranges import TypeRange
from transmute.formats import envelope
from transmute.formats.base import KIND_TYPES, FormatCodec, TokenKind
from transmute.formats.reader import TextReader
from transmute.services.registry import ConversionRule

logger = logging.getLogger(__name__)

TEXT = TypeRange.exactly(str)


def format_capsule(
    codec: CapsuleCodec, value: Any, writer: TextIO, context: ConversionContext
) -> None:
    writer.write(base64.b64encode(envelope.pack(value)).decode("ascii"))


def parse_capsule(codec: CapsuleCodec, reader: TextReader, context: ConversionContext) -> Any:
    literal = reader.read_all().strip()
    limit = codec.max_payload_bytes
    # Four Base64 characters carry three bytes.
    if limit is not None and len(literal) // 4 * 3 > limit + 2:
        raise ParseError(
            f"Capsule literal of {len(literal)} characters exceeds the {limit} byte limit",
            detail={"size": len(literal), "limit": limit},
        )
    try:
        data = base64.b64decode(literal, validate=True)
    except binascii.Error as exc:
        raise ParseError(f"Capsule is not valid Base64: {exc}", detail={}) from exc
    return envelope.unpack(data, max_payload_bytes=limit)


class CapsuleCodec(FormatCodec):
    """Opaque, lossless text form for any value the envelope supports."""

    name = "capsule"

    def __init__(self, *, max_payload_bytes: int | None = None) -> None:
        self.max_payload_bytes = max_payload_bytes
        super().__init__()

    def format_rules(self) -> Iterable[ConversionRule]:
        return (ConversionRule(TypeRange.anything(), TEXT, format_capsule, "capsule"),)

    def parse_rules(self) -> Iterable[ConversionRule]:
        capsule = TypeRange.exactly(KIND_TYPES[TokenKind.CAPSULE])
        return (ConversionRule(TEXT, capsule, parse_capsule, "capsule"),)

    def classify(self, reader: TextReader, context: ConversionContext | None = None) -> TokenKind:
        with reader.lookahead():
            reader.skip_whitespace()
            if reader.at_end():
                raise ParseError("Expected a capsule, found end of input", detail={})
        return TokenKind.CAPSULE
