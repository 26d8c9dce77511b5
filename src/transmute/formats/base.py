"""FormatCodec: classify/parse/format dispatch shared by text codecs.

A codec owns two rule tables:

* format rules resolve ``(type_of(value), str)``; a value that is one of
  its own ancestors resolves as ``(RecursionMarker, str)`` instead.
* parse rules resolve ``(str, KIND_TYPES[kind])`` where *kind* is what
  :meth:`FormatCodec.classify` reports for the upcoming token.

Format handlers are called as ``handler(codec, value, writer, context)``
and parse handlers as ``handler(codec, reader, context)``.  Container
handlers extend the context themselves before recursing into members.

INVARIANT: OSError from the reader/writer is never wrapped.
"""

from __future__ import annotations

import io
import logging
from collections.abc import Iterable
from enum import StrEnum
from typing import Any, ClassVar, TextIO

from transmute.domain.context import ConversionContext
from transmute.domain.errors import FormatError, ParseError, TransmuteError
from transmute.domain.types import NoneType, RecursionMarker, TypeDescriptor, describe, type_of
from transmute.formats.reader import TextReader
from transmute.services.registry import ConversionRule, HandlerRegistry

logger = logging.getLogger(__name__)


class TokenKind(StrEnum):
    """What the next token of a text will parse into."""

    OBJECT = "object"
    ARRAY = "array"
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    NULL = "null"
    RECURSE = "recurse"
    CAPSULE = "capsule"


# Product descriptor each token kind parses into; parse rules are keyed on it.
KIND_TYPES: dict[TokenKind, TypeDescriptor] = {
    TokenKind.OBJECT: dict,
    TokenKind.ARRAY: list,
    TokenKind.STRING: str,
    TokenKind.NUMBER: float,
    TokenKind.BOOLEAN: bool,
    TokenKind.NULL: NoneType,
    TokenKind.RECURSE: RecursionMarker,
    TokenKind.CAPSULE: object,
}


class FormatCodec:
    """Base class for codecs between values and text.

    Subclasses provide :meth:`format_rules`, :meth:`parse_rules` and
    :meth:`classify`.
    """

    name: ClassVar[str] = "codec"

    def __init__(self) -> None:
        self._formatters = HandlerRegistry(self.format_rules())
        self._parsers = HandlerRegistry(self.parse_rules())

    def format_rules(self) -> Iterable[ConversionRule]:
        return ()

    def parse_rules(self) -> Iterable[ConversionRule]:
        return ()

    def classify(self, reader: TextReader, context: ConversionContext | None = None) -> TokenKind:
        """Kind of the next token, without consuming input."""
        raise NotImplementedError

    # ── Format ───────────────────────────────────────────────────────

    def format(self, value: Any) -> str:
        """Encode *value* as a standalone text."""
        buffer = io.StringIO()
        self.format_to(value, buffer)
        return buffer.getvalue()

    def format_to(
        self, value: Any, writer: TextIO, context: ConversionContext | None = None
    ) -> None:
        """Encode *value* into *writer* at the position described by *context*."""
        if context is None:
            context = ConversionContext.root()
        source = RecursionMarker if context.contains(value) else type_of(value)
        handler = self._formatters.resolve(source, str)
        if handler is None:
            self.format_else(value, writer, context)
            return
        try:
            handler(self, value, writer, context)
        except (TransmuteError, OSError):
            raise
        except Exception as exc:
            raise FormatError(
                f"{self.name}: cannot format {describe(source)}: {exc}",
                detail={"codec": self.name, "type": describe(source)},
            ) from exc

    def format_else(self, value: Any, writer: TextIO, context: ConversionContext) -> None:
        """Fallback for values no rule formats.  Always raises."""
        raise FormatError(
            f"{self.name}: unsupported value of type {describe(type_of(value))}",
            detail={"codec": self.name, "type": describe(type_of(value)), "depth": context.depth},
        )

    # ── Parse ────────────────────────────────────────────────────────

    def parse(self, text: str) -> Any:
        """Decode a standalone *text*; trailing content is an error."""
        reader = TextReader(text)
        value = self.parse_from(reader)
        reader.skip_whitespace()
        if not reader.at_end():
            raise ParseError(
                f"{self.name}: unexpected trailing content at offset {reader.offset}",
                detail={"codec": self.name, "offset": reader.offset},
            )
        return value

    def parse_from(self, reader: TextReader, context: ConversionContext | None = None) -> Any:
        """Decode the next value from *reader*."""
        if context is None:
            context = ConversionContext.root()
        kind = self.classify(reader, context)
        handler = self._parsers.resolve(str, KIND_TYPES[kind])
        if handler is None:
            return self.parse_else(reader, kind, context)
        try:
            return handler(self, reader, context)
        except (TransmuteError, OSError):
            raise
        except Exception as exc:
            raise ParseError(
                f"{self.name}: cannot parse {kind} at offset {reader.offset}: {exc}",
                detail={"codec": self.name, "kind": str(kind), "offset": reader.offset},
            ) from exc

    def parse_else(self, reader: TextReader, kind: TokenKind, context: ConversionContext) -> Any:
        """Fallback for token kinds no rule parses.  Always raises."""
        raise ParseError(
            f"{self.name}: cannot parse {kind} tokens",
            detail={"codec": self.name, "kind": str(kind), "offset": reader.offset},
        )
