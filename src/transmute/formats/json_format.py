"""JsonCodec: pretty-printed JSON with back-references.

Output is always pretty-printed: one tab per nesting level, ``,\\n``
between members and ``:`` (no space) between a key and its value.  A
container that is one of its own ancestors is written as ``this<N>`` where
N counts levels up from the innermost enclosing container (``this0`` is
the direct parent).  Parsing resolves ``this<N>`` back to that container,
so a self-referencing map survives a round trip with its identity intact.

Keys are formatted and parsed as ordinary values, so ``{0:"zero"}`` keeps
its integer key.

Numbers parse back as ``int`` (no fraction or exponent) or ``float``.  A
``Decimal`` is written with all its digits but reads back as a ``float``,
so that round trip is lossy.
"""

from __future__ import annotations

import math
import re
from collections.abc import Callable, Collection, Iterable, Mapping
from decimal import Decimal
from typing import Any, TextIO

from transmute.domain.context import ConversionContext
from transmute.domain.errors import FormatError, ParseError
from transmute.domain.ranges import TypeRange
from transmute.domain.types import NoneType, RecursionMarker
from transmute.formats.base import KIND_TYPES, FormatCodec, TokenKind
from transmute.formats.reader import TextReader
from transmute.services.registry import ConversionRule

_ESCAPES = str.maketrans(
    {
        "\\": "\\\\",
        '"': '\\"',
        "/": "\\/",
        "\b": "\\b",
        "\f": "\\f",
        "\n": "\\n",
        "\r": "\\r",
        "\t": "\\t",
    }
)
_UNESCAPES = {
    "\\": "\\",
    '"': '"',
    "/": "/",
    "b": "\b",
    "f": "\f",
    "n": "\n",
    "r": "\r",
    "t": "\t",
}

NUMBER_PATTERN = re.compile(r"-?(?:0|[1-9]\d*)(?:\.\d+)?(?:[eE][+-]?\d+)?")
_NUMBER_CHARS = frozenset("0123456789+-.eE")

RECURSE_KEYWORD = "this"

_TEXT_KINDS = (str, bytes, bytearray, memoryview)

STRINGS = TypeRange.subtypes_of(str)
NUMBERS = TypeRange.subtypes_of(int, float, Decimal, excluding=(bool,))
OBJECTS = TypeRange.subtypes_of(Mapping)
ARRAYS = TypeRange.subtypes_of(Collection, excluding=(*_TEXT_KINDS, Mapping))
TEXT = TypeRange.exactly(str)


def _kind(kind: TokenKind) -> TypeRange:
    return TypeRange.exactly(KIND_TYPES[kind])


# ── Format handlers ──────────────────────────────────────────────────


def _write_members[T](
    opener: str,
    closer: str,
    members: Iterable[T],
    write_member: Callable[[T], None],
    writer: TextIO,
    depth: int,
) -> None:
    """Write ``opener``, one member per line at ``depth + 1`` tabs, ``closer``."""
    tab = "\t" * depth
    shift = tab + "\t"
    writer.write(opener + "\n")
    first = True
    for member in members:
        if not first:
            writer.write(",\n")
        writer.write(shift)
        write_member(member)
        first = False
    if not first:
        writer.write("\n")
    writer.write(tab + closer)


def format_object(
    codec: JsonCodec, value: Mapping[Any, Any], writer: TextIO, context: ConversionContext
) -> None:
    child = context.extend(value)

    def write_entry(entry: tuple[Any, Any]) -> None:
        key, member = entry
        codec.format_to(key, writer, child)
        writer.write(":")
        codec.format_to(member, writer, child)

    _write_members("{", "}", value.items(), write_entry, writer, context.depth)


def format_array(
    codec: JsonCodec, value: Collection[Any], writer: TextIO, context: ConversionContext
) -> None:
    child = context.extend(value)

    def write_element(element: Any) -> None:
        codec.format_to(element, writer, child)

    _write_members("[", "]", value, write_element, writer, context.depth)


def format_recurse(
    codec: JsonCodec, value: Any, writer: TextIO, context: ConversionContext
) -> None:
    writer.write(f"{RECURSE_KEYWORD}{context.distance_of(value)}")


def format_string(codec: JsonCodec, value: str, writer: TextIO, context: ConversionContext) -> None:
    writer.write('"')
    writer.write(str(value).translate(_ESCAPES))
    writer.write('"')


def format_number(codec: JsonCodec, value: Any, writer: TextIO, context: ConversionContext) -> None:
    if isinstance(value, int):
        writer.write(str(int(value)))
        return
    if isinstance(value, Decimal):
        if not value.is_finite():
            raise FormatError(
                f"Cannot format non-finite number {value}", detail={"value": str(value)}
            )
        writer.write(str(value))
        return
    number = float(value)
    if not math.isfinite(number):
        raise FormatError(
            f"Cannot format non-finite number {number}", detail={"value": repr(number)}
        )
    writer.write(repr(number))


def format_boolean(
    codec: JsonCodec, value: bool, writer: TextIO, context: ConversionContext
) -> None:
    writer.write("true" if value else "false")


def format_null(codec: JsonCodec, value: None, writer: TextIO, context: ConversionContext) -> None:
    writer.write("null")


# ── Parse handlers ───────────────────────────────────────────────────


def _read_members(reader: TextReader, closer: str, read_member: Callable[[], None]) -> None:
    """Read comma separated members up to and including *closer*."""
    reader.skip_whitespace()
    if reader.peek() == closer:
        reader.read()
        return
    while True:
        read_member()
        reader.skip_whitespace()
        offset = reader.offset
        char = reader.read()
        if char == ",":
            continue
        if char == closer:
            return
        if not char:
            raise ParseError(
                f"Unterminated container: expected {closer!r} before end of input",
                detail={"offset": offset, "expected": closer},
            )
        raise ParseError(
            f"Expected ',' or {closer!r} at offset {offset}, found {char!r}",
            detail={"offset": offset, "expected": closer, "found": char},
        )


def parse_object(
    codec: JsonCodec, reader: TextReader, context: ConversionContext
) -> dict[Any, Any]:
    reader.skip_whitespace()
    reader.expect("{")
    product: dict[Any, Any] = {}
    child = context.extend(product)

    def read_entry() -> None:
        key = codec.parse_from(reader, child)
        reader.skip_whitespace()
        offset = reader.offset
        separator = reader.read()
        if separator not in codec.key_separators:
            found = separator or "end of input"
            raise ParseError(
                f"Expected ':' after object key at offset {offset}, found {found!r}",
                detail={"offset": offset, "found": separator},
            )
        value = codec.parse_from(reader, child)
        try:
            product[key] = value
        except TypeError as exc:
            raise ParseError(
                f"Object key at offset {offset} is not hashable: {exc}",
                detail={"offset": offset},
            ) from exc

    _read_members(reader, "}", read_entry)
    return product


def parse_array(codec: JsonCodec, reader: TextReader, context: ConversionContext) -> list[Any]:
    reader.skip_whitespace()
    reader.expect("[")
    product: list[Any] = []
    child = context.extend(product)

    def read_element() -> None:
        product.append(codec.parse_from(reader, child))

    _read_members(reader, "]", read_element)
    return product


def parse_string(codec: JsonCodec, reader: TextReader, context: ConversionContext) -> str:
    reader.skip_whitespace()
    start = reader.offset
    reader.expect('"')
    chars: list[str] = []
    while True:
        char = reader.read()
        if not char:
            raise ParseError(
                f"Unterminated string starting at offset {start}", detail={"offset": start}
            )
        if char == '"':
            return "".join(chars)
        if char == "\\":
            escape = reader.read()
            if escape not in _UNESCAPES:
                raise ParseError(
                    f"Invalid escape sequence \\{escape} at offset {reader.offset - 2}",
                    detail={"offset": reader.offset - 2, "escape": escape},
                )
            chars.append(_UNESCAPES[escape])
            continue
        chars.append(char)


def parse_number(codec: JsonCodec, reader: TextReader, context: ConversionContext) -> int | float:
    reader.skip_whitespace()
    start = reader.offset
    text = reader.read_while(_NUMBER_CHARS.__contains__)
    if not NUMBER_PATTERN.fullmatch(text):
        raise ParseError(f"Malformed number {text!r} at offset {start}", detail={"offset": start})
    if any(char in text for char in ".eE"):
        return float(text)
    return int(text)


def parse_boolean(codec: JsonCodec, reader: TextReader, context: ConversionContext) -> bool:
    reader.skip_whitespace()
    start = reader.offset
    word = reader.read_while(str.isalpha)
    if word == "true":
        return True
    if word == "false":
        return False
    raise ParseError(
        f"Expected a boolean at offset {start}, found {word!r}", detail={"offset": start}
    )


def parse_null(codec: JsonCodec, reader: TextReader, context: ConversionContext) -> None:
    reader.skip_whitespace()
    reader.expect("null")
    return None


def parse_recurse(codec: JsonCodec, reader: TextReader, context: ConversionContext) -> Any:
    reader.skip_whitespace()
    start = reader.offset
    reader.expect(RECURSE_KEYWORD)
    digits = reader.read_while(str.isdigit)
    if not digits:
        raise ParseError(
            f"Back-reference at offset {start} has no distance", detail={"offset": start}
        )
    try:
        return context.at_distance(int(digits))
    except IndexError as exc:
        raise ParseError(
            f"Back-reference {RECURSE_KEYWORD}{digits} at offset {start} points above the root",
            detail={"offset": start, "distance": int(digits), "depth": context.depth},
        ) from exc


# ── Codec ────────────────────────────────────────────────────────────


class JsonCodec(FormatCodec):
    """JSON text codec with ``this<N>`` back-references for cyclic values."""

    name = "json"

    def __init__(self, *, allow_equals_separator: bool = True) -> None:
        self.key_separators: frozenset[str] = frozenset(
            ":=" if allow_equals_separator else ":"
        )
        super().__init__()

    def format_rules(self) -> Iterable[ConversionRule]:
        return (
            ConversionRule(TypeRange.exactly(RecursionMarker), TEXT, format_recurse, "recurse"),
            ConversionRule(TypeRange.exactly(NoneType), TEXT, format_null, "null"),
            ConversionRule(TypeRange.exactly(bool), TEXT, format_boolean, "boolean"),
            ConversionRule(NUMBERS, TEXT, format_number, "number"),
            ConversionRule(STRINGS, TEXT, format_string, "string"),
            ConversionRule(OBJECTS, TEXT, format_object, "object"),
            ConversionRule(ARRAYS, TEXT, format_array, "array"),
        )

    def parse_rules(self) -> Iterable[ConversionRule]:
        return (
            ConversionRule(TEXT, _kind(TokenKind.OBJECT), parse_object, "object"),
            ConversionRule(TEXT, _kind(TokenKind.ARRAY), parse_array, "array"),
            ConversionRule(TEXT, _kind(TokenKind.STRING), parse_string, "string"),
            ConversionRule(TEXT, _kind(TokenKind.NUMBER), parse_number, "number"),
            ConversionRule(TEXT, _kind(TokenKind.BOOLEAN), parse_boolean, "boolean"),
            ConversionRule(TEXT, _kind(TokenKind.NULL), parse_null, "null"),
            ConversionRule(TEXT, _kind(TokenKind.RECURSE), parse_recurse, "recurse"),
        )

    def classify(self, reader: TextReader, context: ConversionContext | None = None) -> TokenKind:
        with reader.lookahead():
            reader.skip_whitespace()
            offset = reader.offset
            char = reader.peek()
            if not char:
                raise ParseError("Expected a value, found end of input", detail={"offset": offset})
            if char == "{":
                return TokenKind.OBJECT
            if char == "[":
                return TokenKind.ARRAY
            if char == '"':
                return TokenKind.STRING
            if char == "-" or char.isdigit():
                return TokenKind.NUMBER
            word = reader.read_while(str.isalpha)
            if word in ("true", "false"):
                return TokenKind.BOOLEAN
            if word == "null":
                return TokenKind.NULL
            if word == RECURSE_KEYWORD and reader.peek().isdigit():
                return TokenKind.RECURSE
            raise ParseError(
                f"Unrecognized token {(word or char)!r} at offset {offset}",
                detail={"offset": offset, "found": word or char},
            )
