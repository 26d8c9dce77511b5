"""Private binary envelope behind the Base64 capsule.

Layout::

    b"TMC" | version (1 byte) | value

A value is a one-byte ASCII tag followed by its payload.  Multi-byte
integers are big-endian; lengths and counts are unsigned 32-bit.

====  ==========  ==================================================
Tag   Type        Payload
====  ==========  ==================================================
N     None        (none)
T/F   bool        (none)
I     int         length, signed big-endian magnitude
D     float       IEEE 754 double
C     complex     two doubles (real, imaginary)
M     Decimal     length, UTF-8 ``str(value)``
S     str         length, UTF-8 bytes
B     bytes       length, raw bytes
Y     bytearray   length, raw bytes
L     list        count, values
U     tuple       count, values
H     dict        count, key/value pairs
E     set         count, values
Z     frozenset   count, values
A     Array       component name, count, values
R     reference   index of an earlier container
====  ==========  ==================================================

Containers (and bytearrays) are numbered in first-visit order.  Visiting a
numbered value again writes ``R`` + its index, which keeps shared structure
and cycles intact.  Tuples and frozensets only exist once their members
do, so a cycle that runs back into one of them cannot be represented.

The format is private to this package: it is not meant to be read by
anything else.
"""

from __future__ import annotations

import logging
import struct
from collections.abc import Callable
from decimal import Decimal, InvalidOperation
from typing import Any

from transmute.domain.arrays import Array, ArrayType
from transmute.domain.context import IdentityArena
from transmute.domain.errors import FormatError, ParseError
from transmute.domain.types import NoneType, describe, type_of

logger = logging.getLogger(__name__)

MAGIC = b"TMC"
VERSION = 1

_LENGTH = struct.Struct(">I")
_DOUBLE = struct.Struct(">d")
_COMPLEX = struct.Struct(">dd")

# Array component names; nested array components are "[]" + inner name.
COMPONENTS: dict[str, type] = {
    "object": object,
    "NoneType": NoneType,
    "bool": bool,
    "int": int,
    "float": float,
    "complex": complex,
    "Decimal": Decimal,
    "str": str,
    "bytes": bytes,
    "bytearray": bytearray,
    "list": list,
    "tuple": tuple,
    "dict": dict,
    "set": set,
    "frozenset": frozenset,
}
_COMPONENT_NAMES = {component: name for name, component in COMPONENTS.items()}
_NESTED_PREFIX = "[]"


def component_name(component: type | ArrayType) -> str:
    """Envelope name of an array component descriptor."""
    if isinstance(component, ArrayType):
        return _NESTED_PREFIX + component_name(component.component)
    try:
        return _COMPONENT_NAMES[component]
    except KeyError:
        raise FormatError(
            f"Arrays of {describe(component)} cannot be packed",
            detail={"component": describe(component)},
        ) from None


def component_of(name: str) -> type | ArrayType:
    """Inverse of :func:`component_name`."""
    if name.startswith(_NESTED_PREFIX):
        return ArrayType(component_of(name[len(_NESTED_PREFIX) :]))
    try:
        return COMPONENTS[name]
    except KeyError:
        raise ParseError(f"Unknown array component {name!r}", detail={"component": name}) from None


# ── Packing ──────────────────────────────────────────────────────────


class _Packer:
    def __init__(self) -> None:
        self.out = bytearray()
        self.arena = IdentityArena()
        # Keys of tuples/frozensets whose members are still being written.
        self.open_immutables: set[int] = set()

    def pack(self, value: Any) -> None:
        if value is None:
            self.out += b"N"
        elif isinstance(value, bool):
            self.out += b"T" if value else b"F"
        elif isinstance(value, int):
            self._pack_int(value)
        elif isinstance(value, float):
            self.out += b"D" + _DOUBLE.pack(value)
        elif isinstance(value, complex):
            self.out += b"C" + _COMPLEX.pack(value.real, value.imag)
        elif isinstance(value, Decimal):
            self._pack_sized(b"M", str(value).encode("utf-8"))
        elif isinstance(value, str):
            self._pack_sized(b"S", value.encode("utf-8"))
        elif isinstance(value, bytes):
            self._pack_sized(b"B", value)
        elif self._pack_reference(value):
            return
        elif isinstance(value, bytearray):
            self.arena.key_of(value)
            self._pack_sized(b"Y", bytes(value))
        elif isinstance(value, Array):
            self.arena.key_of(value)
            name = component_name(value.component).encode("utf-8")
            self._pack_sized(b"A", name)
            self._pack_items(b"", value)
        elif isinstance(value, list):
            self.arena.key_of(value)
            self._pack_items(b"L", value)
        elif isinstance(value, dict):
            self.arena.key_of(value)
            self.out += b"H" + _LENGTH.pack(len(value))
            for key, member in value.items():
                self.pack(key)
                self.pack(member)
        elif isinstance(value, set):
            self.arena.key_of(value)
            self._pack_items(b"E", value)
        elif isinstance(value, (tuple, frozenset)):
            key = self.arena.key_of(value)
            assert key is not None
            self.open_immutables.add(key)
            self._pack_items(b"U" if isinstance(value, tuple) else b"Z", value)
            self.open_immutables.discard(key)
        else:
            raise FormatError(
                f"Values of type {describe(type_of(value))} cannot be packed",
                detail={"type": describe(type_of(value))},
            )

    def _pack_reference(self, value: Any) -> bool:
        key = self.arena.lookup(value)
        if key is None:
            return False
        if key in self.open_immutables:
            raise FormatError(
                f"Cycle through a {describe(type_of(value))} cannot be packed",
                detail={"type": describe(type_of(value))},
            )
        self.out += b"R" + _LENGTH.pack(key)
        return True

    def _pack_int(self, value: int) -> None:
        size = value.bit_length() // 8 + 1
        self._pack_sized(b"I", value.to_bytes(size, "big", signed=True))

    def _pack_sized(self, tag: bytes, payload: bytes) -> None:
        self.out += tag + _LENGTH.pack(len(payload)) + payload

    def _pack_items(self, tag: bytes, items: Any) -> None:
        self.out += tag + _LENGTH.pack(len(items))
        for item in items:
            self.pack(item)


def pack(value: Any) -> bytes:
    """Serialize *value* into an envelope.

    Raises:
        FormatError: *value* holds an unsupported type, or a cycle runs
            through a tuple or frozenset.
    """
    packer = _Packer()
    packer.out += MAGIC + bytes([VERSION])
    packer.pack(value)
    logger.debug("Packed %d bytes (%d containers)", len(packer.out), len(packer.arena))
    return bytes(packer.out)


# ── Unpacking ────────────────────────────────────────────────────────


_UNDER_CONSTRUCTION = object()


class _Unpacker:
    def __init__(self, data: bytes) -> None:
        self.data = data
        self.pos = 0
        self.refs: list[Any] = []
        self.readers: dict[bytes, Callable[[], Any]] = {
            b"N": lambda: None,
            b"T": lambda: True,
            b"F": lambda: False,
            b"I": self._int,
            b"D": lambda: _DOUBLE.unpack(self._take(_DOUBLE.size))[0],
            b"C": lambda: complex(*_COMPLEX.unpack(self._take(_COMPLEX.size))),
            b"M": self._decimal,
            b"S": self._str,
            b"B": lambda: self._take(self._length()),
            b"Y": self._bytearray,
            b"L": self._list,
            b"U": self._tuple,
            b"H": self._dict,
            b"E": self._set,
            b"Z": self._frozenset,
            b"A": self._array,
            b"R": self._reference,
        }

    def fail(self, message: str) -> ParseError:
        return ParseError(f"Malformed capsule: {message}", detail={"offset": self.pos})

    def _take(self, count: int) -> bytes:
        end = self.pos + count
        if end > len(self.data):
            raise self.fail(f"truncated data (wanted {count} bytes)")
        chunk = self.data[self.pos : end]
        self.pos = end
        return chunk

    def _length(self) -> int:
        return _LENGTH.unpack(self._take(_LENGTH.size))[0]

    def _count(self, item_size: int = 1) -> int:
        """Member count; every member takes at least *item_size* tag bytes."""
        count = self._length()
        if count * item_size > len(self.data) - self.pos:
            raise self.fail(f"truncated data ({count} members announced)")
        return count

    def _text(self) -> str:
        raw = self._take(self._length())
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise self.fail(f"invalid UTF-8 text ({exc.reason})") from exc

    def _register(self, value: Any) -> int:
        self.refs.append(value)
        return len(self.refs) - 1

    def unpack(self) -> Any:
        tag = self._take(1)
        reader = self.readers.get(tag)
        if reader is None:
            raise self.fail(f"unknown tag {tag!r}")
        return reader()

    def _int(self) -> int:
        return int.from_bytes(self._take(self._length()), "big", signed=True)

    def _decimal(self) -> Decimal:
        text = self._text()
        try:
            return Decimal(text)
        except InvalidOperation as exc:
            raise self.fail(f"invalid decimal {text!r}") from exc

    def _str(self) -> str:
        return self._text()

    def _bytearray(self) -> bytearray:
        product = bytearray(self._take(self._length()))
        self._register(product)
        return product

    def _list(self) -> list[Any]:
        product: list[Any] = []
        self._register(product)
        for _ in range(self._count()):
            product.append(self.unpack())
        return product

    def _dict(self) -> dict[Any, Any]:
        product: dict[Any, Any] = {}
        self._register(product)
        for _ in range(self._count(2)):
            key = self.unpack()
            try:
                product[key] = self.unpack()
            except TypeError as exc:
                raise self.fail(f"unhashable dict key ({exc})") from exc
        return product

    def _set(self) -> set[Any]:
        product: set[Any] = set()
        self._register(product)
        for _ in range(self._count()):
            try:
                product.add(self.unpack())
            except TypeError as exc:
                raise self.fail(f"unhashable set member ({exc})") from exc
        return product

    def _immutable[T](self, build: Callable[[list[Any]], T]) -> T:
        index = self._register(_UNDER_CONSTRUCTION)
        items = [self.unpack() for _ in range(self._count())]
        try:
            product = build(items)
        except TypeError as exc:
            raise self.fail(f"unhashable member ({exc})") from exc
        self.refs[index] = product
        return product

    def _tuple(self) -> tuple[Any, ...]:
        return self._immutable(tuple)

    def _frozenset(self) -> frozenset[Any]:
        return self._immutable(frozenset)

    def _array(self) -> Array:
        component = component_of(self._text())
        count = self._count()
        product = Array(component, count)
        self._register(product)
        for index in range(count):
            element = self.unpack()
            try:
                product[index] = element
            except TypeError as exc:
                raise self.fail(str(exc)) from exc
        return product

    def _reference(self) -> Any:
        index = self._length()
        if index >= len(self.refs):
            raise self.fail(f"reference {index} points past {len(self.refs)} containers")
        value = self.refs[index]
        if value is _UNDER_CONSTRUCTION:
            raise self.fail(f"reference {index} points into an unfinished tuple or frozenset")
        return value


def unpack(data: bytes, *, max_payload_bytes: int | None = None) -> Any:
    """Deserialize an envelope produced by :func:`pack`.

    Raises:
        ParseError: Bad magic or version, truncated data, unknown tag,
            invalid reference, trailing bytes, or a payload larger than
            *max_payload_bytes*.
    """
    if max_payload_bytes is not None and len(data) > max_payload_bytes:
        raise ParseError(
            f"Capsule payload of {len(data)} bytes exceeds the {max_payload_bytes} byte limit",
            detail={"size": len(data), "limit": max_payload_bytes},
        )
    header = MAGIC + bytes([VERSION])
    if not data.startswith(MAGIC):
        raise ParseError("Malformed capsule: bad magic", detail={"offset": 0})
    if len(data) < len(header):
        raise ParseError("Malformed capsule: missing version", detail={"offset": len(data)})
    if data[len(MAGIC)] != VERSION:
        version = data[len(MAGIC)]
        raise ParseError(f"Unsupported capsule version {version}", detail={"version": version})
    unpacker = _Unpacker(data)
    unpacker.pos = len(header)
    value = unpacker.unpack()
    if unpacker.pos != len(data):
        raise unpacker.fail(f"{len(data) - unpacker.pos} trailing bytes")
    return value
