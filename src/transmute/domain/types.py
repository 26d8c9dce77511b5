"""Runtime type descriptors and the subtype relation used for dispatch.

A type descriptor is either a Python class or an :class:`ArrayType`.
Dispatch never looks at a value directly: it looks at the value's
descriptor (``type_of``) and compares descriptors with ``is_subtype``.
"""

from __future__ import annotations

import enum
from collections.abc import (
    Collection,
    Iterable,
    Mapping,
    MutableMapping,
    MutableSequence,
    MutableSet,
    Sequence,
)
from collections.abc import Set as AbstractSet
from dataclasses import dataclass
from decimal import Decimal
from fractions import Fraction
from pathlib import PurePath
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from transmute.domain.arrays import Array, ArrayType

if TYPE_CHECKING:
    from transmute.domain.context import ConversionContext

type TypeDescriptor = type | ArrayType

NoneType = type(None)

# Values of these kinds are immutable leaves: they never receive an identity
# key and can never take part in a cycle.
VALUE_KINDS: tuple[type, ...] = (
    NoneType,
    bool,
    int,
    float,
    complex,
    Decimal,
    Fraction,
    str,
    bytes,
    PurePath,
    enum.Enum,
)

# Abstract targets and the concrete class allocated for them.
_CONCRETE: dict[type, type] = {
    Iterable: list,
    Collection: list,
    Sequence: list,
    MutableSequence: list,
    AbstractSet: set,
    MutableSet: set,
    Mapping: dict,
    MutableMapping: dict,
}


class RecursionMarker:
    """Sentinel source type for a value that is one of its own ancestors.

    Never instantiated; only used as a descriptor so the dispatch picks the
    back-reference handler instead of a normal conversion.
    """

    def __init__(self) -> None:
        raise TypeError("RecursionMarker is a type sentinel and cannot be instantiated")


@dataclass(frozen=True, slots=True)
class Converted:
    """An explicit conversion answer from a self-converting value."""

    value: Any


@runtime_checkable
class SelfConverting(Protocol):
    """Capability of values that know how to become another type.

    ``convert_to`` returns ``Converted(product)`` to decide the conversion,
    or ``None`` for "no opinion", in which case normal dispatch continues.
    """

    def convert_to(self, target: TypeDescriptor, context: ConversionContext) -> Converted | None:
        ...


def type_of(value: Any) -> TypeDescriptor:
    """Return the dispatch descriptor of *value*."""
    if isinstance(value, Array):
        return value.array_type
    return type(value)


def is_subtype(candidate: TypeDescriptor, parent: TypeDescriptor) -> bool:
    """Whether *candidate* is *parent* or falls under it."""
    if isinstance(candidate, ArrayType):
        return candidate.is_subtype_of(parent)
    if isinstance(parent, ArrayType):
        return False
    return issubclass(candidate, parent)


def is_instance(value: Any, descriptor: TypeDescriptor) -> bool:
    """Whether *value* already satisfies *descriptor*."""
    return is_subtype(type_of(value), descriptor)


def is_value_kind(value: Any) -> bool:
    """Whether *value* is an immutable leaf that cannot participate in cycles."""
    return isinstance(value, VALUE_KINDS)


def concrete_type(target: TypeDescriptor) -> TypeDescriptor:
    """Map an abstract container target onto the class that gets allocated."""
    if isinstance(target, ArrayType):
        return target
    return _CONCRETE.get(target, target)


def describe(descriptor: TypeDescriptor) -> str:
    """Human-readable name of a descriptor, for messages and logs."""
    if isinstance(descriptor, ArrayType):
        return descriptor.name
    return descriptor.__qualname__
