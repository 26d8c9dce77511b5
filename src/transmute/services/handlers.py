"""Built-in conversion handlers and the default rule table.

Every handler has the signature ``handler(converter, value, target, context)``
where *context* already carries *value* as its newest ancestor.

Container handlers allocate their product first, bind it to the context,
and only then convert elements.  An element that is one of its own
ancestors therefore resolves to the (still populating) product instead of
recursing forever.  Immutable targets (``tuple``, ``frozenset``) can only be
created once their elements exist, so a cycle into one of them fails.
"""

from __future__ import annotations

import enum
import logging
import os
from collections.abc import (
    Collection,
    Iterable,
    Mapping,
    MutableMapping,
    MutableSequence,
    MutableSet,
    Sequence,
)
from decimal import Decimal
from fractions import Fraction
from pathlib import PurePath
from typing import TYPE_CHECKING, Any

from transmute.domain.arrays import Array, ArrayType
from transmute.domain.errors import ConversionError
from transmute.domain.ranges import TypeRange
from transmute.domain.types import (
    NoneType,
    RecursionMarker,
    TypeDescriptor,
    concrete_type,
    describe,
    is_instance,
    type_of,
)
from transmute.services.registry import ConversionRule, HandlerRegistry

if TYPE_CHECKING:
    from transmute.domain.context import ConversionContext
    from transmute.services.converter import Converter

logger = logging.getLogger(__name__)

# ── Ranges ───────────────────────────────────────────────────────────

_TEXT_KINDS: tuple[type, ...] = (str, bytes, bytearray, memoryview)
_NUMBER_KINDS: tuple[type, ...] = (int, float, complex, Decimal, Fraction)

ANY = TypeRange.anything()
ARRAYS = TypeRange.subtypes_of(ArrayType(object))
MAPS = TypeRange.subtypes_of(Mapping)
COLLECTIONS_IN = TypeRange.subtypes_of(Collection, excluding=(*_TEXT_KINDS, Mapping, Array))
COLLECTIONS_OUT = TypeRange(
    absolute_include=frozenset({Iterable}),
    subtype_include=frozenset({Collection}),
    subtype_exclude=frozenset({*_TEXT_KINDS, Mapping, Array}),
)
SEQUENCES_OUT = TypeRange.subtypes_of(Sequence, excluding=(*_TEXT_KINDS, Array))
NON_SEQUENCES_OUT = TypeRange(
    absolute_include=frozenset({Iterable}),
    subtype_include=frozenset({Collection}),
    subtype_exclude=frozenset({*_TEXT_KINDS, Mapping, Sequence, Array}),
)
NUMBERS_IN = TypeRange.subtypes_of(*_NUMBER_KINDS)
NUMBERS_OUT = TypeRange.subtypes_of(*_NUMBER_KINDS, excluding=(enum.Enum,))
TEXT = TypeRange.subtypes_of(str)
PATH_LIKE = TypeRange.subtypes_of(os.PathLike)
PATHS = TypeRange.subtypes_of(PurePath)
STRINGIFIABLE = TypeRange.subtypes_of(object, except_exactly=(NoneType, RecursionMarker))


# ── Helpers ──────────────────────────────────────────────────────────


def _is_mutable(cls: type, abc: type) -> bool:
    return isinstance(cls, type) and issubclass(cls, abc)


def _build_collection(
    converter: Converter,
    elements: Iterable[Any],
    target: TypeDescriptor,
    context: ConversionContext,
) -> Any:
    """Allocate *target*, bind it, then add converted *elements*."""
    cls = concrete_type(target)
    if _is_mutable(cls, MutableSequence):
        product = context.bind(cls())
        for element in elements:
            product.append(converter.convert(element, object, context))
        return product
    if _is_mutable(cls, MutableSet):
        product = context.bind(cls())
        for element in elements:
            product.add(converter.convert(element, object, context))
        return product
    items = [converter.convert(element, object, context) for element in elements]
    return context.bind(cls(items))


def _build_mapping(
    converter: Converter,
    items: Iterable[tuple[Any, Any]],
    target: TypeDescriptor,
    context: ConversionContext,
) -> Any:
    """Allocate a mapping *target*, bind it, then add converted items."""
    cls = concrete_type(target)
    if _is_mutable(cls, MutableMapping):
        product = context.bind(cls())
        for key, value in items:
            product[converter.convert(key, object, context)] = converter.convert(
                value, object, context
            )
        return product
    pairs = [
        (converter.convert(key, object, context), converter.convert(value, object, context))
        for key, value in items
    ]
    return context.bind(cls(pairs))


def _build_array(
    converter: Converter, elements: Sequence[Any], target: ArrayType, context: ConversionContext
) -> Array:
    """Allocate an array of *target*, bind it, then store converted elements."""
    product = context.bind(Array(target.component, len(elements)))
    for index, element in enumerate(elements):
        product[index] = converter.convert(element, target.component, context)
    return product


def indexed_values(source: Mapping[Any, Any]) -> list[Any]:
    """Lay out *source* values by their non-negative integer keys.

    The result is ``max(key) + 1`` long with ``None`` in unfilled slots.
    Keys that are not non-negative ``int`` (``bool`` included) are dropped.
    """
    positions = {
        key: value
        for key, value in source.items()
        if isinstance(key, int) and not isinstance(key, bool) and key >= 0
    }
    if not positions:
        return []
    layout: list[Any] = [None] * (max(positions) + 1)
    for key, value in positions.items():
        layout[key] = value
    return layout


# ── Handlers ─────────────────────────────────────────────────────────


def recursion_to_ancestor(
    converter: Converter,
    value: Any,
    target: TypeDescriptor,
    context: ConversionContext,
) -> Any:
    product = context.product_of(value)
    if not is_instance(product, target):
        raise ConversionError(
            f"Back-reference product {describe(type_of(product))} is not a {describe(target)}",
            detail={"product": describe(type_of(product)), "target": describe(target)},
        )
    return product


def null_to_none(
    converter: Converter,
    value: Any,
    target: TypeDescriptor,
    context: ConversionContext,
) -> None:
    return None


def array_to_array(
    converter: Converter, value: Array, target: ArrayType, context: ConversionContext
) -> Array:
    return _build_array(converter, list(value), target, context)


def sequence_to_map(
    converter: Converter,
    value: Collection[Any],
    target: TypeDescriptor,
    context: ConversionContext,
) -> Any:
    """``{index: element}`` for arrays and other collections."""
    return _build_mapping(converter, enumerate(value), target, context)


def collection_to_collection(
    converter: Converter,
    value: Collection[Any],
    target: TypeDescriptor,
    context: ConversionContext,
) -> Any:
    return _build_collection(converter, value, target, context)


def collection_to_array(
    converter: Converter, value: Collection[Any], target: ArrayType, context: ConversionContext
) -> Array:
    return _build_array(converter, list(value), target, context)


def map_to_array(
    converter: Converter, value: Mapping[Any, Any], target: ArrayType, context: ConversionContext
) -> Array:
    return _build_array(converter, indexed_values(value), target, context)


def map_to_map(
    converter: Converter,
    value: Mapping[Any, Any],
    target: TypeDescriptor,
    context: ConversionContext,
) -> Any:
    return _build_mapping(converter, value.items(), target, context)


def map_to_sequence(
    converter: Converter,
    value: Mapping[Any, Any],
    target: TypeDescriptor,
    context: ConversionContext,
) -> Any:
    """Index policy: integer keys become positions, gaps are ``None``."""
    layout = indexed_values(value)
    cls = concrete_type(target)
    if _is_mutable(cls, MutableSequence):
        product = context.bind(cls())
        product.extend([None] * len(layout))
        for index, element in enumerate(layout):
            if element is not None:
                product[index] = converter.convert(element, object, context)
        return product
    items = [converter.convert(element, object, context) for element in layout]
    return context.bind(cls(items))


def map_to_collection(
    converter: Converter,
    value: Mapping[Any, Any],
    target: TypeDescriptor,
    context: ConversionContext,
) -> Any:
    return _build_collection(converter, value.values(), target, context)


def number_to_number(
    converter: Converter, value: Any, target: type, context: ConversionContext
) -> Any:
    if isinstance(value, complex):
        if value.imag:
            raise ConversionError(
                f"Complex value {value!r} has an imaginary part; cannot make a {describe(target)}",
                detail={"target": describe(target)},
            )
        if not issubclass(target, complex):
            value = value.real
    if issubclass(target, bool):
        return target(value)
    if issubclass(target, Decimal):
        if isinstance(value, Fraction):
            return target(value.numerator) / target(value.denominator)
        return target(str(value)) if isinstance(value, float) else target(value)
    return target(value)


def text_to_number(
    converter: Converter, value: str, target: type, context: ConversionContext
) -> Any:
    text = value.strip()
    if issubclass(target, bool):
        lowered = text.lower()
        if lowered not in ("true", "false"):
            raise ConversionError(
                f"{value!r} is not a boolean literal", detail={"target": describe(target)}
            )
        return target(lowered == "true")
    return target(text)


def path_to_path(
    converter: Converter, value: os.PathLike[str], target: type, context: ConversionContext
) -> PurePath:
    return target(os.fspath(value))


def text_to_path(
    converter: Converter, value: str, target: type, context: ConversionContext
) -> PurePath:
    return target(value)


def object_to_str(
    converter: Converter, value: Any, target: type, context: ConversionContext
) -> str:
    return target(value)


# ── Rule table ───────────────────────────────────────────────────────


def default_rules() -> tuple[ConversionRule, ...]:
    """The built-in rules, in resolution order."""
    return (
        ConversionRule(TypeRange.exactly(RecursionMarker), ANY, recursion_to_ancestor, "recursion"),
        ConversionRule(TypeRange.exactly(NoneType), ANY, null_to_none, "null"),
        ConversionRule(ARRAYS, ARRAYS, array_to_array, "array->array"),
        ConversionRule(ARRAYS, MAPS, sequence_to_map, "array->map"),
        ConversionRule(ARRAYS, COLLECTIONS_OUT, collection_to_collection, "array->collection"),
        ConversionRule(COLLECTIONS_IN, ARRAYS, collection_to_array, "collection->array"),
        ConversionRule(COLLECTIONS_IN, MAPS, sequence_to_map, "collection->map"),
        ConversionRule(
            COLLECTIONS_IN, COLLECTIONS_OUT, collection_to_collection, "collection->collection"
        ),
        ConversionRule(MAPS, ARRAYS, map_to_array, "map->array"),
        ConversionRule(MAPS, MAPS, map_to_map, "map->map"),
        ConversionRule(MAPS, SEQUENCES_OUT, map_to_sequence, "map->sequence"),
        ConversionRule(MAPS, NON_SEQUENCES_OUT, map_to_collection, "map->collection"),
        ConversionRule(NUMBERS_IN, NUMBERS_OUT, number_to_number, "number->number"),
        ConversionRule(TEXT, NUMBERS_OUT, text_to_number, "text->number"),
        ConversionRule(PATH_LIKE, PATHS, path_to_path, "path->path"),
        ConversionRule(TEXT, PATHS, text_to_path, "text->path"),
        ConversionRule(STRINGIFIABLE, TypeRange.exactly(str), object_to_str, "object->str"),
    )


def default_registry(*, strict: bool = False) -> HandlerRegistry:
    """Fresh registry holding :func:`default_rules`."""
    return HandlerRegistry(default_rules(), strict=strict)
