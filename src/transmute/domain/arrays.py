"""Typed fixed-length arrays and their type descriptors.

An :class:`Array` is allocated with its final length and a component
descriptor, then populated in place.  That gives container handlers a
product with a stable identity before any element is converted, which is
what back-references into a still-populating container rely on.

``ArrayType`` is the descriptor the dispatch machinery sees for an array
value.  Subtyping is covariant in the component:
``ArrayType(str) <= ArrayType(object)``.
"""

from __future__ import annotations

import reprlib
from collections.abc import Iterable, Iterator, MutableSequence
from dataclasses import dataclass
from typing import Any, overload


@dataclass(frozen=True, slots=True)
class ArrayType:
    """Descriptor for arrays whose elements are *component* values."""

    component: type | ArrayType = object

    def is_subtype_of(self, other: type | ArrayType) -> bool:
        """Whether this array descriptor falls under *other*."""
        if not isinstance(other, ArrayType):
            return issubclass(Array, other)
        mine, theirs = self.component, other.component
        if isinstance(mine, ArrayType):
            return mine.is_subtype_of(theirs)
        if isinstance(theirs, ArrayType):
            return False
        return issubclass(mine, theirs)

    def accepts(self, value: Any) -> bool:
        """Whether *value* may be stored as an element of this array type."""
        if value is None:
            return True
        if isinstance(self.component, ArrayType):
            return isinstance(value, Array) and value.array_type.is_subtype_of(self.component)
        return isinstance(value, self.component)

    @property
    def name(self) -> str:
        if isinstance(self.component, ArrayType):
            return f"{self.component.name}[]"
        return f"{self.component.__name__}[]"

    def __repr__(self) -> str:
        return f"ArrayType({self.name})"


class Array(MutableSequence[Any]):
    """A fixed-length, component-typed sequence.

    Elements may be replaced but the length never changes: ``insert`` and
    ``del`` raise TypeError, as does storing a value the component type
    does not accept.
    """

    __slots__ = ("_array_type", "_items")

    def __init__(self, component: type | ArrayType = object, length: int = 0) -> None:
        if length < 0:
            raise ValueError(f"Array length must be non-negative, got {length}")
        self._array_type = ArrayType(component)
        self._items: list[Any] = [None] * length

    @classmethod
    def of(cls, component: type | ArrayType, items: Iterable[Any]) -> Array:
        """Allocate an array sized to *items* and copy them in."""
        values = list(items)
        array = cls(component, len(values))
        for index, value in enumerate(values):
            array[index] = value
        return array

    @property
    def array_type(self) -> ArrayType:
        return self._array_type

    @property
    def component(self) -> type | ArrayType:
        return self._array_type.component

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Any]:
        return iter(self._items)

    @overload
    def __getitem__(self, index: int) -> Any: ...

    @overload
    def __getitem__(self, index: slice) -> list[Any]: ...

    def __getitem__(self, index: int | slice) -> Any:
        return self._items[index]

    def __setitem__(self, index: int | slice, value: Any) -> None:
        if isinstance(index, slice):
            values = list(value)
            if len(range(*index.indices(len(self._items)))) != len(values):
                raise TypeError("Array slice assignment cannot change the array length")
            for item in values:
                self._check(item)
            self._items[index] = values
            return
        self._check(value)
        self._items[index] = value

    def __delitem__(self, index: int | slice) -> None:
        raise TypeError("Array length is fixed; elements cannot be deleted")

    def insert(self, index: int, value: Any) -> None:
        raise TypeError("Array length is fixed; elements cannot be inserted")

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Array):
            return NotImplemented
        return self._array_type == other._array_type and self._items == other._items

    __hash__ = None  # type: ignore[assignment]

    @reprlib.recursive_repr()
    def __repr__(self) -> str:
        return f"Array[{self._array_type.name}]({self._items!r})"

    def _check(self, value: Any) -> None:
        if not self._array_type.accepts(value):
            raise TypeError(
                f"Cannot store {type(value).__name__} in an array of {self._array_type.name}"
            )
