"""Ancestor chains for cycle-safe recursion.

A :class:`ConversionContext` records, for one call tree, which source values
are currently being converted (or formatted, or parsed) and the product each
of them is turning into.  Identity is tracked through an
:class:`IdentityArena` instead of relying on ``id()`` of objects that might
be collected mid-call: the arena keeps every keyed value alive until the
call tree is done with it.

Contexts are immutable.  ``extend`` returns a child that shares the arena
and carries one more entry; the only mutable part is the newest entry's
:class:`ProductSlot`, bound once by the handler that allocated the product.
"""

from __future__ import annotations

from collections.abc import Iterator
from typing import Any

from transmute.domain.errors import ConversionError, RecursionInvariantError
from transmute.domain.types import describe, is_value_kind, type_of


class IdentityArena:
    """Identity-keyed side table assigning stable integer keys.

    Value kinds (numbers, strings, ``None``...) never get a key: they
    cannot contain anything, so they can never close a cycle.
    """

    __slots__ = ("_keys", "_values")

    def __init__(self) -> None:
        self._keys: dict[int, int] = {}
        self._values: list[Any] = []

    def key_of(self, value: Any) -> int | None:
        """Return the key of *value*, assigning the next one on first sight."""
        if is_value_kind(value):
            return None
        key = self._keys.get(id(value))
        if key is None:
            key = len(self._values)
            self._keys[id(value)] = key
            self._values.append(value)
        return key

    def lookup(self, value: Any) -> int | None:
        """Return the key of *value* without assigning one."""
        if is_value_kind(value):
            return None
        return self._keys.get(id(value))

    def __len__(self) -> int:
        return len(self._values)

    def __getitem__(self, key: int) -> Any:
        return self._values[key]

    def __contains__(self, value: object) -> bool:
        return self.lookup(value) is not None


class ProductSlot:
    """Write-once holder for the product of one ancestor level."""

    __slots__ = ("_bound", "_value")

    def __init__(self) -> None:
        self._bound = False
        self._value: Any = None

    @property
    def bound(self) -> bool:
        return self._bound

    @property
    def value(self) -> Any:
        return self._value

    def bind(self, product: Any) -> Any:
        if self._bound:
            raise RecursionInvariantError(
                "Product slot is already bound",
                detail={"product": describe(type_of(product))},
            )
        self._value = product
        self._bound = True
        return product

    def __repr__(self) -> str:
        if not self._bound:
            return "ProductSlot(<unbound>)"
        return f"ProductSlot({describe(type_of(self._value))})"


class ConversionContext:
    """Immutable ancestor chain of ``(source key, ProductSlot)`` entries.

    Index 0 is the outermost ancestor.  "Distance" counts from the
    innermost entry: distance 0 is the newest level.
    """

    __slots__ = ("_arena", "_entries")

    def __init__(
        self,
        arena: IdentityArena | None = None,
        entries: tuple[tuple[int | None, ProductSlot], ...] = (),
    ) -> None:
        self._arena = arena if arena is not None else IdentityArena()
        self._entries = entries

    @classmethod
    def root(cls) -> ConversionContext:
        """Fresh, empty chain with its own arena."""
        return cls()

    @property
    def arena(self) -> IdentityArena:
        return self._arena

    @property
    def depth(self) -> int:
        return len(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[Any]:
        """Iterate over the ancestor sources, outermost first."""
        for key, _slot in self._entries:
            yield None if key is None else self._arena[key]

    def extend(self, source: Any) -> ConversionContext:
        """Child context with *source* appended and an unbound product slot."""
        key = self._arena.key_of(source)
        return ConversionContext(self._arena, (*self._entries, (key, ProductSlot())))

    def bind(self, product: Any) -> Any:
        """Bind *product* to the newest entry's slot and return it."""
        if not self._entries:
            raise RecursionInvariantError("Cannot bind a product on an empty context")
        return self._entries[-1][1].bind(product)

    def index_of(self, value: Any) -> int | None:
        """Position of *value* in the chain (innermost match), or None."""
        key = self._arena.lookup(value)
        if key is None:
            return None
        for index in range(len(self._entries) - 1, -1, -1):
            if self._entries[index][0] == key:
                return index
        return None

    def contains(self, value: Any) -> bool:
        """Whether *value* (by identity) is one of the ancestors."""
        return self.index_of(value) is not None

    def __contains__(self, value: object) -> bool:
        return self.contains(value)

    def distance_of(self, value: Any) -> int | None:
        """Levels between the innermost entry and *value*'s entry."""
        index = self.index_of(value)
        if index is None:
            return None
        return len(self._entries) - 1 - index

    def at_distance(self, distance: int) -> Any:
        """Source value *distance* levels above the innermost entry."""
        if not 0 <= distance < len(self._entries):
            raise IndexError(f"No ancestor at distance {distance} (depth {len(self._entries)})")
        key = self._entries[len(self._entries) - 1 - distance][0]
        return None if key is None else self._arena[key]

    def slot_of(self, value: Any) -> ProductSlot:
        """Product slot of ancestor *value*.

        Raises:
            RecursionInvariantError: *value* is not in the chain.
        """
        index = self.index_of(value)
        if index is None:
            raise RecursionInvariantError(
                f"{describe(type_of(value))} value is not an ancestor in this context",
                detail={"depth": len(self._entries)},
            )
        return self._entries[index][1]

    def product_of(self, value: Any) -> Any:
        """Product already allocated for ancestor *value*.

        Raises:
            RecursionInvariantError: *value* is not in the chain.
            ConversionError: the ancestor's product does not exist yet
                (an immutable container still collecting its elements).
        """
        slot = self.slot_of(value)
        if not slot.bound:
            raise ConversionError(
                f"Cycle reaches a {describe(type_of(value))} whose product is still "
                "under construction",
                detail={"source": describe(type_of(value))},
            )
        return slot.value

    def __repr__(self) -> str:
        return f"ConversionContext(depth={len(self._entries)}, arena={len(self._arena)})"
