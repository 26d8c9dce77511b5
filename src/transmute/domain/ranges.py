"""TypeRange: include/exclude predicate over type descriptors.

Four descriptor sets are consulted in a fixed precedence and the first
decisive match wins:

1. ``absolute_exclude``: exact match -> not in range
2. ``absolute_include``: exact match -> in range
3. ``subtype_exclude``: descriptor is a subtype of an entry -> not in range
4. ``subtype_include``: descriptor is a subtype of an entry -> in range

Anything else is not in range.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

from transmute.domain.types import TypeDescriptor, describe, is_subtype


@dataclass(frozen=True)
class TypeRange:
    """Immutable, hashable set of accepted type descriptors."""

    absolute_include: frozenset[TypeDescriptor] = field(default_factory=frozenset)
    absolute_exclude: frozenset[TypeDescriptor] = field(default_factory=frozenset)
    subtype_include: frozenset[TypeDescriptor] = field(default_factory=frozenset)
    subtype_exclude: frozenset[TypeDescriptor] = field(default_factory=frozenset)

    @classmethod
    def exactly(cls, *descriptors: TypeDescriptor) -> TypeRange:
        """Range holding exactly *descriptors* (subtypes not included)."""
        return cls(absolute_include=frozenset(descriptors))

    @classmethod
    def subtypes_of(
        cls,
        *descriptors: TypeDescriptor,
        excluding: Iterable[TypeDescriptor] = (),
        except_exactly: Iterable[TypeDescriptor] = (),
    ) -> TypeRange:
        """Range holding *descriptors* and their subtypes.

        *excluding* removes whole subtype families; *except_exactly* removes
        single descriptors.
        """
        return cls(
            absolute_exclude=frozenset(except_exactly),
            subtype_include=frozenset(descriptors),
            subtype_exclude=frozenset(excluding),
        )

    @classmethod
    def anything(cls) -> TypeRange:
        """Range holding every descriptor."""
        return cls.subtypes_of(object)

    def test(self, descriptor: TypeDescriptor) -> bool:
        """Whether *descriptor* is in this range."""
        if descriptor in self.absolute_exclude:
            return False
        if descriptor in self.absolute_include:
            return True
        if any(is_subtype(descriptor, excluded) for excluded in self.subtype_exclude):
            return False
        return any(is_subtype(descriptor, included) for included in self.subtype_include)

    def __contains__(self, descriptor: object) -> bool:
        return self.test(descriptor)  # type: ignore[arg-type]

    def __repr__(self) -> str:
        parts: list[str] = []
        for label, members in (
            ("in", self.absolute_include),
            ("out", self.absolute_exclude),
            ("subin", self.subtype_include),
            ("subout", self.subtype_exclude),
        ):
            if members:
                names = ", ".join(sorted(describe(m) for m in members))
                parts.append(f"{label}={{{names}}}")
        return f"TypeRange({' '.join(parts)})"
