"""HandlerRegistry: ordered conversion rules resolved by (source, target).

Rules are tried in registration order and the first rule whose input range
accepts the source descriptor and whose output range accepts the target
descriptor wins.  Lookups are memoized (misses included).

INVARIANT: The memo cache is the only shared mutable state.  It is filled
under a lock with ``setdefault`` semantics, so concurrent first lookups for
one pair all observe the same answer.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from transmute.domain.errors import RegistryError
from transmute.domain.types import TypeDescriptor, describe

if TYPE_CHECKING:
    from transmute.domain.context import ConversionContext
    from transmute.domain.ranges import TypeRange
    from transmute.services.converter import Converter

logger = logging.getLogger(__name__)

type Handler = Callable[[Converter, Any, TypeDescriptor, ConversionContext], Any]

_MISSING = object()


@dataclass(frozen=True)
class ConversionRule:
    """One dispatch table entry."""

    input_range: TypeRange
    output_range: TypeRange
    handler: Handler
    name: str = ""

    @property
    def label(self) -> str:
        return self.name or getattr(self.handler, "__name__", repr(self.handler))

    def matches(self, source: TypeDescriptor, target: TypeDescriptor) -> bool:
        return self.input_range.test(source) and self.output_range.test(target)


class HandlerRegistry:
    """Ordered, seal-on-first-use rule table.

    ``register`` is for startup only: the first ``resolve`` seals the
    registry and later registrations raise :class:`RegistryError`.

    When several rules match one pair the earliest registered wins and a
    warning is logged; with ``strict=True`` the ambiguity raises instead.
    """

    def __init__(self, rules: Iterable[ConversionRule] = (), *, strict: bool = False) -> None:
        self._rules: list[ConversionRule] = list(rules)
        self._strict = strict
        self._sealed = False
        self._cache: dict[tuple[TypeDescriptor, TypeDescriptor], ConversionRule | None] = {}
        self._lock = threading.Lock()

    @property
    def rules(self) -> tuple[ConversionRule, ...]:
        return tuple(self._rules)

    @property
    def strict(self) -> bool:
        return self._strict

    @property
    def sealed(self) -> bool:
        return self._sealed

    def __len__(self) -> int:
        return len(self._rules)

    def __iter__(self) -> Iterator[ConversionRule]:
        return iter(tuple(self._rules))

    def register(
        self,
        input_range: TypeRange,
        output_range: TypeRange,
        handler: Handler,
        name: str | None = None,
    ) -> ConversionRule:
        """Append a rule.  Only allowed before the first lookup."""
        rule = ConversionRule(input_range, output_range, handler, name or "")
        with self._lock:
            if self._sealed:
                raise RegistryError(
                    f"Cannot register rule {rule.label!r}: registry is sealed",
                    detail={"rule": rule.label},
                )
            self._rules.append(rule)
        return rule

    def with_rules(self, *rules: ConversionRule) -> HandlerRegistry:
        """New, unsealed registry with *rules* ahead of this one's rules."""
        return HandlerRegistry((*rules, *self._rules), strict=self._strict)

    def resolve_rule(
        self, source: TypeDescriptor, target: TypeDescriptor
    ) -> ConversionRule | None:
        """Return the rule that handles ``source -> target``, or None."""
        key = (source, target)
        cached = self._cache.get(key, _MISSING)
        if cached is not _MISSING:
            return cached  # type: ignore[return-value]
        with self._lock:
            self._sealed = True
            if key in self._cache:
                return self._cache[key]
            rule = self._scan(source, target)
            return self._cache.setdefault(key, rule)

    def resolve(self, source: TypeDescriptor, target: TypeDescriptor) -> Handler | None:
        """Return the handler for ``source -> target``, or None."""
        rule = self.resolve_rule(source, target)
        return None if rule is None else rule.handler

    def _scan(self, source: TypeDescriptor, target: TypeDescriptor) -> ConversionRule | None:
        matches = [rule for rule in self._rules if rule.matches(source, target)]
        if not matches:
            logger.debug("No rule for %s -> %s", describe(source), describe(target))
            return None
        if len(matches) > 1:
            labels = [rule.label for rule in matches]
            if self._strict:
                raise RegistryError(
                    f"Ambiguous rules for {describe(source)} -> {describe(target)}",
                    detail={
                        "source": describe(source),
                        "target": describe(target),
                        "rules": labels,
                    },
                )
            logger.warning(
                "Rules %s all match %s -> %s; using %s",
                labels,
                describe(source),
                describe(target),
                labels[0],
            )
        return matches[0]
