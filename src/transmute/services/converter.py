"""Converter: the dispatch core.

Resolution order for ``convert(value, target)``:

1. ``None`` goes to :meth:`Converter.convert_null`.
2. A value that is one of its own ancestors dispatches as
   :class:`RecursionMarker` so it maps onto the ancestor's product.
3. Identity fast path: a value that already satisfies the target is
   returned as is (unless ``force_clone``).
4. :class:`SelfConverting` values get a chance to answer.
5. The registry resolves ``(source, target)``; no rule is an error.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from transmute.domain.context import ConversionContext
from transmute.domain.errors import ConversionError, TransmuteError
from transmute.domain.types import (
    NoneType,
    RecursionMarker,
    SelfConverting,
    TypeDescriptor,
    describe,
    is_instance,
    type_of,
)

if TYPE_CHECKING:
    from transmute.services.registry import Handler, HandlerRegistry

logger = logging.getLogger(__name__)


class Converter:
    """Converts values between type descriptors using a :class:`HandlerRegistry`.

    Stateless apart from the registry; one instance can serve any number of
    threads as long as each top-level call uses its own context.
    """

    def __init__(self, registry: HandlerRegistry) -> None:
        self._registry = registry

    @property
    def registry(self) -> HandlerRegistry:
        return self._registry

    def convert(
        self,
        value: Any,
        target: TypeDescriptor,
        context: ConversionContext | None = None,
        source_type: TypeDescriptor | None = None,
        force_clone: bool = False,
    ) -> Any:
        """Convert *value* into an instance of *target*.

        Args:
            value: The value to convert.
            target: Class or ArrayType the product must satisfy.
            context: Ancestor chain of an enclosing conversion; a fresh root
                context is created when omitted.
            source_type: Dispatch as if *value* had this descriptor.
            force_clone: Skip the identity fast path even when *value*
                already satisfies *target*.

        Raises:
            ConversionError: No rule handles the pair, or a handler failed.
        """
        if context is None:
            context = ConversionContext.root()
        if value is None:
            return self.convert_null(target, context)

        recursive = context.contains(value)
        if recursive:
            source: TypeDescriptor = RecursionMarker
        else:
            if not force_clone and is_instance(value, target):
                return value
            if isinstance(value, SelfConverting):
                answer = value.convert_to(target, context)
                if answer is not None:
                    return answer.value
            source = source_type if source_type is not None else type_of(value)

        handler = self._registry.resolve(source, target)
        if handler is None:
            return self.convert_else(value, source, target, context)
        # A back-reference is already on the chain; do not push it twice.
        child = context if recursive else context.extend(value)
        return self._invoke(handler, value, source, target, child)

    def convert_null(self, target: TypeDescriptor, context: ConversionContext) -> Any:
        """Convert ``None`` through the ``(NoneType, target)`` rule."""
        handler = self._registry.resolve(NoneType, target)
        if handler is None:
            return self.convert_else(None, NoneType, target, context)
        return self._invoke(handler, None, NoneType, target, context)

    def convert_else(
        self,
        value: Any,
        source: TypeDescriptor,
        target: TypeDescriptor,
        context: ConversionContext,
    ) -> Any:
        """Fallback when no rule matches.  Always raises."""
        raise ConversionError(
            f"No conversion from {describe(source)} to {describe(target)}",
            detail={
                "source": describe(source),
                "target": describe(target),
                "depth": context.depth,
            },
        )

    def _invoke(
        self,
        handler: Handler,
        value: Any,
        source: TypeDescriptor,
        target: TypeDescriptor,
        context: ConversionContext,
    ) -> Any:
        try:
            return handler(self, value, target, context)
        except TransmuteError:
            raise
        except Exception as exc:
            logger.debug(
                "Handler %s failed for %s -> %s",
                getattr(handler, "__name__", handler),
                describe(source),
                describe(target),
                exc_info=True,
            )
            raise ConversionError(
                f"Cannot convert {describe(source)} to {describe(target)}: {exc}",
                detail={
                    "source": describe(source),
                    "target": describe(target),
                    "cause": type(exc).__name__,
                },
            ) from exc
