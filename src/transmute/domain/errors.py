"""Error taxonomy shared by the converter and the text codecs.

Every error carries a stable ``code`` and a ``detail`` dict so the service
layer can map it onto a ServiceError without string parsing.

INVARIANT: OSError from readers/writers is never wrapped in this taxonomy.
"""

from __future__ import annotations

from typing import Any


class TransmuteError(Exception):
    """Base class for all transmute failures."""

    code = "TRANSMUTE_ERROR"

    def __init__(self, message: str, *, detail: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.detail: dict[str, Any] = dict(detail or {})


class ConversionError(TransmuteError):
    """No handler resolves for a type pair, or a handler failed.

    The original failure, when there is one, is chained as ``__cause__``.
    """

    code = "CONVERSION_FAILED"


class ParseError(TransmuteError):
    """Malformed input text (or capsule payload)."""

    code = "PARSE_FAILED"


class FormatError(TransmuteError):
    """A value cannot be encoded by a format."""

    code = "FORMAT_FAILED"


class RecursionInvariantError(TransmuteError):
    """A value dispatched as a back-reference is missing from the ancestor chain.

    Indicates a context propagation bug. Never retried.
    """

    code = "RECURSION_INVARIANT"


class RegistryError(TransmuteError):
    """Handler registry misconfiguration (late registration, ambiguous rules)."""

    code = "REGISTRY_MISCONFIGURED"
