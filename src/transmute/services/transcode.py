"""TranscodeService, the operations behind the ``transmute`` CLI.

Every operation takes text (JSON or capsule) and returns a ServiceResult
whose ``data["output"]`` is the text to print.
"""

from __future__ import annotations

import logging
import re
from decimal import Decimal
from typing import Any

from transmute.domain.arrays import ArrayType
from transmute.domain.errors import TransmuteError
from transmute.domain.types import TypeDescriptor, describe
from transmute.formats.envelope import COMPONENTS
from transmute.formats.reader import TextReader
from transmute.services.base import BaseService
from transmute.services.result import ServiceError, ServiceResult
from transmute.services.telemetry import trace_span, traced

logger = logging.getLogger(__name__)

TARGETS: dict[str, TypeDescriptor] = {
    "list": list,
    "tuple": tuple,
    "set": set,
    "frozenset": frozenset,
    "dict": dict,
    "str": str,
    "int": int,
    "float": float,
    "bool": bool,
    "decimal": Decimal,
}

_ARRAY_TARGET = re.compile(r"array\[(?P<component>.+)\]")


def resolve_target(name: str) -> TypeDescriptor | None:
    """Map a CLI target name onto a type descriptor.

    ``array[<component>]`` nests: ``array[array[int]]`` is an array of
    int arrays.  Component names are the capsule component names.
    """
    name = name.strip()
    match = _ARRAY_TARGET.fullmatch(name)
    if match:
        inner = match.group("component")
        component = resolve_target(inner) if inner.startswith("array[") else COMPONENTS.get(inner)
        if component is None:
            return None
        return ArrayType(component)
    return TARGETS.get(name)


class TranscodeService(BaseService):
    """JSON reformatting, classification, capsule transcoding and conversion."""

    @traced
    def reformat(self, text: str) -> ServiceResult:
        """Parse JSON *text* and print it back in canonical form."""
        op = "reformat"
        try:
            with trace_span("parse"):
                value = self._engine.json.parse(text)
            with trace_span("format"):
                output = self._engine.json.format(value)
        except TransmuteError as exc:
            return self._failure(op, exc)
        return ServiceResult(ok=True, op=op, data={"output": output})

    @traced
    def classify(self, text: str) -> ServiceResult:
        """Report the token kind of the JSON value that *text* starts with."""
        op = "classify"
        try:
            kind = self._engine.json.classify(TextReader(text))
        except TransmuteError as exc:
            return self._failure(op, exc)
        return ServiceResult(ok=True, op=op, data={"kind": str(kind), "output": str(kind)})

    @traced
    def encode_capsule(self, text: str) -> ServiceResult:
        """Parse JSON *text* and wrap the value in a capsule."""
        op = "encode_capsule"
        try:
            with trace_span("parse"):
                value = self._engine.json.parse(text)
            with trace_span("pack"):
                output = self._engine.capsule.format(value)
        except TransmuteError as exc:
            return self._failure(op, exc)
        return ServiceResult(ok=True, op=op, data={"output": output})

    @traced
    def decode_capsule(self, text: str) -> ServiceResult:
        """Open a capsule and print its value as JSON."""
        op = "decode_capsule"
        try:
            with trace_span("unpack"):
                value = self._engine.capsule.parse(text)
            with trace_span("format"):
                output = self._engine.json.format(value)
        except TransmuteError as exc:
            return self._failure(op, exc)
        return ServiceResult(ok=True, op=op, data={"output": output})

    @traced
    def convert(self, text: str, target_name: str) -> ServiceResult:
        """Parse JSON *text*, convert the value to *target_name*, print as JSON."""
        op = "convert"
        target = resolve_target(target_name)
        if target is None:
            return ServiceResult(
                ok=False,
                op=op,
                error=ServiceError(
                    code="UNKNOWN_TARGET",
                    message=f"Unknown conversion target: {target_name}",
                    detail={"target": target_name, "valid": [*TARGETS, "array[<component>]"]},
                ),
            )
        try:
            with trace_span("parse"):
                value = self._engine.json.parse(text)
            with trace_span("convert") as span:
                product = self._engine.converter.convert(value, target)
                if span is not None:
                    span.annotate("target", describe(target))
            with trace_span("format"):
                output = self._engine.json.format(product)
        except TransmuteError as exc:
            return self._failure(op, exc, target=describe(target))
        data: dict[str, Any] = {"target": describe(target), "output": output}
        return ServiceResult(ok=True, op=op, data=data)

    @traced
    def rules(self) -> ServiceResult:
        """List the active conversion rules in resolution order."""
        labels = [rule.label for rule in self._engine.registry]
        data: dict[str, Any] = {
            "rules": labels,
            "plugins": list(self._engine.plugin_names),
            "strict": self._engine.registry.strict,
            "output": "\n".join(labels),
        }
        return ServiceResult(ok=True, op="rules", data=data)
