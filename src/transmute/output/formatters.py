"""Output-mode dispatch for ServiceResults.

Three modes:

* JSON (``--json``): the whole ServiceResult, pretty-printed.
* Human (default): the payload text verbatim on success, a styled error
  line on failure.
* Quiet (``-q``): the payload on success, a single plain error line on
  failure.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from transmute.output.renderers import render_error, render_meta

if TYPE_CHECKING:
    from transmute.services.result import ServiceResult


@dataclass(frozen=True)
class OutputSettings:
    json_output: bool = False
    quiet: bool = False
    verbose: bool = False


def format_result(result: ServiceResult, *, settings: OutputSettings | None = None) -> str:
    """Format a ServiceResult for display.

    Args:
        result: The service result to format.
        settings: Requested output mode; human mode when omitted.
    """
    settings = settings or OutputSettings()
    if settings.json_output:
        return result.model_dump_json(indent=2)
    if result.ok:
        output = result.data.get("output")
        return f"OK: {result.op}" if output is None else str(output)
    if settings.quiet:
        msg = result.error.message if result.error else "Unknown error"
        return f"ERROR: {result.op}: {msg}"
    return render_error(result, verbose=settings.verbose)


def format_diagnostics(result: ServiceResult, *, settings: OutputSettings) -> str:
    """Verbose-only extras (timing spans) destined for stderr.

    Empty in JSON mode, where ``meta`` is already part of the payload.
    """
    if settings.json_output or not settings.verbose:
        return ""
    return render_meta(result)
