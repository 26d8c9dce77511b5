"""Rich renderers for the parts of a ServiceResult that are not payload.

The payload itself (``data["output"]``) is printed verbatim by
:mod:`transmute.output.formatters`: Rich would expand its tabs and wrap its
lines.  What goes through Rich here is the error line, the error detail and
the telemetry span tree.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from rich.text import Text

from transmute.output.console import create_console, get_output

if TYPE_CHECKING:
    from rich.console import Console

    from transmute.services.result import ServiceResult


def render_error(result: ServiceResult, *, verbose: bool = False) -> str:
    """``ERROR  <op>: <message>``, plus the error detail when verbose."""
    console = create_console()
    err = result.error
    line = Text()
    line.append("ERROR", style="tm.error")
    line.append(f"  {result.op}", style="tm.op")
    line.append(": ")
    line.append(err.message if err else "Unknown error")
    console.print(line, soft_wrap=True)

    if verbose and err:
        console.print(Text(f"  code: {err.code}", style="tm.key"), soft_wrap=True)
        if err.detail:
            console.print(Text("  detail:", style="tm.key"))
            for key, value in err.detail.items():
                console.print(Text(f"    {key}: {value}"), soft_wrap=True)
    return get_output(console).rstrip("\n")


def render_meta(result: ServiceResult) -> str:
    """Render ``result.meta`` (the telemetry span tree, mostly)."""
    if not result.meta:
        return ""
    console = create_console()
    console.print(Text("meta:", style="tm.key"))
    for key, value in result.meta.items():
        if key == "telemetry":
            _render_span(console, value, indent=2)
        else:
            console.print(Text(f"  {key}: {value}"), soft_wrap=True)
    return get_output(console).rstrip("\n")


def _render_span(console: Console, span: dict[str, Any], indent: int) -> None:
    """One span per line, children indented below their parent."""
    duration = span.get("duration_ms", 0.0)
    if duration > 1000:
        style = "tm.slow"
    elif duration > 100:
        style = "tm.medium"
    else:
        style = "tm.fast"

    line = Text(" " * indent)
    line.append(f"{duration:>8.2f}ms", style=style)
    line.append(f"  {span.get('name', '?')}")
    annotations = span.get("annotations")
    if annotations:
        line.append("  (" + ", ".join(f"{k}={v}" for k, v in annotations.items()) + ")")
    console.print(line, soft_wrap=True)

    for child in span.get("children", []):
        _render_span(console, child, indent + 4)
