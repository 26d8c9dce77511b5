"""Rich Console factory and theme for transmute diagnostics.

Consoles render into a StringIO buffer so every renderer keeps a plain
``-> str`` contract.  Rich drops color codes on its own when the real
stream is not a terminal (pipes, CliRunner).
"""

from __future__ import annotations

from io import StringIO

from rich.console import Console
from rich.theme import Theme

TRANSMUTE_THEME = Theme(
    {
        "tm.ok": "bold green",
        "tm.error": "bold red",
        "tm.warning": "bold yellow",
        "tm.op": "bold cyan",
        "tm.key": "dim",
        "tm.slow": "bold red",
        "tm.medium": "yellow",
        "tm.fast": "dim",
    }
)


def create_console(*, no_color: bool = False, width: int | None = None) -> Console:
    """Create a Console that renders to a StringIO buffer.

    Args:
        no_color: Disable ANSI escape codes (used in tests).
        width: Override terminal width (useful for consistent test output).
    """
    return Console(
        file=StringIO(),
        theme=TRANSMUTE_THEME,
        no_color=no_color,
        highlight=False,
        width=width or 120,
    )


def get_output(console: Console) -> str:
    """Extract rendered text from a StringIO-backed Console."""
    assert isinstance(console.file, StringIO)
    return console.file.getvalue()
