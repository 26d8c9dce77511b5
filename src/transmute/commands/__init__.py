"""Subcommand modules for transmute.

Provides register_commands() which uses deferred imports to keep
``transmute --help`` fast.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register all command groups and standalone commands on the root CLI group."""
    # --- Groups ---
    from transmute.commands.capsule import capsule
    from transmute.commands.json_cmd import json_group

    cli.add_command(json_group)
    cli.add_command(capsule)

    # --- Standalone commands ---
    from transmute.commands.convert import convert
    from transmute.commands.rules import rules

    cli.add_command(convert)
    cli.add_command(rules)
