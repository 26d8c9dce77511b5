"""Pluggy hook specifications for transmute.

Plugins contribute conversion rules at startup.  Their rules are placed
ahead of the built-in rules, so a plugin can take over a type pair the
built-ins already handle.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import pluggy

if TYPE_CHECKING:
    from transmute.services.registry import ConversionRule

PROJECT_NAME = "transmute"

hookspec = pluggy.HookspecMarker(PROJECT_NAME)
hookimpl = pluggy.HookimplMarker(PROJECT_NAME)


class TransmuteHookSpec:
    """Hook specifications for the transmute plugin system."""

    @hookspec
    def transmute_conversion_rules(self) -> list[ConversionRule] | None:
        """Return extra conversion rules, highest priority first."""
