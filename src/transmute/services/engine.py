"""Engine: registry, converter and codecs assembled from settings.

Plugin rules (when plugins are enabled) are placed ahead of the built-in
rules.  Plugin discovery problems are logged and never stop the engine
from being built.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from transmute.formats.capsule import CapsuleCodec
from transmute.formats.json_format import JsonCodec
from transmute.services.converter import Converter
from transmute.services.handlers import default_registry

if TYPE_CHECKING:
    from transmute.config.settings import TransmuteSettings
    from transmute.plugins.manager import PluginManager
    from transmute.services.registry import HandlerRegistry

logger = logging.getLogger(__name__)


class Engine:
    """Everything a conversion or transcode needs, built once per process."""

    def __init__(
        self,
        registry: HandlerRegistry | None = None,
        *,
        json_codec: JsonCodec | None = None,
        capsule_codec: CapsuleCodec | None = None,
        plugin_names: list[str] | None = None,
    ) -> None:
        self.registry = registry if registry is not None else default_registry()
        self.converter = Converter(self.registry)
        self.json = json_codec or JsonCodec()
        self.capsule = capsule_codec or CapsuleCodec()
        self.plugin_names: list[str] = list(plugin_names or [])

    @classmethod
    def from_settings(
        cls,
        settings: TransmuteSettings,
        *,
        plugin_manager: PluginManager | None = None,
    ) -> Engine:
        """Build an engine honoring *settings* (and plugins, when enabled)."""
        registry = default_registry(strict=settings.strict_rules)
        plugin_names: list[str] = []
        if settings.registry.load_plugins:
            from transmute.plugins.manager import PluginManager

            pm = plugin_manager or PluginManager()
            if not pm.is_loaded:
                local_dir = settings.registry.plugin_dir
                pm.discover_and_load(local_dir=Path(local_dir) if local_dir else None)
            plugin_names = pm.list_plugin_names()
            rules = pm.collect_conversion_rules()
            if rules:
                registry = registry.with_rules(*rules)
                logger.debug("Engine uses %d plugin rules ahead of built-ins", len(rules))
        return cls(
            registry,
            json_codec=JsonCodec(
                allow_equals_separator=settings.json_codec.allow_equals_separator
            ),
            capsule_codec=CapsuleCodec(max_payload_bytes=settings.capsule.max_payload_bytes),
            plugin_names=plugin_names,
        )
