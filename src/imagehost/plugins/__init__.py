"""Unified plugin discovery for all platform plugins."""

import importlib
import logging
import pkgutil
from collections.abc import Iterable
from importlib import metadata

logger = logging.getLogger(__name__)

ENTRY_POINT_GROUP = "imagehost.plugins"


def iter_entry_points(group: str) -> Iterable[metadata.EntryPoint]:
    """Iterate entry points registered under group."""
    return metadata.entry_points().select(group=group)


def discover_all_plugins() -> None:
    """Discover and register all plugins (built-in and external).

    Built-in platforms are discovered by importing all modules in the
    platforms package. External plugins are discovered via entry points.

    All plugins use decorators for registration, so importing modules
    triggers registration automatically. Importing a module twice is a
    no-op, so discovery is safe to call repeatedly.
    """
    # 1. Discover built-in platforms by importing all modules
    package = importlib.import_module("imagehost.plugins.platforms")
    for _, module_name, _ in pkgutil.iter_modules(package.__path__):
        if module_name.startswith("_"):
            continue  # Skip private modules
        try:
            importlib.import_module(f"imagehost.plugins.platforms.{module_name}")
        except Exception as exc:
            logger.error(
                "Failed to import built-in platform module %s: %s",
                module_name,
                exc,
                exc_info=True,
            )

    # 2. Discover external plugins via entry points
    for point in iter_entry_points(ENTRY_POINT_GROUP):
        try:
            importlib.import_module(point.module)
        except Exception as exc:
            logger.error(
                "Failed to load external plugin %s from %s: %s",
                point.name,
                point.module,
                exc,
                exc_info=True,
            )


__all__ = ["discover_all_plugins", "iter_entry_points"]
