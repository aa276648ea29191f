"""Hosting platform plugins.

Each platform module registers one object store, one blob resolver and one
URL resolver under the platform name.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from imagehost.interfaces import BlobResolver, ObjectStore, URLResolver
from imagehost.models.config import PlatformConfig
from imagehost.plugins.registry import PluginType, load_plugin

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Platform:
    """The three collaborators for one hosting platform."""

    name: str
    store: ObjectStore
    blob_resolver: BlobResolver
    url_resolver: URLResolver


def load_platform(config: PlatformConfig) -> Platform:
    """Create the platform collaborators selected by config.

    Raises:
        ValueError: If the backend is unknown or its settings are missing.
        ValidationError: If the backend settings are invalid.
    """
    backend = config.backend
    settings = config.backend_settings()

    store = load_plugin(PluginType.OBJECT_STORE, backend, settings)
    blob_resolver = load_plugin(PluginType.BLOB_RESOLVER, backend, settings)
    url_resolver = load_plugin(PluginType.URL_RESOLVER, backend, settings)

    logger.info("Loaded platform: %s", backend)
    return Platform(
        name=backend,
        store=store,
        blob_resolver=blob_resolver,
        url_resolver=url_resolver,
    )



__all__ = ["Platform", "load_platform"]
