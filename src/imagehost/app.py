"""Main application that wires all components together."""

from __future__ import annotations

import asyncio
import logging
import signal
from typing import TYPE_CHECKING

from imagehost import __version__
from imagehost.api import APIServer, create_app
from imagehost.config import validate_config
from imagehost.pipeline import UploadPipeline
from imagehost.plugins.platforms import Platform, load_platform
from imagehost.ui import IndexTemplate

if TYPE_CHECKING:
    from imagehost.models.config import Config

logger = logging.getLogger(__name__)


class Application:
    """Main application that orchestrates all components.

    Handles component creation, lifecycle, and graceful shutdown.
    """

    def __init__(
        self,
        config: Config,
        *,
        platform: Platform | None = None,
        index_page: IndexTemplate | None = None,
    ) -> None:
        """Initialize application with a validated config.

        Args:
            config: Parsed configuration
            platform: Pre-built platform collaborators (tests); loaded from config when None
            index_page: Pre-compiled index template; loaded from config when None
        """
        self._config = config
        self._platform = platform
        self._index_page = index_page
        self._pipeline: UploadPipeline | None = None
        self._api_server: APIServer | None = None

        # Shutdown state
        self._shutdown_event = asyncio.Event()
        self._shutdown_started = False

    def build(self) -> None:
        """Create all components based on config.

        Raises:
            ConfigError: If the platform or index template is invalid.
        """
        if self._platform is None:
            # Discover plugins before validation
            from imagehost.plugins import discover_all_plugins

            discover_all_plugins()
            validate_config(self._config)
            self._platform = load_platform(self._config.platform)

        if self._index_page is None:
            self._index_page = IndexTemplate.load(self._config.ui.index_template)

        self._pipeline = UploadPipeline(
            store=self._platform.store,
            blob_resolver=self._platform.blob_resolver,
            url_resolver=self._platform.url_resolver,
        )
        logger.info("All components created (platform=%s)", self._platform.name)

    async def run(self) -> None:
        """Run the application until a shutdown signal arrives."""
        logger.info("Starting ImageHost %s...", __version__)
        self.build()

        self._setup_signal_handlers()

        server_cfg = self._config.server
        self._api_server = APIServer(
            app=create_app(self),
            host=server_cfg.host,
            port=server_cfg.port,
        )
        await self._api_server.start()
        logger.info("Application started. Waiting for uploads...")

        await self._shutdown_event.wait()

        await self.shutdown()

    def _setup_signal_handlers(self) -> None:
        """Set up signal handlers for graceful shutdown."""
        loop = asyncio.get_running_loop()

        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, self._handle_signal, sig)

    def _handle_signal(self, sig: signal.Signals) -> None:
        """Handle shutdown signal."""
        if self._shutdown_started:
            logger.warning("Shutdown already in progress, ignoring signal")
            return

        logger.info("Received signal %s, initiating shutdown...", sig.name)
        self._shutdown_started = True
        self._shutdown_event.set()

    async def shutdown(self) -> None:
        """Graceful shutdown of all components."""
        logger.info("Shutting down application...")

        # Stop API server first to prevent new requests during shutdown.
        if self._api_server:
            await self._api_server.stop()

        if self._platform:
            await self._platform.store.shutdown()

        logger.info("Application shutdown complete")

    @property
    def config(self) -> Config:
        return self._config

    @property
    def version(self) -> str:
        return __version__

    @property
    def platform(self) -> Platform:
        if self._platform is None:
            raise RuntimeError("Platform not initialized")
        return self._platform

    @property
    def pipeline(self) -> UploadPipeline:
        if self._pipeline is None:
            raise RuntimeError("Pipeline not initialized")
        return self._pipeline

    @property
    def index_page(self) -> IndexTemplate:
        if self._index_page is None:
            raise RuntimeError("Index page not initialized")
        return self._index_page
