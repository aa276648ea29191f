"""CLI entrypoint for ImageHost application."""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

import fire  # type: ignore[import-untyped]

from imagehost.app import Application
from imagehost.config import ConfigError, available_platforms, load_config
from imagehost.logging_setup import configure_logging
from imagehost.ui import IndexTemplate


def setup_logging(level: str = "INFO") -> None:
    """Configure logging for CLI."""
    configure_logging(log_level=level)


class ImageHost:
    """ImageHost CLI - image upload and hosting service."""

    def run(self, config: str, log_level: str = "INFO") -> None:
        """Run the upload server.

        Args:
            config: Path to YAML config file
            log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        """
        setup_logging(log_level)

        try:
            cfg = load_config(Path(config))
            app = Application(cfg)
            asyncio.run(app.run())
        except ConfigError as e:
            print(f"✗ Config invalid: {e}", file=sys.stderr)
            sys.exit(1)
        except KeyboardInterrupt:
            pass  # Handled by signal handlers

    def validate(self, config: str) -> None:
        """Validate config file without running.

        Args:
            config: Path to YAML config file
        """
        config_path = Path(config)

        try:
            cfg = load_config(config_path)
            template = IndexTemplate.load(cfg.ui.index_template)

            print(f"✓ Config valid: {config_path}")
            print(f"  Platform backend: {cfg.platform.backend}")
            print(f"  Available platforms: {available_platforms()}")
            print(f"  Listening on: {cfg.server.host}:{cfg.server.port}")
            print(f"  Form field: {cfg.upload.form_field}")
            print(f"  Upload prefix: {cfg.upload.temp_prefix}/{cfg.upload.create_subdir}")
            print(f"  Secure URLs: {cfg.upload.secure_urls}")
            print(f"  Index template: {template.name} (fields: {sorted(template.fields)})")
        except ConfigError as e:
            print(f"✗ Config invalid: {e}", file=sys.stderr)
            sys.exit(1)


def main() -> None:
    """Main CLI entrypoint."""
    fire.Fire(ImageHost)


if __name__ == "__main__":
    main()
