"""Index page template loading and rendering."""

from __future__ import annotations

import logging
import string
from importlib import resources
from pathlib import Path
from typing import Any

from imagehost.config.loader import ConfigError, ConfigErrorCode

logger = logging.getLogger(__name__)

INDEX_FILE_NAME = "index.html"


class IndexTemplate:
    """A ``str.format`` template compiled once at startup.

    Literal braces in the HTML must be doubled (``{{`` / ``}}``).
    """

    def __init__(self, source: str, *, name: str = INDEX_FILE_NAME) -> None:
        self.name = name
        self._source = source
        self.fields = _compile(source, name)

    @classmethod
    def load(cls, path: str | Path | None = None) -> IndexTemplate:
        """Load the template at path, or the packaged default when path is None.

        Raises:
            ConfigError: If the file cannot be read or does not compile.
        """
        try:
            if path is None:
                source = (
                    resources.files("imagehost").joinpath("web", INDEX_FILE_NAME).read_text("utf-8")
                )
                name = INDEX_FILE_NAME
            else:
                template_path = Path(path).expanduser()
                source = template_path.read_text("utf-8")
                name = template_path.name
        except OSError as exc:
            raise ConfigError(
                f"Index template could not be read: {path or INDEX_FILE_NAME}: {exc}",
                code=ConfigErrorCode.TEMPLATE_INVALID,
                path=Path(path) if path is not None else None,
                cause=exc,
            ) from exc
        logger.info("Loaded index template: %s", path or f"<packaged {INDEX_FILE_NAME}>")
        return cls(source, name=name)

    def render(self, context: dict[str, Any]) -> str:
        """Render the template. Raises KeyError for fields missing from context."""
        return self._source.format_map(context)


def _compile(source: str, name: str) -> frozenset[str]:
    try:
        parsed = list(string.Formatter().parse(source))
    except ValueError as exc:
        raise ConfigError(
            f"Index template {name} does not compile: {exc}",
            code=ConfigErrorCode.TEMPLATE_INVALID,
            cause=exc,
        ) from exc
    return frozenset(field for _, field, _, _ in parsed if field)
