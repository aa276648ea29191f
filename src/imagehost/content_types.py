"""Static extension-to-MIME-type table for uploaded files."""

from __future__ import annotations

from pathlib import PurePosixPath

# Lookup is by lowercased extension, including the leading dot.
EXTENSION_TYPES: dict[str, str] = {
    ".avif": "image/avif",
    ".bmp": "image/bmp",
    ".css": "text/css; charset=utf-8",
    ".gif": "image/gif",
    ".heic": "image/heic",
    ".heif": "image/heif",
    ".htm": "text/html; charset=utf-8",
    ".html": "text/html; charset=utf-8",
    ".ico": "image/vnd.microsoft.icon",
    ".jpeg": "image/jpeg",
    ".jpg": "image/jpeg",
    ".js": "text/javascript; charset=utf-8",
    ".json": "application/json",
    ".mjs": "text/javascript; charset=utf-8",
    ".pdf": "application/pdf",
    ".png": "image/png",
    ".svg": "image/svg+xml",
    ".tif": "image/tiff",
    ".tiff": "image/tiff",
    ".wasm": "application/wasm",
    ".webp": "image/webp",
    ".xml": "text/xml; charset=utf-8",
}


def file_extension(filename: str) -> str:
    """Return the final extension of filename including the dot, or ''."""
    return PurePosixPath(filename.replace("\\", "/")).suffix


def infer_content_type(filename: str) -> str:
    """Infer a MIME type from the filename extension.

    Unknown or missing extensions yield an empty string.
    """
    ext = file_extension(filename)
    if not ext:
        return ""
    return EXTENSION_TYPES.get(ext, EXTENSION_TYPES.get(ext.lower(), ""))
