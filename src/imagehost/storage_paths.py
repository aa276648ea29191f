"""Helpers for building object store destination paths."""

from __future__ import annotations

from pathlib import PurePosixPath

from imagehost.models.config import UploadConfig


def sanitize_filename(value: str) -> str:
    """Return the single path segment a client filename is stored under."""
    cleaned = value.strip().replace("/", "_").replace("\\", "_")
    if cleaned in ("", ".", ".."):
        return "unknown"
    return cleaned


def _normalize_dest_path(path: PurePosixPath) -> str:
    if path.is_absolute():
        raise ValueError(f"dest_path must be relative, got {path}")
    for part in path.parts:
        if part in ("", ".", ".."):
            raise ValueError(f"dest_path contains invalid segment: {path}")
    return str(path)


def build_upload_path(filename: str, upload_cfg: UploadConfig) -> str:
    """Build the temporary upload path for a filename.

    The path is deterministic: the same filename always maps to the same
    object, so a second upload replaces the first.
    """
    segment = sanitize_filename(filename)
    path = PurePosixPath(upload_cfg.temp_prefix, upload_cfg.create_subdir, segment)
    return _normalize_dest_path(path)
