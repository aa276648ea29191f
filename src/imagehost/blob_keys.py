"""Opaque blob key encoding shared by the built-in platforms.

A blob key wraps a platform-canonical object path (``/gs/<bucket>/<name>``,
``/s3/<bucket>/<key>``, ``/local/<path>``) in a tagged url-safe base64
token. Keys are opaque to clients; only the platform that issued a key
can decode it.
"""

from __future__ import annotations

import base64
import binascii

from imagehost.errors import BlobKeyError
from imagehost.models.image import BlobKey


def encode_blob_key(tag: str, object_uri: str) -> BlobKey:
    """Encode object_uri into a blob key carrying the platform tag."""
    if not object_uri.startswith("/"):
        raise BlobKeyError(f"Object path must be absolute: {object_uri!r}")
    token = base64.urlsafe_b64encode(object_uri.encode("utf-8")).decode("ascii")
    return f"{tag}:{token}"


def decode_blob_key(tag: str, blob_key: BlobKey) -> str:
    """Decode a blob key issued with tag back into its object path."""
    prefix, sep, token = blob_key.partition(":")
    if not sep or prefix != tag or not token:
        raise BlobKeyError(f"Blob key was not issued by platform {tag!r}")
    try:
        object_uri = base64.urlsafe_b64decode(token.encode("ascii")).decode("utf-8")
    except (binascii.Error, UnicodeError, ValueError) as exc:
        raise BlobKeyError("Blob key is malformed") from exc
    if not object_uri.startswith("/"):
        raise BlobKeyError("Blob key is malformed")
    return object_uri


def split_object_uri(scheme: str, object_uri: str) -> tuple[str, str]:
    """Split ``/<scheme>/<bucket>/<name>`` into (bucket, name)."""
    parts = object_uri.lstrip("/").split("/", 2)
    if len(parts) != 3 or parts[0] != scheme or not parts[1] or not parts[2]:
        raise BlobKeyError(f"Not a /{scheme}/<bucket>/<name> path: {object_uri!r}")
    return parts[1], parts[2]
