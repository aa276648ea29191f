"""Local filesystem platform for development and tests."""

from __future__ import annotations

import asyncio
import logging
import os
import tempfile
from pathlib import Path, PurePosixPath
from urllib.parse import quote, urlsplit, urlunsplit

from imagehost.blob_keys import decode_blob_key, encode_blob_key
from imagehost.content_types import infer_content_type
from imagehost.errors import BlobKeyError
from imagehost.interfaces import BlobResolver, ObjectStore, URLResolver
from imagehost.models.config import LocalPlatformConfig
from imagehost.models.image import BlobKey, ServingURLOptions, StoredObject
from imagehost.plugins.registry import PluginType, plugin

logger = logging.getLogger(__name__)

BLOB_KEY_TAG = "encoded_local_file"
URI_PREFIX = "/local/"


@plugin(plugin_type=PluginType.OBJECT_STORE, name="local")
class LocalObjectStore(ObjectStore):
    """Object store backed by a directory on the local filesystem.

    Content types are not persisted; stat re-derives them from the name.
    """

    config_cls = LocalPlatformConfig

    @classmethod
    def create(cls, config: LocalPlatformConfig) -> ObjectStore:
        return cls(config)

    def __init__(self, config: LocalPlatformConfig) -> None:
        self.root = Path(config.root).expanduser().resolve()
        self.root.mkdir(parents=True, exist_ok=True)
        self._shutdown_called = False

    async def write(self, data: bytes, content_type: str, path: str) -> None:
        self._ensure_open()
        dest = self._full_dest_path(path)
        await asyncio.to_thread(self._write_atomic, dest, data)
        logger.debug("Wrote %d bytes to %s (content_type=%r)", len(data), dest, content_type)

    async def stat(self, path: str) -> StoredObject:
        self._ensure_open()
        dest = self._full_dest_path(path)
        st = await asyncio.to_thread(dest.stat)
        name = dest.relative_to(self.root).as_posix()
        return StoredObject(
            name=name,
            size=st.st_size,
            content_type=infer_content_type(name),
            uri=f"{URI_PREFIX}{name}",
        )

    async def exists(self, path: str) -> bool:
        self._ensure_open()
        try:
            dest = self._full_dest_path(path)
        except ValueError:
            return False
        return await asyncio.to_thread(dest.is_file)

    async def delete(self, path: str) -> None:
        self._ensure_open()
        dest = self._full_dest_path(path)
        await asyncio.to_thread(dest.unlink, True)

    async def ping(self) -> bool:
        return self.root.exists() and self.root.is_dir()

    async def shutdown(self, timeout: float | None = None) -> None:
        _ = timeout
        self._shutdown_called = True

    def _ensure_open(self) -> None:
        if self._shutdown_called:
            raise RuntimeError("Object store has been shut down")

    def _full_dest_path(self, path: str) -> Path:
        cleaned = str(path).lstrip("/")
        if not cleaned or "\\" in cleaned:
            raise ValueError(f"Invalid object path: {path}")
        posix = PurePosixPath(cleaned)
        if posix.is_absolute() or ".." in posix.parts:
            raise ValueError(f"Invalid object path: {path}")
        return self.root.joinpath(*posix.parts)

    @staticmethod
    def _write_atomic(dest: Path, data: bytes) -> None:
        dest.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=dest.parent, prefix=f".{dest.name}.", suffix=".part")
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(data)
            os.replace(tmp_name, dest)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise


@plugin(plugin_type=PluginType.BLOB_RESOLVER, name="local")
class LocalBlobResolver(BlobResolver):
    """Issues blob keys for /local/<path> objects."""

    config_cls = LocalPlatformConfig

    @classmethod
    def create(cls, config: LocalPlatformConfig) -> BlobResolver:
        _ = config
        return cls()

    async def resolve(self, object_uri: str) -> BlobKey:
        if not object_uri.startswith(URI_PREFIX) or object_uri == URI_PREFIX:
            raise BlobKeyError(f"Not a local object path: {object_uri!r}")
        return encode_blob_key(BLOB_KEY_TAG, object_uri)


@plugin(plugin_type=PluginType.URL_RESOLVER, name="local")
class LocalURLResolver(URLResolver):
    """Builds URLs under the configured public base URL."""

    config_cls = LocalPlatformConfig

    @classmethod
    def create(cls, config: LocalPlatformConfig) -> URLResolver:
        return cls(config)

    def __init__(self, config: LocalPlatformConfig) -> None:
        self.public_base_url = config.public_base_url.rstrip("/")

    async def serving_url(self, blob_key: BlobKey, options: ServingURLOptions) -> str:
        object_uri = decode_blob_key(BLOB_KEY_TAG, blob_key)
        name = object_uri[len(URI_PREFIX) :]
        if not object_uri.startswith(URI_PREFIX) or not name:
            raise BlobKeyError("Blob key does not reference a local object")

        parts = urlsplit(f"{self.public_base_url}/{quote(name)}")
        scheme = "https" if options.secure else parts.scheme
        return urlunsplit((scheme, parts.netloc, parts.path, "", ""))
