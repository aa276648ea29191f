"""Google Cloud Storage platform plugin."""

from __future__ import annotations

import asyncio
import logging
import os
from datetime import timedelta
from typing import Any
from urllib.parse import quote

from google.api_core.exceptions import GoogleAPIError, NotFound
from google.cloud import storage

from imagehost.blob_keys import decode_blob_key, encode_blob_key, split_object_uri
from imagehost.interfaces import BlobResolver, ObjectStore, URLResolver
from imagehost.models.config import GCSPlatformConfig
from imagehost.models.image import BlobKey, ServingURLOptions, StoredObject
from imagehost.plugins.registry import PluginType, plugin

logger = logging.getLogger(__name__)

BLOB_KEY_TAG = "encoded_gs_file"
URI_SCHEME = "gs"


def create_client(config: GCSPlatformConfig) -> storage.Client:
    """Create a storage client.

    Uses the service account file named by credentials_env when set,
    otherwise Application Default Credentials.
    """
    credentials_path = os.getenv(config.credentials_env)
    if credentials_path:
        logger.info("Using GCS service account credentials from %s", config.credentials_env)
        return storage.Client.from_service_account_json(credentials_path, project=config.project)
    logger.info("Using GCS application default credentials")
    return storage.Client(project=config.project)


@plugin(plugin_type=PluginType.OBJECT_STORE, name="gcs")
class GCSObjectStore(ObjectStore):
    """Object store backed by a single GCS bucket."""

    config_cls = GCSPlatformConfig

    @classmethod
    def create(cls, config: GCSPlatformConfig) -> ObjectStore:
        return cls(config)

    def __init__(self, config: GCSPlatformConfig, client: Any | None = None) -> None:
        self.bucket_name = config.bucket
        self.client = client if client is not None else create_client(config)
        self._bucket = self.client.bucket(self.bucket_name)
        self._shutdown_called = False

        logger.info("GCSObjectStore initialized: bucket=%s", self.bucket_name)

    async def write(self, data: bytes, content_type: str, path: str) -> None:
        self._ensure_open()
        await asyncio.to_thread(self._upload, data, content_type, path)

    def _upload(self, data: bytes, content_type: str, path: str) -> None:
        blob = self._bucket.blob(path)
        # retry=None: a failed upload is reported, never retried
        blob.upload_from_string(data, content_type=content_type or None, retry=None)

    async def stat(self, path: str) -> StoredObject:
        self._ensure_open()
        blob = await asyncio.to_thread(self._bucket.get_blob, path)
        if blob is None:
            raise FileNotFoundError(f"gs://{self.bucket_name}/{path} not found")
        return StoredObject(
            name=blob.name,
            size=blob.size or 0,
            content_type=blob.content_type or "",
            uri=f"/{URI_SCHEME}/{self.bucket_name}/{blob.name}",
        )

    async def exists(self, path: str) -> bool:
        self._ensure_open()
        return bool(await asyncio.to_thread(self._bucket.blob(path).exists))

    async def delete(self, path: str) -> None:
        self._ensure_open()
        try:
            await asyncio.to_thread(self._bucket.blob(path).delete)
        except NotFound:
            return

    async def ping(self) -> bool:
        try:
            return bool(await asyncio.to_thread(self._bucket.exists))
        except GoogleAPIError as exc:
            logger.warning("GCS ping failed for bucket %s: %s", self.bucket_name, exc)
            return False

    async def shutdown(self, timeout: float | None = None) -> None:
        _ = timeout
        if self._shutdown_called:
            return
        self._shutdown_called = True
        close = getattr(self.client, "close", None)
        if callable(close):
            await asyncio.to_thread(close)

    def _ensure_open(self) -> None:
        if self._shutdown_called:
            raise RuntimeError("Object store has been shut down")


@plugin(plugin_type=PluginType.BLOB_RESOLVER, name="gcs")
class GCSBlobResolver(BlobResolver):
    """Issues blob keys for /gs/<bucket>/<name> objects."""

    config_cls = GCSPlatformConfig

    @classmethod
    def create(cls, config: GCSPlatformConfig) -> BlobResolver:
        _ = config
        return cls()

    async def resolve(self, object_uri: str) -> BlobKey:
        split_object_uri(URI_SCHEME, object_uri)
        return encode_blob_key(BLOB_KEY_TAG, object_uri)


@plugin(plugin_type=PluginType.URL_RESOLVER, name="gcs")
class GCSURLResolver(URLResolver):
    """Resolves blob keys to public or V4-signed GCS URLs."""

    config_cls = GCSPlatformConfig

    @classmethod
    def create(cls, config: GCSPlatformConfig) -> URLResolver:
        return cls(config)

    def __init__(self, config: GCSPlatformConfig, client: Any | None = None) -> None:
        self.public_host = config.public_host.strip("/")
        self.signed_urls = config.signed_urls
        self.signed_url_ttl = timedelta(seconds=config.signed_url_ttl_s)
        self._config = config
        self._client = client

    async def serving_url(self, blob_key: BlobKey, options: ServingURLOptions) -> str:
        bucket, name = split_object_uri(URI_SCHEME, decode_blob_key(BLOB_KEY_TAG, blob_key))
        if self.signed_urls:
            return await asyncio.to_thread(self._signed_url, bucket, name, options)
        scheme = "https" if options.secure else "http"
        return f"{scheme}://{self.public_host}/{bucket}/{quote(name)}"

    def _signed_url(self, bucket: str, name: str, options: ServingURLOptions) -> str:
        if self._client is None:
            self._client = create_client(self._config)
        url = self._client.bucket(bucket).blob(name).generate_signed_url(
            version="v4",
            expiration=self.signed_url_ttl,
            method="GET",
        )
        if options.secure and not url.startswith("https://"):
            raise ValueError(f"Signed URL for {name} does not use secure transport")
        return str(url)
