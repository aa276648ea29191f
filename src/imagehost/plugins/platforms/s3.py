"""S3-compatible platform plugin (AWS S3, Cloudflare R2, MinIO)."""

from __future__ import annotations

import asyncio
import logging
import os
from typing import Any
from urllib.parse import quote, urlsplit, urlunsplit

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError

from imagehost.blob_keys import decode_blob_key, encode_blob_key, split_object_uri
from imagehost.interfaces import BlobResolver, ObjectStore, URLResolver
from imagehost.models.config import S3PlatformConfig
from imagehost.models.image import BlobKey, ServingURLOptions, StoredObject
from imagehost.plugins.registry import PluginType, plugin

logger = logging.getLogger(__name__)

BLOB_KEY_TAG = "encoded_s3_object"
URI_SCHEME = "s3"
_MISSING_CODES = {"404", "NoSuchKey", "NotFound"}


def create_client(config: S3PlatformConfig) -> Any:
    """Create an S3 client.

    Credentials come from the env vars named in config; when those are unset
    boto3's default credential chain applies.
    """
    boto_config = BotoConfig(
        signature_version="s3v4",
        # total_max_attempts=1: failed calls are reported, never retried
        retries={"total_max_attempts": 1},
    )
    return boto3.client(
        "s3",
        region_name=config.region,
        endpoint_url=config.endpoint_url,
        aws_access_key_id=os.getenv(config.access_key_id_env) or None,
        aws_secret_access_key=os.getenv(config.secret_access_key_env) or None,
        config=boto_config,
    )


def _is_missing(exc: ClientError) -> bool:
    return str(exc.response.get("Error", {}).get("Code", "")) in _MISSING_CODES


@plugin(plugin_type=PluginType.OBJECT_STORE, name="s3")
class S3ObjectStore(ObjectStore):
    """Object store backed by a single S3 bucket."""

    config_cls = S3PlatformConfig

    @classmethod
    def create(cls, config: S3PlatformConfig) -> ObjectStore:
        return cls(config)

    def __init__(self, config: S3PlatformConfig, client: Any | None = None) -> None:
        self.bucket = config.bucket
        self.cache_control = config.cache_control
        self.client = client if client is not None else create_client(config)
        self._shutdown_called = False

        logger.info("S3ObjectStore initialized: bucket=%s", self.bucket)

    async def write(self, data: bytes, content_type: str, path: str) -> None:
        self._ensure_open()
        params: dict[str, Any] = {"Bucket": self.bucket, "Key": path, "Body": data}
        if content_type:
            params["ContentType"] = content_type
        if self.cache_control:
            params["CacheControl"] = self.cache_control
        await asyncio.to_thread(self.client.put_object, **params)

    async def stat(self, path: str) -> StoredObject:
        self._ensure_open()
        try:
            head = await asyncio.to_thread(self.client.head_object, Bucket=self.bucket, Key=path)
        except ClientError as exc:
            if _is_missing(exc):
                raise FileNotFoundError(f"s3://{self.bucket}/{path} not found") from exc
            raise
        return StoredObject(
            name=path,
            size=int(head.get("ContentLength", 0)),
            content_type=str(head.get("ContentType") or ""),
            uri=f"/{URI_SCHEME}/{self.bucket}/{path}",
        )

    async def exists(self, path: str) -> bool:
        self._ensure_open()
        try:
            await asyncio.to_thread(self.client.head_object, Bucket=self.bucket, Key=path)
        except ClientError as exc:
            if _is_missing(exc):
                return False
            raise
        return True

    async def delete(self, path: str) -> None:
        self._ensure_open()
        await asyncio.to_thread(self.client.delete_object, Bucket=self.bucket, Key=path)

    async def ping(self) -> bool:
        try:
            await asyncio.to_thread(self.client.head_bucket, Bucket=self.bucket)
        except (BotoCoreError, ClientError) as exc:
            logger.warning("S3 ping failed for bucket %s: %s", self.bucket, exc)
            return False
        return True

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


@plugin(plugin_type=PluginType.BLOB_RESOLVER, name="s3")
class S3BlobResolver(BlobResolver):
    """Issues blob keys for /s3/<bucket>/<key> objects."""

    config_cls = S3PlatformConfig

    @classmethod
    def create(cls, config: S3PlatformConfig) -> BlobResolver:
        _ = config
        return cls()

    async def resolve(self, object_uri: str) -> BlobKey:
        split_object_uri(URI_SCHEME, object_uri)
        return encode_blob_key(BLOB_KEY_TAG, object_uri)


@plugin(plugin_type=PluginType.URL_RESOLVER, name="s3")
class S3URLResolver(URLResolver):
    """Resolves blob keys to public-base or presigned S3 URLs."""

    config_cls = S3PlatformConfig

    @classmethod
    def create(cls, config: S3PlatformConfig) -> URLResolver:
        return cls(config)

    def __init__(self, config: S3PlatformConfig, client: Any | None = None) -> None:
        base_url = config.public_base_url
        self.public_base_url = base_url.rstrip("/") if base_url else None
        self.presign_ttl_s = config.presign_ttl_s
        self._config = config
        self._client = client

    async def serving_url(self, blob_key: BlobKey, options: ServingURLOptions) -> str:
        bucket, key = split_object_uri(URI_SCHEME, decode_blob_key(BLOB_KEY_TAG, blob_key))
        if self.public_base_url:
            parts = urlsplit(f"{self.public_base_url}/{quote(key)}")
            scheme = "https" if options.secure else parts.scheme
            return urlunsplit((scheme, parts.netloc, parts.path, "", ""))
        url = await asyncio.to_thread(self._presigned_url, bucket, key)
        if options.secure and not url.startswith("https://"):
            raise ValueError(f"Presigned URL for {key} does not use secure transport")
        return url

    def _presigned_url(self, bucket: str, key: str) -> str:
        if self._client is None:
            self._client = create_client(self._config)
        return str(
            self._client.generate_presigned_url(
                "get_object",
                Params={"Bucket": bucket, "Key": key},
                ExpiresIn=self.presign_ttl_s,
            )
        )
