"""Tests for the GCS platform using a fake storage client."""

from __future__ import annotations

import mimetypes
from datetime import timedelta
from typing import Any

import pytest
from google.api_core.exceptions import NotFound, ServiceUnavailable

from imagehost.models.config import GCSPlatformConfig
from imagehost.models.image import ServingURLOptions
from imagehost.plugins.platforms.gcs import GCSBlobResolver, GCSObjectStore, GCSURLResolver


class _FakeBlob:
    def __init__(self, bucket: _FakeBucket, name: str) -> None:
        self._bucket = bucket
        self.name = name
        self.size: int | None = None
        self.content_type: str | None = None

    def upload_from_string(
        self, data: bytes, content_type: str | None = None, retry: Any = "default"
    ) -> None:
        self.size = len(data)
        # Blob._get_content_type: guess from the name, then octet-stream.
        self.content_type = (
            content_type or mimetypes.guess_type(self.name)[0] or "application/octet-stream"
        )
        self._bucket.uploads.append((self.name, data, content_type, retry))
        self._bucket.blobs[self.name] = self

    def exists(self) -> bool:
        return self.name in self._bucket.blobs

    def delete(self) -> None:
        if self.name not in self._bucket.blobs:
            raise NotFound("missing")
        del self._bucket.blobs[self.name]

    def generate_signed_url(self, version: str, expiration: timedelta, method: str) -> str:
        ttl = int(expiration.total_seconds())
        return f"https://signed.test/{self._bucket.name}/{self.name}?v={version}&ttl={ttl}"


class _FakeBucket:
    def __init__(self, name: str) -> None:
        self.name = name
        self.blobs: dict[str, _FakeBlob] = {}
        self.uploads: list[tuple[str, bytes, str | None, Any]] = []
        self.reachable = True

    def blob(self, name: str) -> _FakeBlob:
        return self.blobs.get(name) or _FakeBlob(self, name)

    def get_blob(self, name: str) -> _FakeBlob | None:
        return self.blobs.get(name)

    def exists(self) -> bool:
        if not self.reachable:
            raise ServiceUnavailable("down")
        return True


class _FakeClient:
    def __init__(self) -> None:
        self.buckets: dict[str, _FakeBucket] = {}
        self.closed = False

    def bucket(self, name: str) -> _FakeBucket:
        return self.buckets.setdefault(name, _FakeBucket(name))

    def close(self) -> None:
        self.closed = True


def _config(**overrides: Any) -> GCSPlatformConfig:
    return GCSPlatformConfig(bucket="yourbucketname.appspot.com", **overrides)


class TestGCSObjectStore:
    @pytest.mark.asyncio
    async def test_write_and_stat(self) -> None:
        """Uploads are single-shot and stat reports the /gs/ path."""
        # Given: A store over a fake client
        client = _FakeClient()
        store = GCSObjectStore(_config(), client=client)

        # When: Writing and stat-ing an object
        await store.write(b"jpeg", "image/jpeg", "image/temp/create/cat.jpg")
        stored = await store.stat("image/temp/create/cat.jpg")

        # Then: The upload was not retried and metadata matches
        bucket = client.buckets["yourbucketname.appspot.com"]
        assert bucket.uploads == [("image/temp/create/cat.jpg", b"jpeg", "image/jpeg", None)]
        assert stored.size == 4
        assert stored.content_type == "image/jpeg"
        assert stored.uri == "/gs/yourbucketname.appspot.com/image/temp/create/cat.jpg"

    @pytest.mark.asyncio
    async def test_empty_content_type_gets_storage_default(self) -> None:
        """An empty type is sent as None and GCS stores its default."""
        client = _FakeClient()
        store = GCSObjectStore(_config(), client=client)

        await store.write(b"data", "", "a.unknownext")

        assert client.buckets["yourbucketname.appspot.com"].uploads[0][2] is None
        assert (await store.stat("a.unknownext")).content_type == "application/octet-stream"

    @pytest.mark.asyncio
    async def test_missing_and_delete(self) -> None:
        """Missing objects raise on stat; delete is idempotent."""
        store = GCSObjectStore(_config(), client=_FakeClient())

        with pytest.raises(FileNotFoundError):
            await store.stat("nope.png")
        await store.delete("nope.png")
        assert await store.exists("nope.png") is False

    @pytest.mark.asyncio
    async def test_ping_and_shutdown(self) -> None:
        """ping maps API errors to False; shutdown closes the client."""
        client = _FakeClient()
        store = GCSObjectStore(_config(), client=client)
        assert await store.ping() is True

        client.buckets["yourbucketname.appspot.com"].reachable = False
        assert await store.ping() is False

        await store.shutdown()
        assert client.closed is True


class TestGCSResolvers:
    @pytest.mark.asyncio
    async def test_public_url(self) -> None:
        """Public URLs use the configured host, bucket and quoted name."""
        # Given: A blob key for an object with a space in its name
        blob_key = await GCSBlobResolver().resolve(
            "/gs/yourbucketname.appspot.com/image/temp/create/my cat.jpg"
        )
        resolver = GCSURLResolver(_config())

        # When: Resolving securely and insecurely
        secure = await resolver.serving_url(blob_key, ServingURLOptions(secure=True))
        plain = await resolver.serving_url(blob_key, ServingURLOptions(secure=False))

        # Then: Scheme follows the option
        assert secure == (
            "https://storage.googleapis.com/yourbucketname.appspot.com"
            "/image/temp/create/my%20cat.jpg"
        )
        assert plain.startswith("http://storage.googleapis.com/")

    @pytest.mark.asyncio
    async def test_signed_url(self) -> None:
        """Signed mode returns a v4 signed URL with the configured TTL."""
        blob_key = await GCSBlobResolver().resolve("/gs/yourbucketname.appspot.com/cat.jpg")
        resolver = GCSURLResolver(
            _config(signed_urls=True, signed_url_ttl_s=120), client=_FakeClient()
        )

        url = await resolver.serving_url(blob_key, ServingURLOptions())

        assert url == "https://signed.test/yourbucketname.appspot.com/cat.jpg?v=v4&ttl=120"
