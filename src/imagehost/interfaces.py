"""Interface definitions for ImageHost platform collaborators."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from imagehost.models.image import BlobKey, ServingURLOptions, StoredObject


class Shutdownable(ABC):
    """Async shutdown interface for managed components."""

    @abstractmethod
    async def shutdown(self, timeout: float | None = None) -> None:
        """Release resources and close client connections."""
        raise NotImplementedError


class ObjectStore(Shutdownable, ABC):
    """Persists uploaded bytes under a path and reports their metadata."""

    @abstractmethod
    async def write(self, data: bytes, content_type: str, path: str) -> None:
        """Write and finalize an object.

        Same path silently replaces prior content. An empty content_type
        sends no type and the backend picks its default: GCS guesses from
        the object name and falls back to ``application/octet-stream``, S3
        stores ``binary/octet-stream``. The local store keeps no type at
        all and ``stat`` re-infers it from the name, which may give "".
        """
        raise NotImplementedError

    @abstractmethod
    async def stat(self, path: str) -> StoredObject:
        """Return metadata for a stored object. Raises if it does not exist."""
        raise NotImplementedError

    @abstractmethod
    async def exists(self, path: str) -> bool:
        """Check if an object exists at path."""
        raise NotImplementedError

    @abstractmethod
    async def delete(self, path: str) -> None:
        """Delete an object.

        Must be idempotent: deleting a missing object should succeed.
        """
        raise NotImplementedError

    @abstractmethod
    async def ping(self) -> bool:
        """Health check. Returns True if the store is reachable."""
        raise NotImplementedError


class BlobResolver(ABC):
    """Converts a canonical stored-object path into a blob key."""

    @abstractmethod
    async def resolve(self, object_uri: str) -> BlobKey:
        """Return an opaque blob key for the object at object_uri."""
        raise NotImplementedError


class URLResolver(ABC):
    """Produces servable URLs for blob keys."""

    @abstractmethod
    async def serving_url(self, blob_key: BlobKey, options: ServingURLOptions) -> str:
        """Return a URL through which the blob can be fetched directly."""
        raise NotImplementedError
