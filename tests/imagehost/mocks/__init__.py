"""Mock implementations for testing."""

from tests.imagehost.mocks.blob_resolver import MockBlobResolver
from tests.imagehost.mocks.object_store import MockObjectStore
from tests.imagehost.mocks.url_resolver import MockURLResolver

__all__ = [
    "MockBlobResolver",
    "MockObjectStore",
    "MockURLResolver",
]
