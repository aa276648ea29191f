"""Image upload data models."""

from __future__ import annotations

from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict, Field

BlobKey = str


@dataclass(frozen=True)
class ImageBytes:
    """Fully buffered upload content plus its inferred MIME type."""

    filename: str
    data: bytes
    content_type: str

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass(frozen=True)
class StoredObjectRef:
    """Path under which bytes were persisted."""

    path: str
    content_type: str


class StoredObject(BaseModel):
    """Object metadata reported by an object store."""

    name: str
    size: int
    content_type: str = ""
    # Platform-canonical object path, e.g. /gs/<bucket>/<name>
    uri: str


class ServingURLOptions(BaseModel):
    """Options passed to a URL resolver."""

    secure: bool = True


class ImageInfo(BaseModel):
    """Information about a served image (response payload)."""

    model_config = ConfigDict(populate_by_name=True)

    key: BlobKey = Field(alias="Key")
    url: str = Field(alias="Url")
