"""Data models for ImageHost."""

from imagehost.models.config import (
    Config,
    GCSPlatformConfig,
    LocalPlatformConfig,
    PlatformConfig,
    S3PlatformConfig,
    ServerConfig,
    UIConfig,
    UploadConfig,
)
from imagehost.models.image import (
    BlobKey,
    ImageBytes,
    ImageInfo,
    ServingURLOptions,
    StoredObject,
    StoredObjectRef,
)

__all__ = [
    "BlobKey",
    "Config",
    "GCSPlatformConfig",
    "ImageBytes",
    "ImageInfo",
    "LocalPlatformConfig",
    "PlatformConfig",
    "S3PlatformConfig",
    "ServerConfig",
    "ServingURLOptions",
    "StoredObject",
    "StoredObjectRef",
    "UIConfig",
    "UploadConfig",
]
