"""ImageHost image upload service."""

__version__ = "0.1.0"

# Export commonly used types
from imagehost.errors import BadRequestError, InternalError, UploadPipelineError
from imagehost.models.image import BlobKey, ImageInfo, StoredObject

__all__ = [
    "BadRequestError",
    "BlobKey",
    "ImageInfo",
    "InternalError",
    "StoredObject",
    "UploadPipelineError",
    "__version__",
]
