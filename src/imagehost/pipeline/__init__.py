"""Upload pipeline."""

from imagehost.pipeline.core import (
    RequestContext,
    UploadedFile,
    UploadPipeline,
    encode_image_info,
    extract_file,
    read_image,
)

__all__ = [
    "RequestContext",
    "UploadPipeline",
    "UploadedFile",
    "encode_image_info",
    "extract_file",
    "read_image",
]
