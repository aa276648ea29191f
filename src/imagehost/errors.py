"""Error hierarchy for ImageHost upload pipeline stages."""

from __future__ import annotations


class UploadPipelineError(Exception):
    """Base exception for all upload pipeline errors.

    Carries the stage that failed and the uploaded filename. Preserves the
    underlying error via exception chaining.
    """

    status_code = 500
    public_message = "Internal server error"

    def __init__(
        self, message: str, stage: str, filename: str | None, cause: Exception | None = None
    ) -> None:
        super().__init__(message)
        self.stage = stage
        self.filename = filename
        self.cause = cause
        self.__cause__ = cause  # Python's exception chaining


class BadRequestError(UploadPipelineError):
    """Client-supplied upload is missing or unreadable."""

    status_code = 400
    public_message = "Failed to get uploaded image"

    def __init__(
        self,
        message: str,
        *,
        stage: str,
        filename: str | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message, stage=stage, filename=filename, cause=cause)


class InternalError(UploadPipelineError):
    """A collaborator or response step failed after the upload was accepted."""

    status_code = 500


class StoreWriteError(InternalError):
    """Object store write or finalize failed."""

    public_message = "Failed to upload image"

    def __init__(self, filename: str, path: str, cause: Exception) -> None:
        super().__init__(
            f"Store write failed for {path}", stage="persist", filename=filename, cause=cause
        )
        self.path = path


class StoreStatError(InternalError):
    """Object store could not report the persisted object."""

    public_message = "Failed to resolve uploaded image"

    def __init__(self, filename: str, path: str, cause: Exception) -> None:
        super().__init__(
            f"Store stat failed for {path}", stage="stat", filename=filename, cause=cause
        )
        self.path = path


class BlobResolveError(InternalError):
    """Blob key resolution failed."""

    public_message = "Failed to get image blob key"

    def __init__(self, filename: str, object_uri: str, cause: Exception) -> None:
        super().__init__(
            f"Blob key resolution failed for {object_uri}",
            stage="blob_key",
            filename=filename,
            cause=cause,
        )
        self.object_uri = object_uri


class ServingUrlError(InternalError):
    """Serving URL resolution failed."""

    public_message = "Failed to get image url"

    def __init__(self, filename: str, blob_key: str, cause: Exception) -> None:
        super().__init__(
            f"Serving URL resolution failed for {filename}",
            stage="serving_url",
            filename=filename,
            cause=cause,
        )
        self.blob_key = blob_key


class ResponseEncodeError(InternalError):
    """Image info could not be serialized."""

    def __init__(self, filename: str | None, cause: Exception) -> None:
        super().__init__(
            f"Response encoding failed for {filename}",
            stage="respond",
            filename=filename,
            cause=cause,
        )


class BlobKeyError(ValueError):
    """Blob key is malformed or belongs to another platform."""
