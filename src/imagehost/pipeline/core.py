"""UploadPipeline orchestrator - upload, store and resolve a servable URL."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from imagehost import __version__
from imagehost.content_types import infer_content_type
from imagehost.errors import (
    BadRequestError,
    BlobResolveError,
    InternalError,
    ResponseEncodeError,
    ServingUrlError,
    StoreStatError,
    StoreWriteError,
)
from imagehost.models.config import UploadConfig
from imagehost.models.image import (
    BlobKey,
    ImageBytes,
    ImageInfo,
    ServingURLOptions,
    StoredObject,
    StoredObjectRef,
)
from imagehost.storage_paths import build_upload_path, sanitize_filename

if TYPE_CHECKING:
    from imagehost.interfaces import BlobResolver, ObjectStore, URLResolver

logger = logging.getLogger(__name__)


@runtime_checkable
class UploadedFile(Protocol):
    """A file part of a multipart form (e.g. starlette's UploadFile)."""

    filename: str | None

    async def read(self, size: int = -1) -> bytes: ...


@dataclass(frozen=True)
class RequestContext:
    """Request-scoped values passed explicitly through every pipeline step."""

    request_id: str
    upload: UploadConfig
    version: str = __version__
    log_extra: dict[str, Any] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "log_extra", {"request_id": self.request_id})


def extract_file(ctx: RequestContext, form: Mapping[str, Any]) -> UploadedFile:
    """Return the uploaded file part named by the configured form field."""
    field_name = ctx.upload.form_field
    value = form.get(field_name)
    if value is None:
        raise BadRequestError(f"Form field {field_name!r} is missing", stage="extract")
    if isinstance(value, str) or not isinstance(value, UploadedFile):
        raise BadRequestError(f"Form field {field_name!r} is not a file", stage="extract")
    if not value.filename:
        raise BadRequestError(f"Form field {field_name!r} has no filename", stage="extract")
    return value


async def read_image(ctx: RequestContext, upload: UploadedFile) -> ImageBytes:
    """Buffer the upload fully and infer its content type."""
    filename = upload.filename or ""
    try:
        data = await upload.read()
    except Exception as exc:
        logger.error("Failed to read uploaded image: %s", exc, extra=ctx.log_extra)
        raise BadRequestError(
            f"Failed to read uploaded image {filename!r}",
            stage="read",
            filename=filename,
            cause=exc,
        ) from exc
    # Match the type to the name the object is stored under.
    content_type = infer_content_type(sanitize_filename(filename))
    return ImageBytes(filename=filename, data=bytes(data), content_type=content_type)


def encode_image_info(info: ImageInfo, filename: str | None = None) -> bytes:
    """Serialize image info as ``{"Key": ..., "Url": ...}``."""
    try:
        return info.model_dump_json(by_alias=True).encode("utf-8")
    except Exception as exc:
        raise ResponseEncodeError(filename, exc) from exc


class UploadPipeline:
    """Runs one upload through store, blob key and URL resolution.

    Steps are strictly sequential and every failure aborts the rest. There
    are no retries; bytes already written are left in place unless
    cleanup_orphans is enabled.
    """

    def __init__(
        self,
        store: ObjectStore,
        blob_resolver: BlobResolver,
        url_resolver: URLResolver,
    ) -> None:
        self._store = store
        self._blob_resolver = blob_resolver
        self._url_resolver = url_resolver

    async def handle_upload(self, ctx: RequestContext, form: Mapping[str, Any]) -> ImageInfo:
        """Process a submitted form and return the stored image's info.

        Raises:
            BadRequestError: The upload is missing or unreadable.
            InternalError: A store or resolver step failed.
        """
        upload = extract_file(ctx, form)
        image = await read_image(ctx, upload)
        return await self.store_image(ctx, image)

    async def store_image(self, ctx: RequestContext, image: ImageBytes) -> ImageInfo:
        """Persist buffered image bytes and resolve a servable URL."""
        logger.info(
            "ImageHost upload handler running version %s", ctx.version, extra=ctx.log_extra
        )
        ref = await self._persist(ctx, image)
        try:
            stored = await self._stat(ctx, image, ref)
            blob_key = await self._resolve_blob_key(ctx, image, stored)
            url = await self._resolve_url(ctx, image, blob_key)
        except InternalError:
            await self._report_orphan(ctx, ref)
            raise

        logger.info("Resolved image url for %s: %s", ref.path, url, extra=ctx.log_extra)
        return ImageInfo(key=blob_key, url=url)

    async def _persist(self, ctx: RequestContext, image: ImageBytes) -> StoredObjectRef:
        try:
            path = build_upload_path(image.filename, ctx.upload)
        except ValueError as exc:
            raise BadRequestError(
                f"Invalid upload filename {image.filename!r}",
                stage="extract",
                filename=image.filename,
                cause=exc,
            ) from exc

        logger.info(
            "file: %s, size: %d, MIME: %s, path: %s",
            image.filename,
            image.size,
            image.content_type,
            path,
            extra=ctx.log_extra,
        )
        if ctx.upload.warn_on_overwrite:
            await self._warn_if_overwriting(ctx, path)

        try:
            await self._store.write(image.data, image.content_type, path)
        except Exception as exc:
            logger.error("Failed to upload image: %s", exc, extra=ctx.log_extra)
            raise StoreWriteError(image.filename, path, exc) from exc
        return StoredObjectRef(path=path, content_type=image.content_type)

    async def _warn_if_overwriting(self, ctx: RequestContext, path: str) -> None:
        try:
            existing = await self._store.exists(path)
        except Exception as exc:
            logger.warning("Overwrite check failed for %s: %s", path, exc, extra=ctx.log_extra)
            return
        if existing:
            logger.warning(
                "Upload replaces existing object at %s", path, extra=ctx.log_extra
            )

    async def _stat(
        self, ctx: RequestContext, image: ImageBytes, ref: StoredObjectRef
    ) -> StoredObject:
        try:
            return await self._store.stat(ref.path)
        except Exception as exc:
            logger.error("Failed to stat object: %s", exc, extra=ctx.log_extra)
            raise StoreStatError(image.filename, ref.path, exc) from exc

    async def _resolve_blob_key(
        self, ctx: RequestContext, image: ImageBytes, stored: StoredObject
    ) -> BlobKey:
        logger.info("Getting blob key from path: %s", stored.uri, extra=ctx.log_extra)
        try:
            return await self._blob_resolver.resolve(stored.uri)
        except Exception as exc:
            logger.error("Failed to get image blob key: %s", exc, extra=ctx.log_extra)
            raise BlobResolveError(image.filename, stored.uri, exc) from exc

    async def _resolve_url(self, ctx: RequestContext, image: ImageBytes, blob_key: BlobKey) -> str:
        options = ServingURLOptions(secure=ctx.upload.secure_urls)
        try:
            return await self._url_resolver.serving_url(blob_key, options)
        except Exception as exc:
            logger.error("Failed to get image url: %s", exc, extra=ctx.log_extra)
            raise ServingUrlError(image.filename, blob_key, exc) from exc

    async def _report_orphan(self, ctx: RequestContext, ref: StoredObjectRef) -> None:
        if not ctx.upload.cleanup_orphans:
            logger.warning(
                "Object left orphaned after failed upload: %s", ref.path, extra=ctx.log_extra
            )
            return
        try:
            await self._store.delete(ref.path)
        except Exception as exc:
            logger.warning(
                "Failed to delete orphaned object %s: %s", ref.path, exc, extra=ctx.log_extra
            )
            return
        logger.info(
            "Deleted orphaned object after failed upload: %s", ref.path, extra=ctx.log_extra
        )
