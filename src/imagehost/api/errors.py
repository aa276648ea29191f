"""API error mapping.

Upload and page failures are returned as plain text; every other error
uses the canonical JSON envelope.
"""

from __future__ import annotations

import logging
from enum import StrEnum
from typing import Any

from fastapi import FastAPI, status
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import BaseModel
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.requests import Request

from imagehost.errors import UploadPipelineError

logger = logging.getLogger(__name__)


class APIErrorCode(StrEnum):
    """Stable API error codes for non-2xx JSON responses."""

    APP_NOT_INITIALIZED = "APP_NOT_INITIALIZED"
    BAD_REQUEST = "BAD_REQUEST"
    NOT_FOUND = "NOT_FOUND"
    METHOD_NOT_ALLOWED = "METHOD_NOT_ALLOWED"
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"
    INTERNAL_SERVER_ERROR = "INTERNAL_SERVER_ERROR"
    HTTP_ERROR = "HTTP_ERROR"


_STATUS_TO_DEFAULT_CODE: dict[int, APIErrorCode] = {
    status.HTTP_400_BAD_REQUEST: APIErrorCode.BAD_REQUEST,
    status.HTTP_404_NOT_FOUND: APIErrorCode.NOT_FOUND,
    status.HTTP_405_METHOD_NOT_ALLOWED: APIErrorCode.METHOD_NOT_ALLOWED,
    status.HTTP_503_SERVICE_UNAVAILABLE: APIErrorCode.SERVICE_UNAVAILABLE,
}


class APIErrorResponse(BaseModel):
    """Canonical error envelope returned by JSON API routes."""

    detail: str
    error_code: str


class APIError(RuntimeError):
    """Typed API exception mapped to the canonical error envelope."""

    def __init__(
        self,
        detail: str,
        *,
        status_code: int,
        error_code: str | APIErrorCode,
        headers: dict[str, str] | None = None,
    ) -> None:
        super().__init__(detail)
        self.status_code = status_code
        if isinstance(error_code, APIErrorCode):
            self.error_code = error_code.value
        else:
            self.error_code = error_code
        self.headers = headers


class PlainTextError(RuntimeError):
    """Error rendered as a plain-text body, e.g. a failed page render."""

    def __init__(
        self, detail: str, *, status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    ) -> None:
        super().__init__(detail)
        self.status_code = status_code


def _default_error_code_for_status(status_code: int) -> str:
    return _STATUS_TO_DEFAULT_CODE.get(status_code, APIErrorCode.HTTP_ERROR).value


def _error_payload(detail: str, error_code: str) -> dict[str, Any]:
    return APIErrorResponse(detail=detail, error_code=error_code).model_dump(mode="json")


def register_exception_handlers(app: FastAPI) -> None:
    """Register API error handlers."""

    @app.exception_handler(UploadPipelineError)
    async def _upload_error_handler(
        request: Request, exc: UploadPipelineError
    ) -> PlainTextResponse:
        logger.info(
            "Upload failed at stage=%s status=%d path=%s: %s",
            exc.stage,
            exc.status_code,
            request.url.path,
            exc,
        )
        return PlainTextResponse(exc.public_message, status_code=exc.status_code)

    @app.exception_handler(PlainTextError)
    async def _plain_text_error_handler(request: Request, exc: PlainTextError) -> PlainTextResponse:
        _ = request
        return PlainTextResponse(str(exc), status_code=exc.status_code)

    @app.exception_handler(APIError)
    async def _api_error_handler(request: Request, exc: APIError) -> JSONResponse:
        _ = request
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_payload(detail=str(exc), error_code=exc.error_code),
            headers=exc.headers,
        )

    @app.exception_handler(StarletteHTTPException)
    async def _http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        _ = request
        # Also catches fastapi.HTTPException, which subclasses this one.
        detail = str(exc.detail) if exc.detail is not None else "Request failed"
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_payload(detail, _default_error_code_for_status(exc.status_code)),
            headers=exc.headers,
        )

    @app.exception_handler(Exception)
    async def _unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled API exception for path=%s", request.url.path, exc_info=exc)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=_error_payload(
                detail="Internal server error",
                error_code=APIErrorCode.INTERNAL_SERVER_ERROR.value,
            ),
        )
