"""Error types raised by the poll service and their HTTP mapping.

Services raise ``APIError`` subclasses; ``register_exception_handlers``
turns them into ``ErrorResponse`` JSON bodies. Request payloads that
fail model validation come back as 400 ``validation_error`` rather than
FastAPI's 422 field dump.
"""

import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from starlette.exceptions import HTTPException

logger = logging.getLogger(__name__)


class ErrorResponse(BaseModel):
    """Standard error response model."""

    error: str
    detail: str | None = None
    error_code: str | None = None
    context: dict[str, Any] | None = None


class APIError(Exception):
    """Base class for API errors."""

    status_code: int = 500
    error: str = "internal_error"
    detail: str = "An unexpected error occurred"
    # Context is logged but not sent to clients when False.
    expose_context: bool = True

    def __init__(
        self,
        detail: str | None = None,
        error_code: str | None = None,
        **context: Any,
    ) -> None:
        self.detail = detail or self.__class__.detail
        self.error_code = error_code
        self.context = context if context else None
        super().__init__(self.detail)

    def to_response(self) -> ErrorResponse:
        """Convert exception to error response model."""
        return ErrorResponse(
            error=self.error,
            detail=self.detail,
            error_code=self.error_code,
            context=self.context if self.expose_context else None,
        )


class NotFoundError(APIError):
    """Resource not found error (404)."""

    status_code = 404
    error = "not_found"
    detail = "Resource not found"


class ValidationError(APIError):
    """Malformed or inconsistent request data (400)."""

    status_code = 400
    error = "validation_error"
    detail = "Invalid request data"


class StorageError(APIError):
    """Persistence failure (500). The cause is logged, never returned."""

    status_code = 500
    error = "storage_error"
    detail = "Storage operation failed"
    expose_context = False


class ShareIdCollisionError(StorageError):
    """A generated share id already exists."""

    detail = "Share id already in use"


async def api_error_handler(request: Request, exc: APIError) -> JSONResponse:
    """Handle custom API errors."""
    if exc.status_code >= 500:
        logger.error(
            "API error: %s (status=%d, path=%s, context=%s)",
            exc.detail,
            exc.status_code,
            request.url.path,
            exc.context,
            exc_info=exc.__cause__,
        )
    else:
        logger.warning(
            "API error: %s (status=%d, path=%s)",
            exc.detail,
            exc.status_code,
            request.url.path,
        )
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_response().model_dump(exclude_none=True),
    )


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report payload validation failures as 400 without field-level detail."""
    logger.warning(
        "Invalid request data (path=%s, errors=%d)",
        request.url.path,
        len(exc.errors()),
    )
    return JSONResponse(
        status_code=400,
        content=ErrorResponse(
            error="validation_error",
            detail=ValidationError.detail,
        ).model_dump(exclude_none=True),
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Handle FastAPI HTTPExceptions with standard format."""
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(
            error=_status_to_error_type(exc.status_code),
            detail=str(exc.detail),
        ).model_dump(exclude_none=True),
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle uncaught exceptions."""
    logger.exception("Unhandled exception: %s (path=%s)", exc, request.url.path)
    return JSONResponse(
        status_code=500,
        content=ErrorResponse(
            error="internal_error",
            detail="An unexpected error occurred",
        ).model_dump(exclude_none=True),
    )


def _status_to_error_type(status_code: int) -> str:
    """Map HTTP status code to error type string."""
    mapping = {
        400: "bad_request",
        404: "not_found",
        405: "method_not_allowed",
        409: "conflict",
        422: "validation_error",
        500: "internal_error",
        503: "service_unavailable",
    }
    return mapping.get(status_code, "error")


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI app."""
    app.add_exception_handler(APIError, api_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)
