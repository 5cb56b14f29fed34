"""oidstore API error handling.

Every failure is rendered as the same JSON envelope:
    {"code": str, "message": str, "details": dict | None, "request_id": str}
with the request ID also returned in the X-Request-Id header. Payload bytes
and backend causes never appear in it.

Global exception handlers:
- OidStoreHttpError: Gateway-level errors with structured envelope
- ObjectStorageError: Store outcomes mapped to HTTP statuses
- HTTPException: FastAPI/Starlette HTTP exceptions
- RequestValidationError: Pydantic validation errors
- Exception: Catch-all for unhandled exceptions (no stack traces)
"""

import logging
import uuid
from typing import Any, Final

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from oidstore.api.middleware.request_id import REQUEST_ID_HEADER
from oidstore.storage.errors import (
    DuplicateObjectError,
    InvalidRepositoryError,
    ObjectNotFoundError,
    ObjectStorageError,
    PathTraversalError,
    StorageBackendError,
)

logger = logging.getLogger(__name__)


class OidStoreHttpError(Exception):
    """Gateway-level HTTP error with structured error envelope.

    Attributes:
        status_code: HTTP status code (e.g., 400, 503).
        code: Machine-readable error code (e.g., "SERVICE_UNAVAILABLE").
        message: Human-readable error message.
        details: Optional dict with additional error context.
    """

    def __init__(
        self,
        status_code: int,
        code: str,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.code = code
        self.message = message
        self.details = details


# Most specific first; PathTraversalError can only come from a bad address.
STORAGE_ERROR_STATUS: tuple[tuple[type[ObjectStorageError], int, str], ...] = (
    (InvalidRepositoryError, 400, "INVALID_REPOSITORY"),
    (DuplicateObjectError, 400, "DUPLICATE_OBJECT"),
    (ObjectNotFoundError, 404, "NOT_FOUND"),
    (PathTraversalError, 404, "NOT_FOUND"),
    (StorageBackendError, 503, "STORAGE_UNAVAILABLE"),
)


def map_storage_error(exc: ObjectStorageError) -> tuple[int, str]:
    """Return (http_status, error_code) for a storage error."""
    for error_type, status_code, code in STORAGE_ERROR_STATUS:
        if isinstance(exc, error_type):
            return status_code, code
    return 500, "INTERNAL_ERROR"


# Statuses this gateway produces without a more specific code.
ERROR_CODE_BY_STATUS: Final[dict[int, str]] = {
    400: "BAD_REQUEST",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    422: "REQUEST_VALIDATION_FAILED",
    500: "INTERNAL_ERROR",
    503: "SERVICE_UNAVAILABLE",
}


def get_error_code_for_status(status_code: int) -> str:
    return ERROR_CODE_BY_STATUS.get(status_code, "ERROR")


def error_response(
    request: Request,
    *,
    code: str,
    message: str,
    status_code: int,
    details: dict[str, Any] | None = None,
) -> JSONResponse:
    """Render the error envelope for a request.

    The request ID normally comes from RequestIdMiddleware via request.state.
    A fresh one is minted only if the middleware never ran.
    """
    request_id = getattr(request.state, "request_id", None) or str(uuid.uuid4())
    body = {"code": code, "message": message, "details": details, "request_id": request_id}
    return JSONResponse(
        status_code=status_code, content=body, headers={REQUEST_ID_HEADER: request_id}
    )


async def oidstore_http_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """FastAPI exception handler for OidStoreHttpError."""
    assert isinstance(exc, OidStoreHttpError)

    return error_response(
        request,
        code=exc.code,
        message=exc.message,
        status_code=exc.status_code,
        details=exc.details,
    )


async def object_storage_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """FastAPI exception handler for ObjectStorageError.

    Duplicates carry the oid in details so clients can treat them as
    "already stored". Backend failures never expose the underlying cause.
    """
    assert isinstance(exc, ObjectStorageError)

    status_code, code = map_storage_error(exc)
    details: dict[str, Any] | None = None

    if isinstance(exc, DuplicateObjectError):
        details = {"oid": exc.oid}
        message = exc.message
    elif isinstance(exc, StorageBackendError):
        logger.error("Storage backend failure: %s", exc)
        message = "Storage backend unavailable"
    elif isinstance(exc, PathTraversalError):
        message = "Object not found"
    else:
        message = exc.message

    return error_response(
        request,
        code=code,
        message=message,
        status_code=status_code,
        details=details,
    )


async def http_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """FastAPI exception handler for HTTPException.

    Maps standard HTTP exceptions (including router 404/405) to the envelope.
    """
    assert isinstance(exc, StarletteHTTPException)

    code = get_error_code_for_status(exc.status_code)
    message = str(exc.detail) if exc.detail else f"HTTP {exc.status_code}"

    return error_response(
        request,
        code=code,
        message=message,
        status_code=exc.status_code,
        details=None,
    )


async def request_validation_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """FastAPI exception handler for RequestValidationError.

    Does not expose raw validation internals.
    """
    assert isinstance(exc, RequestValidationError)

    safe_details: list[dict[str, Any]] = []
    for error in exc.errors():
        loc = error.get("loc", ())
        safe_loc = [str(part) for part in loc if part not in ("body", "query", "path")]
        safe_details.append(
            {
                "field": ".".join(safe_loc) if safe_loc else "request",
                "message": error.get("msg", "Validation error"),
            }
        )

    return error_response(
        request,
        code="REQUEST_VALIDATION_FAILED",
        message="Request validation failed",
        status_code=422,
        details={"errors": safe_details} if safe_details else None,
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all exception handler for unhandled exceptions.

    Returns 500 with a generic message and logs the exception.
    """
    logger.exception("Unhandled exception: %s", type(exc).__name__)

    return error_response(
        request,
        code="INTERNAL_ERROR",
        message="An internal error occurred",
        status_code=500,
        details=None,
    )
