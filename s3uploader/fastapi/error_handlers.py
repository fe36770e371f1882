"""FastAPI error handlers for s3uploader exceptions.

This module converts s3uploader exceptions into JSON responses, using the
same classification the CLI uses for its messages.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from s3uploader.core.exceptions import (
    AuthenticationError,
    BucketNotFoundError,
    ConfigurationError,
    LocalIOError,
    ObjectNotFoundError,
    SizeLimitExceededError,
    StorageError,
    StorageValidationError,
    TransportError,
)

logger = logging.getLogger(__name__)


def error_status(exc: StorageError) -> tuple[int, str]:
    """Return the HTTP status code and error type for an exception."""
    if isinstance(exc, StorageValidationError):
        return 400, "validation_error"
    if isinstance(exc, AuthenticationError):
        return 401, "authentication_error"
    if isinstance(exc, ObjectNotFoundError):
        return 404, "not_found"
    if isinstance(exc, SizeLimitExceededError):
        return 413, "size_limit_exceeded"
    if isinstance(exc, BucketNotFoundError):
        return 503, "bucket_not_found"
    if isinstance(exc, TransportError):
        return 502, "transport_error"
    if isinstance(exc, ConfigurationError):
        return 500, "configuration_error"
    if isinstance(exc, LocalIOError):
        return 500, "io_error"
    return 500, "internal_error"


async def storage_exception_handler(
    request: Request,
    exc: StorageError
) -> JSONResponse:
    """Handle s3uploader exceptions with helpful error messages.

    Args:
        request: The FastAPI request
        exc: The s3uploader exception

    Returns:
        JSONResponse with error details
    """
    status_code, error_type = error_status(exc)
    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")

    content = {
        "error": error_type,
        "message": exc.message,
    }
    if exc.hint:
        content["hint"] = exc.hint

    if isinstance(exc, StorageValidationError) and exc.field:
        content["field"] = exc.field
    if isinstance(exc, SizeLimitExceededError):
        content["size"] = exc.size
        content["limit"] = exc.limit
    if isinstance(exc, ObjectNotFoundError):
        content["key"] = exc.key

    return JSONResponse(status_code=status_code, content=content)


async def generic_exception_handler(
    request: Request,
    exc: Exception
) -> JSONResponse:
    """Handle unexpected exceptions without exposing internals."""
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=500,
        content={
            "error": "internal_error",
            "message": "An unexpected error occurred. Please try again later.",
        },
    )


def register_error_handlers(app: FastAPI, include_generic: bool = False) -> None:
    """Register all s3uploader error handlers with a FastAPI app.

    Args:
        app: The FastAPI application
        include_generic: Whether to include a generic handler for all exceptions
    """
    app.add_exception_handler(StorageError, storage_exception_handler)

    if include_generic:
        app.add_exception_handler(Exception, generic_exception_handler)
