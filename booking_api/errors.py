"""Standardized error handling for the API.

This module provides:
1. The failure kinds a scheduling operation can end with
2. Exception classes carrying those kinds and their HTTP status
3. Exception handlers for FastAPI and the standard error response model

Usage:
    from booking_api.errors import NotFoundError, TimeConflictError

    # In the scheduling core:
    if not booking:
        raise NotFoundError(detail="Booking not found", resource_type="booking", resource_id=booking_id)

    # Register handlers in main.py:
    from booking_api.errors import register_exception_handlers
    register_exception_handlers(app)
"""

import logging
from enum import StrEnum
from typing import Any

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

logger = logging.getLogger(__name__)


class FailureKind(StrEnum):
    """Outcome of a failed scheduling operation.

    A successful operation returns its record; a failed one raises an
    ``APIError`` whose ``kind`` is one of these.
    """

    NOT_FOUND = "NotFound"
    FORBIDDEN = "Forbidden"
    INVALID_STATUS = "InvalidStatus"
    TIME_CONFLICT = "TimeConflict"
    INTERNAL = "Internal"


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
    kind: FailureKind | None = FailureKind.INTERNAL

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
            context=self.context,
        )


class NotFoundError(APIError):
    """Resource not found error (404).

    Host-scoped lookups also use this when the record exists but belongs to
    someone else, so existence is never revealed.
    """

    status_code = 404
    error = "not_found"
    detail = "Resource not found"
    kind = FailureKind.NOT_FOUND


class BadRequestError(APIError):
    """Bad request error (400)."""

    status_code = 400
    error = "bad_request"
    detail = "Invalid request"
    kind = None


class InvalidStatusError(BadRequestError):
    """Status transition target outside the allowed set (400)."""

    error = "invalid_status"
    detail = "Invalid status"
    kind = FailureKind.INVALID_STATUS


class TimeConflictError(BadRequestError):
    """Candidate range overlaps a record the user already owns (400)."""

    error = "time_conflict"
    detail = "Time conflict detected"
    kind = FailureKind.TIME_CONFLICT


class UnauthorizedError(APIError):
    """Unauthorized error (401)."""

    status_code = 401
    error = "unauthorized"
    detail = "Authentication required"
    kind = None


class ForbiddenError(APIError):
    """Forbidden error (403)."""

    status_code = 403
    error = "forbidden"
    detail = "Not authorized"
    kind = FailureKind.FORBIDDEN


class ServiceUnavailableError(APIError):
    """Service unavailable error (503)."""

    status_code = 503
    error = "service_unavailable"
    detail = "Service temporarily unavailable"
    kind = None


class DatabaseError(APIError):
    """Database error (500)."""

    status_code = 500
    error = "database_error"
    detail = "Database operation failed"


async def api_error_handler(request: Request, exc: APIError) -> JSONResponse:
    """Handle custom API errors."""
    if exc.kind is FailureKind.INTERNAL:
        logger.error(
            "API error: %s (status=%d, path=%s)",
            exc.detail,
            exc.status_code,
            request.url.path,
            exc_info=exc.__cause__,
        )
        # Store and directory failures are reported generically.
        body = ErrorResponse(error=exc.error, detail=APIError.detail)
    else:
        logger.warning(
            "API error: %s (status=%d, path=%s)",
            exc.detail,
            exc.status_code,
            request.url.path,
        )
        body = exc.to_response()
    return JSONResponse(
        status_code=exc.status_code,
        content=body.model_dump(exclude_none=True),
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
        401: "unauthorized",
        403: "forbidden",
        404: "not_found",
        409: "conflict",
        422: "validation_error",
        429: "rate_limited",
        500: "internal_error",
        502: "bad_gateway",
        503: "service_unavailable",
        504: "gateway_timeout",
    }
    return mapping.get(status_code, "error")


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI app."""
    app.add_exception_handler(APIError, api_error_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)
