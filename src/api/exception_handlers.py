"""
Global exception handlers for FastAPI.
"""

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

import structlog

from src.core.exceptions import (
    BookingSystemError,
    ConfigurationError,
    ConflictError,
    ForbiddenError,
    IllegalTransitionError,
    NotEligibleError,
    NotFoundError,
    StorageUnavailableError,
    ValidationError,
)

log = structlog.get_logger(__name__)

# Checked in order; first match wins
_STATUS_BY_ERROR = (
    (ValidationError, status.HTTP_400_BAD_REQUEST),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (ForbiddenError, status.HTTP_403_FORBIDDEN),
    (ConflictError, status.HTTP_409_CONFLICT),
    (IllegalTransitionError, status.HTTP_409_CONFLICT),
    (NotEligibleError, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (StorageUnavailableError, status.HTTP_503_SERVICE_UNAVAILABLE),
)


def status_code_for(exc: BookingSystemError) -> int:
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return status_code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def setup_exception_handlers(app: FastAPI):
    """Register custom exception handlers with the FastAPI application.

    Sets up handlers for all BookingSystemError subclasses with appropriate
    HTTP status codes, plus handlers for configuration errors and generic exceptions.
    """

    @app.exception_handler(BookingSystemError)
    async def booking_system_error_handler(
        request: Request,
        exc: BookingSystemError,
    ) -> JSONResponse:
        """Map typed booking errors to HTTP status codes.

        404 for missing records, 400 for validation, 409 for conflicts and
        illegal transitions, 422 for eligibility, 503 when storage is down.
        """
        log_ctx = log.bind(
            path=request.url.path,
            method=request.method,
            error_type=type(exc).__name__,
        )

        status_code = status_code_for(exc)

        if status_code >= 500:
            log_ctx.error("request_error", message=exc.message, status_code=status_code)
        else:
            log_ctx.warning(
                "request_error",
                message=exc.message,
                status_code=status_code,
            )

        return JSONResponse(
            status_code=status_code,
            content={
                "error": {
                    "type": type(exc).__name__,
                    "message": exc.message,
                }
            },
        )

    @app.exception_handler(ConfigurationError)
    async def configuration_error_handler(
        request: Request,
        exc: ConfigurationError,
    ) -> JSONResponse:
        """Handle configuration errors with HTTP 500 status.

        Returns a 500 Internal Server Error when the application configuration
        is invalid or missing required settings.
        """
        log.error(
            "configuration_error",
            path=request.url.path,
            message=exc.message,
        )

        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "error": {
                    "type": "ConfigurationError",
                    "message": "Server configuration error",
                }
            },
        )

    @app.exception_handler(Exception)
    async def generic_exception_handler(
        request: Request,
        exc: Exception,
    ) -> JSONResponse:
        """Handle all unhandled exceptions with HTTP 500 status."""
        log_ctx = log.bind(
            path=request.url.path,
            method=request.method,
            error_type=type(exc).__name__,
        )

        log_ctx.error(
            "unhandled_exception",
            message=str(exc),
            exc_info=exc,
        )

        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "error": {
                    "type": "InternalServerError",
                    "message": "An unexpected error occurred",
                }
            },
        )
