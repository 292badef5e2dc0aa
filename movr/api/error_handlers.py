"""Error Handlers — global exception handlers for the MovR API.

Invariants:
    - MovRError → structured JSON with error code, message, severity
    - Store-unavailable errors (503) carry a Retry-After hint; client errors do not
    - RequestValidationError → field-level error details
    - Exception (catch-all) → never leaks internal details

Design Decisions:
    - Three-layer handler: domain (MovRError), validation (Pydantic), catch-all (Exception)
    - Extracted from main.py to keep its import fan-out small
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError

from movr.core.errors import MovRError, ErrorSeverity

logger = logging.getLogger(__name__)

_RETRY_AFTER_SECONDS = "1"


def register_error_handlers(app: FastAPI) -> None:
    """Register all global error handlers on the FastAPI app."""
    _register_movr_error_handler(app)
    _register_validation_error_handler(app)
    _register_generic_error_handler(app)


def _register_movr_error_handler(app: FastAPI) -> None:
    """Register MovR domain/infrastructure error handler."""

    @app.exception_handler(MovRError)
    async def movr_error_handler(request: Request, exc: MovRError):
        """Handle all MovR domain/infrastructure errors."""
        log = logger.warning if exc.client_fixable else logger.error
        log(
            f"MovRError: {exc.message}",
            extra={
                "error_code": exc.code, "path": request.url.path,
                "city": exc.context.city, "operation": exc.context.operation,
            },
        )
        headers = None if exc.client_fixable else {"Retry-After": _RETRY_AFTER_SECONDS}
        return JSONResponse(
            status_code=exc.http_status, content=exc.to_response(), headers=headers,
        )


def _register_validation_error_handler(app: FastAPI) -> None:
    """Register Pydantic validation error handler."""

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError,
    ):
        """Handle Pydantic validation errors."""
        logger.warning(
            f"Validation error on {request.url.path}: {exc.errors()}",
        )
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=_build_validation_error_response(exc),
        )


def _register_generic_error_handler(app: FastAPI) -> None:
    """Register catch-all error handler."""

    @app.exception_handler(Exception)
    async def generic_error_handler(request: Request, exc: Exception):
        """Catch-all — never leaks internal details."""
        logger.error(
            f"Unhandled exception on {request.url.path}: {exc}",
            exc_info=True,
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "error": {
                    "code": "INTERNAL_ERROR",
                    "message": "An unexpected error occurred",
                    "category": "internal",
                    "severity": ErrorSeverity.CRITICAL.value,
                },
            },
        )


def _build_validation_error_response(exc: RequestValidationError) -> dict:
    """Build structured validation error response."""
    return {
        "error": {
            "code": "VALIDATION_ERROR",
            "message": "Invalid request data",
            "category": "validation",
            "severity": ErrorSeverity.ERROR.value,
            "details": [
                {
                    "field": ".".join(str(loc) for loc in e["loc"]),
                    "message": e["msg"],
                    "type": e["type"],
                }
                for e in exc.errors()
            ],
        },
    }
