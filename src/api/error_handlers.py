"""Error handlers for API routes.

Provides a consistent ErrorResponse body for exceptions that escape the
route handlers. Routes that document their own error bodies (session
errors, analysis failures, upload rejections) return those directly; these
handlers only cover the rest.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from src.core.exceptions import (
    AIServiceError,
    ClientError,
    DocumentProcessingError,
    SessionNotFoundError,
)


logger = logging.getLogger(__name__)


# Type alias for exception handler
ExceptionHandler = Callable[[Request, Exception], Awaitable[JSONResponse]]


# =============================================================================
# Error Response Model
# =============================================================================

class ErrorResponse(BaseModel):
    """Standard error response model.

    Attributes:
        error: Error type/category
        detail: Human-readable error description
        code: Optional machine-readable error code
        path: Optional request path that caused the error
    """

    error: str = Field(
        ...,
        description="Error type or category",
    )
    detail: str = Field(
        ...,
        description="Human-readable error description",
    )
    code: str | None = Field(
        default=None,
        description="Machine-readable error code",
    )
    path: str | None = Field(
        default=None,
        description="Request path that caused the error",
    )


def _error_json(
    request: Request,
    status_code: int,
    error: str,
    detail: str,
    code: str | None = None,
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(
            error=error,
            detail=detail,
            code=code,
            path=str(request.url.path),
        ).model_dump(),
    )


# =============================================================================
# Exception Handlers
# =============================================================================

async def http_exception_handler(
    request: Request,
    exc: HTTPException,
) -> JSONResponse:
    """Handle HTTPException with ErrorResponse schema."""
    error_type = {
        400: "BadRequest",
        401: "Unauthorized",
        403: "Forbidden",
        404: "NotFound",
        422: "ValidationError",
        500: "InternalServerError",
        503: "ServiceUnavailable",
    }.get(exc.status_code, "Error")

    return _error_json(request, exc.status_code, error_type, str(exc.detail))


async def validation_exception_handler(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    """Handle Pydantic validation errors.

    Returns:
        JSONResponse with ErrorResponse format and field details
    """
    field_errors = []
    for error in exc.errors():
        loc = ".".join(str(x) for x in error.get("loc", []))
        msg = error.get("msg", "Invalid value")
        field_errors.append(f"{loc}: {msg}")

    detail = "; ".join(field_errors) if field_errors else "Validation error"
    return _error_json(request, 422, "ValidationError", detail, "VALIDATION_ERROR")


async def session_not_found_handler(
    request: Request,
    exc: SessionNotFoundError,
) -> JSONResponse:
    return _error_json(request, 404, "NotFound", exc.message, "SESSION_NOT_FOUND")


async def ai_service_error_handler(
    request: Request,
    exc: AIServiceError,
) -> JSONResponse:
    """Handle AIServiceError (unknown service, provider failure) with 503."""
    logger.error("AI service error on %s: %s", request.url.path, exc.message)
    return _error_json(request, 503, "ServiceUnavailable", exc.message, "AI_SERVICE_ERROR")


async def client_error_handler(
    request: Request,
    exc: ClientError,
) -> JSONResponse:
    """Handle upstream API failures with 502."""
    logger.error(
        "Upstream client error",
        extra={
            "service": exc.service_name,
            "status_code": exc.status_code,
            "error": exc.message,
        },
    )
    return _error_json(request, 502, "BadGateway", exc.message, "UPSTREAM_ERROR")


async def document_processing_error_handler(
    request: Request,
    exc: DocumentProcessingError,
) -> JSONResponse:
    return _error_json(
        request, 422, "DocumentProcessingError", exc.message, "DOCUMENT_PROCESSING_ERROR"
    )


async def generic_exception_handler(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    """Handle uncaught exceptions."""
    logger.exception(
        "Unhandled exception",
        extra={
            "path": str(request.url.path),
            "error_type": type(exc).__name__,
        },
    )
    return _error_json(
        request, 500, "InternalServerError", "An unexpected error occurred", "INTERNAL_ERROR"
    )


# =============================================================================
# Registration Function
# =============================================================================

def register_error_handlers(app: FastAPI) -> None:
    """Register all error handlers with the FastAPI app.

    Args:
        app: FastAPI application instance
    """
    # Cast handlers to match FastAPI's expected signature
    app.add_exception_handler(
        HTTPException,
        http_exception_handler,  # type: ignore[arg-type]
    )
    app.add_exception_handler(
        RequestValidationError,
        validation_exception_handler,  # type: ignore[arg-type]
    )
    app.add_exception_handler(
        SessionNotFoundError,
        session_not_found_handler,  # type: ignore[arg-type]
    )
    app.add_exception_handler(
        AIServiceError,
        ai_service_error_handler,  # type: ignore[arg-type]
    )
    app.add_exception_handler(
        ClientError,
        client_error_handler,  # type: ignore[arg-type]
    )
    app.add_exception_handler(
        DocumentProcessingError,
        document_processing_error_handler,  # type: ignore[arg-type]
    )
    app.add_exception_handler(
        Exception,
        generic_exception_handler,
    )


__all__ = [
    "ErrorResponse",
    "register_error_handlers",
]
