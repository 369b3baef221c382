"""Centralized exception handlers for the FastAPI app.

Register with register_exception_handlers(app). Maps domain and framework
exceptions to HTTP responses.
"""

import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from backoffice.core.config import get_settings
from backoffice.domain.exceptions import (
    BackofficeException,
    PermissionDeniedException,
    RateLimitExceededException,
    RequestTooFrequentException,
)

logger = logging.getLogger(__name__)

# Map domain error_code to HTTP status when applicable
_ERROR_CODE_STATUS: dict[str, int] = {
    "RESOURCE_NOT_FOUND": 404,
    "AUTHENTICATION_ERROR": 401,
    "PRINCIPAL_NOT_FOUND": 403,
    "PRINCIPAL_INACTIVE": 403,
    "PERMISSION_DENIED": 403,
    "MENU_ACCESS_DENIED": 403,
    "RATE_LIMIT_EXCEEDED": 429,
    "REQUEST_TOO_FREQUENT": 429,
    "VALIDATION_ERROR": 400,
    "DUPLICATE_ROLE": 409,
    "SYSTEM_ROLE_PROTECTED": 400,
    "AUDIT_WRITE_FAILED": 500,
    "STORE_UNAVAILABLE": 503,
}


def status_for(exc: BackofficeException) -> int:
    """HTTP status for a domain exception (400 when the code is unmapped)."""
    return _ERROR_CODE_STATUS.get(exc.error_code, 400)


def _backoffice_exception_handler(
    request: Request, exc: BackofficeException
) -> JSONResponse:
    """Return JSON from BackofficeException.to_dict() with appropriate status code.

    Permission denials are recorded on request.state so the audit middleware
    can log them as permission_denied rather than a plain failure.
    """
    if isinstance(exc, PermissionDeniedException):
        request.state.audit_error = exc
    headers = None
    if isinstance(exc, (RateLimitExceededException, RequestTooFrequentException)):
        headers = exc.headers
    return JSONResponse(
        status_code=status_for(exc),
        content=exc.to_dict(),
        headers=headers,
    )


def _validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Return 422 with validation error details."""
    return JSONResponse(
        status_code=422,
        content={
            "error": "VALIDATION_ERROR",
            "message": "Request validation failed",
            "details": exc.errors(),
        },
    )


def _http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    """Return JSON for Starlette HTTP exceptions (status + detail)."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": "HTTP_ERROR", "message": exc.detail},
        headers=getattr(exc, "headers", None),
    )


def _generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Return 500; include detail only when debug is True."""
    logger.exception("Unhandled exception: %s", exc)
    settings = get_settings()
    detail: Any = str(exc) if settings.debug else "Internal server error"
    return JSONResponse(
        status_code=500,
        content={"error": "INTERNAL_ERROR", "message": detail},
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers on the FastAPI app.

    Call once after creating the app. Handlers: BackofficeException (and
    subclasses), RequestValidationError, StarletteHTTPException, generic Exception.
    """
    app.add_exception_handler(BackofficeException, _backoffice_exception_handler)
    app.add_exception_handler(RequestValidationError, _validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, _http_exception_handler)
    app.add_exception_handler(Exception, _generic_exception_handler)
