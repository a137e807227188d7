"""Global exception handlers for FastAPI application.

Every failure leaves the service in the same envelope:

    {"success": false, "error": {"message": ..., "code": ..., "details": ...}}
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from notification_service.core.exceptions import AppException, ErrorCode
from notification_service.core.schemas.common import ErrorBody, ErrorResponse
from notification_service.core.settings import get_app_settings
from notification_service.infra.metrics import tracking

logger = logging.getLogger(__name__)

_HTTP_STATUS_CODES: dict[int, ErrorCode] = {
    status.HTTP_401_UNAUTHORIZED: ErrorCode.MISSING_TOKEN,
    status.HTTP_403_FORBIDDEN: ErrorCode.INSUFFICIENT_PERMISSIONS,
    status.HTTP_404_NOT_FOUND: ErrorCode.NOT_FOUND,
    status.HTTP_405_METHOD_NOT_ALLOWED: ErrorCode.NOT_FOUND,
}


def _get_request_id(request: Request) -> str | None:
    return getattr(request.state, "request_id", None)


def _error_response(
    request: Request,
    status_code: int,
    message: str,
    code: str,
    details: Any | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    """Build the failure envelope and count it."""
    tracking.track_error(code, status_code)
    body = ErrorResponse(
        error=ErrorBody(message=message, code=code, details=details),
        request_id=_get_request_id(request),
    )
    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(mode="json", exclude_none=True),
        headers=headers,
    )


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """Handle custom application exceptions.

    Client errors (auth, validation) are logged at warning level, delivery and
    other server-side failures at error level.
    """
    log = logger.warning if exc.is_client_error else logger.error
    log(
        "Application exception occurred",
        extra={
            "request_id": _get_request_id(request),
            "path": request.url.path,
            "method": request.method,
            "error_code": exc.code.value,
            "status_code": exc.status_code,
            "detail": exc.detail,
        },
    )

    headers = None
    if exc.status_code == status.HTTP_401_UNAUTHORIZED:
        headers = {"WWW-Authenticate": "Bearer"}

    return _error_response(
        request,
        exc.status_code,
        exc.detail,
        exc.code.value,
        exc.details,
        headers=headers,
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Handle request validation errors with per-field details."""
    field_errors = [
        {
            "field": ".".join(str(loc) for loc in error["loc"] if loc != "body"),
            "message": error["msg"],
            "type": error["type"],
        }
        for error in exc.errors()
    ]

    logger.warning(
        "Request validation failed",
        extra={
            "request_id": _get_request_id(request),
            "path": request.url.path,
            "method": request.method,
            "error_count": len(field_errors),
        },
    )

    return _error_response(
        request,
        status.HTTP_400_BAD_REQUEST,
        "Validation failed",
        ErrorCode.VALIDATION_ERROR.value,
        field_errors,
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Handle routing errors raised by Starlette (unknown route, bad method)."""
    code = _HTTP_STATUS_CODES.get(exc.status_code, ErrorCode.INTERNAL_ERROR)
    message = "Route not found" if exc.status_code == status.HTTP_404_NOT_FOUND else str(exc.detail)
    return _error_response(
        request,
        exc.status_code,
        message,
        code.value,
        headers=getattr(exc, "headers", None),
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions.

    The exception message is only exposed in development and test
    environments.
    """
    logger.error(
        "Unexpected exception occurred",
        extra={
            "request_id": _get_request_id(request),
            "path": request.url.path,
            "method": request.method,
            "exception_type": type(exc).__name__,
        },
        exc_info=exc,
    )

    details = None
    if get_app_settings().exposes_error_details:
        details = {"exception": type(exc).__name__, "detail": str(exc)}

    return _error_response(
        request,
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "Internal server error",
        ErrorCode.INTERNAL_ERROR.value,
        details,
    )


def configure_exception_handlers(app: FastAPI) -> None:
    """Register the exception handlers on the application."""
    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

    logger.debug("Exception handlers configured")
