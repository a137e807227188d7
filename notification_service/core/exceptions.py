"""Custom exception classes for the application.

Every expected failure is an ``AppException`` carrying an HTTP status and a
stable ``ErrorCode`` that clients can rely on. The exception handlers in
``notification_service.app.exception_handlers`` turn them into the error
envelope ``{"success": false, "error": {"message", "code", "details"}}``.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any


class ErrorCode(StrEnum):
    """Stable error codes returned in the error envelope."""

    INTERNAL_ERROR = "INTERNAL_ERROR"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"

    # Authentication / authorization
    MISSING_TOKEN = "MISSING_TOKEN"
    INVALID_TOKEN = "INVALID_TOKEN"
    EXPIRED_TOKEN = "EXPIRED_TOKEN"
    UNAUTHORIZED_SERVICE = "UNAUTHORIZED_SERVICE"
    INSUFFICIENT_PERMISSIONS = "INSUFFICIENT_PERMISSIONS"
    AUTHENTICATION_REQUIRED = "AUTHENTICATION_REQUIRED"

    # Delivery
    SMTP_ERROR = "SMTP_ERROR"
    FIREBASE_ERROR = "FIREBASE_ERROR"
    WEBSOCKET_ERROR = "WEBSOCKET_ERROR"

    # Templates
    TEMPLATE_NOT_FOUND = "TEMPLATE_NOT_FOUND"
    TEMPLATE_COMPILE_ERROR = "TEMPLATE_COMPILE_ERROR"


class AppException(Exception):
    """Base application exception.

    Attributes:
        status_code: HTTP status code for the error.
        detail: Human-readable error message.
        code: Stable error code consumed by clients.
        details: Additional context-specific information about the error.

    Example:
        raise AppException(
            status_code=500,
            detail="Failed to send email",
            code=ErrorCode.SMTP_ERROR,
            details={"template": "invoice"},
        )
    """

    status_code: int = 500
    code: ErrorCode = ErrorCode.INTERNAL_ERROR

    def __init__(
        self,
        detail: str,
        *,
        status_code: int | None = None,
        code: ErrorCode | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.detail = detail
        if status_code is not None:
            self.status_code = status_code
        if code is not None:
            self.code = code
        self.details = details
        super().__init__(detail)

    @property
    def is_client_error(self) -> bool:
        return self.status_code < 500


# ──────────────────────────────────────────────────────────────
# Authentication / authorization
# ──────────────────────────────────────────────────────────────


class AuthError(AppException):
    """Base class for every failure raised by the auth gate."""

    status_code = 401


class MissingCredentialError(AuthError):
    """No bearer credential was presented."""

    code = ErrorCode.MISSING_TOKEN


class InvalidCredentialError(AuthError):
    """The credential failed signature or structure verification."""

    code = ErrorCode.INVALID_TOKEN


class ExpiredCredentialError(AuthError):
    """The credential's validity window has elapsed."""

    code = ErrorCode.EXPIRED_TOKEN


class AuthenticationRequiredError(AuthError):
    """A permission check ran without an authenticated caller."""

    code = ErrorCode.AUTHENTICATION_REQUIRED


class UnauthorizedCallerError(AuthError):
    """The caller identifier is not in the allow-list."""

    status_code = 403
    code = ErrorCode.UNAUTHORIZED_SERVICE


class InsufficientPermissionsError(AuthError):
    """The caller holds none of the required permissions."""

    status_code = 403
    code = ErrorCode.INSUFFICIENT_PERMISSIONS


# ──────────────────────────────────────────────────────────────
# Delivery
# ──────────────────────────────────────────────────────────────


class DeliveryError(AppException):
    """Base class for downstream delivery failures."""

    status_code = 500


class MailDeliveryFailedError(DeliveryError):
    """The mail adapter produced no receipt."""

    code = ErrorCode.SMTP_ERROR


class PushDeliveryFailedError(DeliveryError):
    """The push adapter produced zero successful deliveries."""

    code = ErrorCode.FIREBASE_ERROR


class RealtimeUnavailableError(DeliveryError):
    """The connection hub is not running."""

    status_code = 503
    code = ErrorCode.WEBSOCKET_ERROR


class HubCapacityError(AppException):
    """The connection hub refused a new connection."""

    status_code = 503
    code = ErrorCode.WEBSOCKET_ERROR


# ──────────────────────────────────────────────────────────────
# Templates
# ──────────────────────────────────────────────────────────────


class TemplateNotFoundError(AppException):
    """No template file exists for the requested name."""

    code = ErrorCode.TEMPLATE_NOT_FOUND


class TemplateRenderError(AppException):
    """A template exists but failed to compile or render."""

    code = ErrorCode.TEMPLATE_COMPILE_ERROR
