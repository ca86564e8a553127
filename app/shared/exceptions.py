"""Custom exception hierarchy and handlers."""

from __future__ import annotations

import logging

from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class AppException(Exception):
    """Base application exception."""

    status_code = 400
    code = "app_error"

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)

    @property
    def headers(self) -> dict[str, str] | None:
        return None


class NotFoundException(AppException):
    """Raised when entity is not found."""

    status_code = 404
    code = "not_found"


class ConflictException(AppException):
    """Raised when entity conflicts with current state."""

    status_code = 409
    code = "conflict"


class ValidationException(AppException):
    """Raised when input fails a business validation rule."""

    status_code = 400
    code = "validation_error"


class InvalidCredentialsException(AppException):
    """Raised when email/password do not match an account."""

    status_code = 401
    code = "invalid_credentials"


class InvalidMfaCodeException(AppException):
    """Raised when a login MFA code is wrong."""

    status_code = 401
    code = "invalid_mfa_code"


class InvalidTokenException(AppException):
    """Raised for missing, expired or forged access/refresh tokens."""

    status_code = 401
    code = "invalid_token"


class AccountDisabledException(AppException):
    """Raised when a deactivated account tries to authenticate."""

    status_code = 403
    code = "account_disabled"


class PermissionDeniedException(AppException):
    """Raised when role has no rights for operation."""

    status_code = 403
    code = "forbidden"


class AccountLockedException(AppException):
    """Raised while an account is inside its lockout window."""

    status_code = 423
    code = "account_locked"

    def __init__(self, remaining_minutes: int) -> None:
        self.remaining_minutes = remaining_minutes
        super().__init__(f"Account locked. Try again in {remaining_minutes} minutes")

    @property
    def headers(self) -> dict[str, str] | None:
        return {"Retry-After": str(self.remaining_minutes * 60)}


class MfaSetupException(AppException):
    """Raised when MFA enrollment cannot proceed."""

    status_code = 400
    code = "mfa_setup_error"


def error_response(
    status_code: int,
    code: str,
    message: str,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    """Render the unified error envelope."""
    return JSONResponse(
        status_code=status_code,
        content={"error": {"code": code, "message": message}},
        headers=headers,
    )


def exception_response(exc: AppException) -> JSONResponse:
    """Render an application exception without raising it."""
    return error_response(exc.status_code, exc.code, exc.message, exc.headers)


async def app_exception_handler(_: Request, exc: AppException) -> JSONResponse:
    """Handle custom domain exceptions."""
    return exception_response(exc)


async def http_exception_handler(_: Request, exc: HTTPException) -> JSONResponse:
    """Handle FastAPI HTTP exceptions in unified shape."""
    return error_response(exc.status_code, "http_error", str(exc.detail), exc.headers)


async def validation_exception_handler(_: Request, exc: RequestValidationError) -> JSONResponse:
    """Reject malformed request bodies before any handler logic runs."""
    first_error = exc.errors()[0] if exc.errors() else {}
    location = ".".join(str(part) for part in first_error.get("loc", ()) if part != "body")
    message = first_error.get("msg", "Invalid request")
    if location:
        message = f"{location}: {message}"
    return error_response(400, ValidationException.code, message)


async def unhandled_exception_handler(_: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions."""
    logger.exception("Unhandled error: %s", exc)
    return error_response(500, "internal_error", "Internal server error")


def register_exception_handlers(app) -> None:
    """Register global exception handlers."""
    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
