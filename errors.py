"""
Application error hierarchy and FastAPI exception handlers.

AppError is the base for all typed errors. The global exception handler
converts AppError subclasses to consistent JSON responses.

Internal errors (HashingError, ConfigurationError) and any non-AppError
exception are logged and returned as a generic 500 without internals.
"""

from __future__ import annotations

from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from shared.logging import get_logger

log = get_logger(__name__)

_GENERIC_SERVER_ERROR = {
    "error": "An internal server error occurred.",
    "code": "internal_error",
}


class AppError(Exception):
    """Base application error. All typed errors inherit from this."""

    status_code: int = 500
    error_code: str = "internal_error"

    def __init__(
        self,
        message: str,
        *,
        field: Optional[str] = None,
        details: Optional[Any] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.field = field
        self.details = details

    def to_dict(self) -> dict:
        payload: dict = {"error": self.message, "code": self.error_code}
        if self.field is not None:
            payload["field"] = self.field
        if self.details is not None:
            payload["details"] = self.details
        return payload


class ValidationError(AppError):
    status_code = 400
    error_code = "validation_error"


class BadRequestError(AppError):
    status_code = 400
    error_code = "bad_request"


class CodeExpiredError(AppError):
    status_code = 400
    error_code = "code_expired"


class InvalidCodeError(AppError):
    status_code = 400
    error_code = "invalid_code"


class AuthenticationError(AppError):
    status_code = 401
    error_code = "authentication_error"


class NotFoundError(AppError):
    status_code = 404
    error_code = "not_found"


class ConflictError(AppError):
    status_code = 409
    error_code = "conflict"


class InternalError(AppError):
    """Fatal, non-recoverable error. Never shown to the client verbatim."""

    status_code = 500
    error_code = "internal_error"


class HashingError(InternalError):
    pass


class ConfigurationError(InternalError):
    pass


def _first_validation_message(exc: RequestValidationError) -> tuple[str, Optional[str]]:
    errors = exc.errors()
    if not errors:
        return "Invalid request body", None
    first = errors[0]
    loc = [str(part) for part in first.get("loc", ()) if part != "body"]
    field = loc[-1] if loc else None
    if first.get("type") == "missing" and field:
        return f'"{field}" is required', field
    return first.get("msg", "Invalid request body"), field


def register_error_handlers(app: FastAPI) -> None:
    """Register global exception handlers on the FastAPI app."""

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        message, field = _first_validation_message(exc)
        error = ValidationError(message, field=field)
        return JSONResponse(status_code=error.status_code, content=error.to_dict())

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
        if isinstance(exc, InternalError):
            log.error(
                "internal_error",
                path=request.url.path,
                error=exc.message,
                error_type=type(exc).__name__,
            )
            return JSONResponse(status_code=500, content=_GENERIC_SERVER_ERROR)
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        # Sentry integration: if sentry_sdk is initialized it will auto-capture
        # unhandled exceptions before this handler fires.
        log.error(
            "unhandled_exception",
            path=request.url.path,
            error=str(exc),
            error_type=type(exc).__name__,
        )
        return JSONResponse(status_code=500, content=_GENERIC_SERVER_ERROR)
