"""
Error taxonomy shared by the API and the service layer.

Every error the service raises on purpose derives from AppError and is
rendered as ``{"error": ..., "details": ..., "hint": ...}`` by the
handlers registered in ``register_exception_handlers``.
"""

import logging
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class AppError(Exception):
    """Base class for errors with a well-defined HTTP rendering."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    error = "Internal server error"

    def __init__(
        self,
        error: Optional[str] = None,
        details: Any = None,
        hint: Optional[str] = None,
        headers: Optional[Dict[str, str]] = None,
    ):
        self.error = error or self.error
        self.details = details
        self.hint = hint
        self.headers = headers
        super().__init__(self.error)

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"error": self.error}
        if self.details is not None:
            body["details"] = self.details
        if self.hint is not None:
            body["hint"] = self.hint
        return body


class MissingCredential(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    error = "Access token is required"

    def __init__(self, *args, **kwargs):
        kwargs.setdefault("headers", {"WWW-Authenticate": "Bearer"})
        super().__init__(*args, **kwargs)


class InvalidCredential(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    error = "Invalid or expired token"

    def __init__(self, *args, **kwargs):
        kwargs.setdefault("headers", {"WWW-Authenticate": "Bearer"})
        super().__init__(*args, **kwargs)


class InputValidationError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    error = "Invalid request"


class UpstreamAuthError(AppError):
    """The identity provider rejected a register/login/refresh request."""

    status_code = status.HTTP_400_BAD_REQUEST
    error = "Authentication request rejected"


class PermissionDenied(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    error = "Permission denied"


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    error = "Not found"


class ConflictError(AppError):
    status_code = status.HTTP_409_CONFLICT
    error = "Conflict"


class SchemaError(AppError):
    """A table this service depends on is missing. Never retried."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    error = "Database schema error"


def _field_errors(exc: RequestValidationError):
    return [
        {
            "field": ".".join(str(part) for part in error.get("loc", ())),
            "message": error.get("msg", "Invalid value"),
        }
        for error in exc.errors()
    ]


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(
            f"{request.method} {request.url.path} failed: {exc.error} ({exc.details})"
        )
    return JSONResponse(
        status_code=exc.status_code, content=exc.to_dict(), headers=exc.headers
    )


async def validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": "Invalid request", "details": _field_errors(exc)},
    )


async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error in {request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Internal server error"},
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Attach the error rendering used by every route."""
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unexpected_error_handler)
