"""Booking engine error taxonomy and the API error envelope."""

from __future__ import annotations

import logging
import uuid
from typing import Any

from asgi_correlation_id import correlation_id
from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class BookingEngineError(Exception):
    """Base class for rejections raised by the service layer."""

    code = "SERVER_ERROR"
    http_status = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class NotFoundError(BookingEngineError):
    """Referenced space, vehicle, booking or availability window is missing."""

    code = "NOT_FOUND"
    http_status = status.HTTP_404_NOT_FOUND


class ForbiddenError(BookingEngineError):
    """Requester is not allowed to act on the resource."""

    code = "AUTH_FORBIDDEN"
    http_status = status.HTTP_403_FORBIDDEN


class ValidationFailedError(BookingEngineError):
    """Malformed or out-of-range input."""

    code = "REQ_VALIDATION"
    http_status = status.HTTP_400_BAD_REQUEST


class ConflictError(BookingEngineError):
    """Overlapping booking or window, or a duplicate state change."""

    code = "BIZ_CONFLICT"
    http_status = status.HTTP_409_CONFLICT


class OperationNotAllowedError(BookingEngineError):
    """A lifecycle guard rejected the requested transition."""

    code = "BIZ_OPERATION_NOT_ALLOWED"
    http_status = status.HTTP_400_BAD_REQUEST


class StorageUnavailableError(BookingEngineError):
    """Persistence failed; never locally recoverable."""

    code = "SERVER_ERROR"
    http_status = status.HTTP_500_INTERNAL_SERVER_ERROR


_HTTP_CODES = {
    status.HTTP_400_BAD_REQUEST: "REQ_VALIDATION",
    status.HTTP_401_UNAUTHORIZED: "AUTH_UNAUTHORIZED",
    status.HTTP_403_FORBIDDEN: "AUTH_FORBIDDEN",
    status.HTTP_404_NOT_FOUND: "NOT_FOUND",
    status.HTTP_405_METHOD_NOT_ALLOWED: "METHOD_NOT_ALLOWED",
    status.HTTP_409_CONFLICT: "BIZ_CONFLICT",
    status.HTTP_422_UNPROCESSABLE_ENTITY: "REQ_VALIDATION",
    status.HTTP_429_TOO_MANY_REQUESTS: "RATE_LIMITED",
}


def _trace_id() -> str:
    return correlation_id.get() or uuid.uuid4().hex


def error_envelope(
    *,
    code: str,
    http_status: int,
    message: str,
    details: Any | None = None,
) -> dict[str, Any]:
    """Build the standard failure body."""
    error: dict[str, Any] = {
        "code": code,
        "http": http_status,
        "message": message,
        "traceId": _trace_id(),
    }
    if details:
        error["details"] = jsonable_encoder(details)
    return {"success": False, "error": error}


def _respond(
    code: str,
    http_status: int,
    message: str,
    details: Any | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    return JSONResponse(
        status_code=http_status,
        content=error_envelope(
            code=code, http_status=http_status, message=message, details=details
        ),
        headers=headers,
    )


def register_error_handlers(app: FastAPI) -> None:
    """Render every failure with the application error envelope."""

    @app.exception_handler(BookingEngineError)
    async def _booking_engine_error(
        _: Request, exc: BookingEngineError
    ) -> JSONResponse:
        if isinstance(exc, StorageUnavailableError):
            logger.error("Storage failure: %s", exc.message)
            return _respond(exc.code, exc.http_status, "Internal server error")
        return _respond(exc.code, exc.http_status, exc.message, exc.details)

    @app.exception_handler(StarletteHTTPException)
    async def _http_error(_: Request, exc: StarletteHTTPException) -> JSONResponse:
        message = exc.detail if isinstance(exc.detail, str) else "Request failed"
        code = _HTTP_CODES.get(exc.status_code, "SERVER_ERROR")
        return _respond(
            code, exc.status_code, message, headers=getattr(exc, "headers", None)
        )

    @app.exception_handler(RequestValidationError)
    async def _validation_error(
        _: Request, exc: RequestValidationError
    ) -> JSONResponse:
        details = [
            {
                "field": ".".join(str(part) for part in err.get("loc", ())[1:]),
                "message": err.get("msg", ""),
            }
            for err in exc.errors()
        ]
        return _respond(
            "REQ_VALIDATION",
            status.HTTP_400_BAD_REQUEST,
            "Validation failed",
            {"fields": details},
        )

    @app.exception_handler(SQLAlchemyError)
    async def _storage_error(_: Request, exc: SQLAlchemyError) -> JSONResponse:
        logger.exception("Unhandled database error", exc_info=exc)
        return _respond(
            StorageUnavailableError.code,
            StorageUnavailableError.http_status,
            "Internal server error",
        )


__all__ = [
    "BookingEngineError",
    "ConflictError",
    "ForbiddenError",
    "NotFoundError",
    "OperationNotAllowedError",
    "StorageUnavailableError",
    "ValidationFailedError",
    "error_envelope",
    "register_error_handlers",
]
