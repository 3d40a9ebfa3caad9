"""
Application error taxonomy and FastAPI exception handlers.

Every error leaving the API is rendered as ``{"error": <message>}`` with an
appropriate status code. Storage and unexpected failures are logged with
their traceback and masked as a generic 500 for the client.

CHANGELOG:
- 2026-10-15: Initial creation

TODO:
- None
"""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)

INTERNAL_ERROR_MESSAGE = "Internal server error"


class ApiError(Exception):
    """Base class for errors that map directly to an HTTP response.

    Attributes:
        message: Client-facing error message.
        status_code: HTTP status code of the response.
    """

    status_code = 500

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class InputValidationError(ApiError):
    """Malformed or missing fields, out-of-range parameters."""

    status_code = 400


class AuthError(ApiError):
    """Missing, invalid or expired credentials."""

    status_code = 401


class ForbiddenError(ApiError):
    """Authenticated but lacking the required privilege."""

    status_code = 403


class NotFoundError(ApiError):
    status_code = 404


class ConflictError(ApiError):
    """Uniqueness violation (duplicate username, duplicate reading)."""

    status_code = 409


class MalformedInputError(ApiError):
    """An uploaded CSV stream could not be parsed at all."""

    status_code = 400


class StorageError(ApiError):
    status_code = 500


def error_response(status_code: int, message: str, headers: dict | None = None) -> JSONResponse:
    """Build the uniform ``{"error": message}`` JSON response."""
    return JSONResponse(status_code=status_code, content={"error": message}, headers=headers)


def _describe_validation_error(exc: RequestValidationError) -> str:
    """Turn FastAPI request validation errors into one client message.

    Path parameters are only ever numeric ids, so any path error reads as
    "Invalid ID". Other errors report the first offending field.
    """
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    for err in errors:
        loc = err.get("loc", ())
        if loc and loc[0] == "path":
            return "Invalid ID"
    first = errors[0]
    loc = [str(part) for part in first.get("loc", ()) if part not in ("body", "query")]
    field = ".".join(loc)
    reason = first.get("msg", "invalid value")
    return f"{field}: {reason}" if field else reason


async def _api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    return error_response(exc.status_code, exc.message, headers)


async def _http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    return error_response(exc.status_code, str(exc.detail), getattr(exc, "headers", None))


async def _request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    return error_response(400, _describe_validation_error(exc))


async def _storage_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.exception(
        "Database error on %s %s", request.method, request.url.path, exc_info=exc
    )
    return error_response(500, INTERNAL_ERROR_MESSAGE)


async def _unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(
        "Unhandled error on %s %s", request.method, request.url.path, exc_info=exc
    )
    return error_response(500, INTERNAL_ERROR_MESSAGE)


def register_error_handlers(app: FastAPI) -> None:
    """Install the JSON error handlers on a FastAPI application.

    Args:
        app: The application to configure.
    """
    app.add_exception_handler(ApiError, _api_error_handler)
    app.add_exception_handler(StarletteHTTPException, _http_exception_handler)
    app.add_exception_handler(RequestValidationError, _request_validation_handler)
    app.add_exception_handler(SQLAlchemyError, _storage_error_handler)
    app.add_exception_handler(Exception, _unhandled_error_handler)
