"""
Error types and the handlers that render them as ``{"message": ...}``
"""
import logging
import re
from typing import Optional

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from tortoise.exceptions import IntegrityError
from tortoise.exceptions import ValidationError as FieldValueError

logger = logging.getLogger(__name__)


GENERIC_SERVER_ERROR = "Server error"

# Unique columns and the message used when one of them collides
UNIQUE_FIELD_MESSAGES = {
    "email": "Email already registered",
    "username": "Username already taken",
    "phone": "Phone number already registered",
}


class ValidationError(HTTPException):
    """Malformed, missing or out-of-range input"""

    def __init__(self, message: str):
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=message)


class ConflictError(HTTPException):
    """A unique field is already taken"""

    def __init__(self, message: str):
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=message)


class AuthenticationError(HTTPException):
    """Missing, invalid or expired credentials"""

    def __init__(self, message: str = "Token is not valid"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=message,
            headers={"WWW-Authenticate": "Bearer"},
        )


class AuthorizationError(HTTPException):
    """Authenticated, but the role is not allowed"""

    def __init__(self, message: str = "Access denied. Admin role required."):
        super().__init__(status_code=status.HTTP_403_FORBIDDEN, detail=message)


class NotFoundError(HTTPException):
    def __init__(self, message: str):
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=message)


class InternalError(HTTPException):
    """Server-side failure; the caller only ever sees a generic message"""

    def __init__(self, message: str = GENERIC_SERVER_ERROR):
        super().__init__(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=message)


class TokenConfigurationError(InternalError):
    """Raised when a token is requested but no signing key is configured"""


def conflict_from_integrity_error(exc: IntegrityError) -> ConflictError:
    """
    Translate a storage unique-constraint failure into a ConflictError

    Args:
        exc: IntegrityError raised by the database driver

    Returns:
        ConflictError naming the duplicated field when it can be identified
    """
    text = str(exc).lower()
    for field, message in UNIQUE_FIELD_MESSAGES.items():
        if re.search(rf"\b(users\.)?{field}\b|users_{field}_", text):
            return ConflictError(message)
    return ConflictError("Duplicate value")


def validation_error_from_field_value(exc: FieldValueError) -> ValidationError:
    """
    Translate a value the ORM refused to store into a ValidationError

    Tortoise prefixes its message with the offending field, e.g.
    ``"name: Length of '...' 150 > 100"``. The value itself is not echoed back.
    """
    field, separator, _ = str(exc).partition(":")
    if separator and field.strip().isidentifier():
        return ValidationError(f"Invalid value for {field.strip()}")
    return ValidationError("Invalid value")


def _request_validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    location = [str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path")]
    if location:
        return f"Invalid value for {'.'.join(location)}: {first.get('msg', 'invalid')}"
    return f"Invalid request: {first.get('msg', 'invalid')}"


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    message: Optional[str] = exc.detail if isinstance(exc.detail, str) else None
    if exc.status_code == status.HTTP_404_NOT_FOUND and message == "Not Found":
        message = "Route not found"
    if exc.status_code >= 500:
        message = GENERIC_SERVER_ERROR if message is None else message
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": message or "Request failed"},
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"message": _request_validation_message(exc)},
    )


async def integrity_error_handler(request: Request, exc: IntegrityError) -> JSONResponse:
    conflict = conflict_from_integrity_error(exc)
    logger.warning("Unique constraint rejected write on %s: %s", request.url.path, conflict.detail)
    return JSONResponse(status_code=conflict.status_code, content={"message": conflict.detail})


async def field_value_error_handler(request: Request, exc: FieldValueError) -> JSONResponse:
    error = validation_error_from_field_value(exc)
    logger.warning("Storage rejected a value on %s: %s", request.url.path, exc)
    return JSONResponse(status_code=error.status_code, content={"message": error.detail})


def server_error_response() -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"message": GENERIC_SERVER_ERROR},
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    # Only reached for failures outside the request logging middleware
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return server_error_response()


def register_exception_handlers(app: FastAPI) -> None:
    """
    Attach the JSON error handlers to an application

    Args:
        app: FastAPI application instance
    """
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(IntegrityError, integrity_error_handler)
    app.add_exception_handler(FieldValueError, field_value_error_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
