"""Application error taxonomy.

Services raise these errors; ``storefront.main`` maps them to HTTP responses in
one place so every failure uses the same ``{success, message, errors}``
envelope.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from fastapi import status


class ErrorKind(Enum):
    """Kinds of failure a request can end in, with their HTTP status."""

    BAD_REQUEST = status.HTTP_400_BAD_REQUEST
    UNAUTHORIZED = status.HTTP_401_UNAUTHORIZED
    FORBIDDEN = status.HTTP_403_FORBIDDEN
    NOT_FOUND = status.HTTP_404_NOT_FOUND
    CONFLICT = status.HTTP_409_CONFLICT
    UNSUPPORTED_MEDIA_TYPE = status.HTTP_415_UNSUPPORTED_MEDIA_TYPE
    TOO_MANY_REQUESTS = status.HTTP_429_TOO_MANY_REQUESTS
    INTERNAL = status.HTTP_500_INTERNAL_SERVER_ERROR
    BAD_GATEWAY = status.HTTP_502_BAD_GATEWAY

    @property
    def status_code(self) -> int:
        return int(self.value)


class AppError(Exception):
    """Base class for errors that carry an HTTP-facing kind and message."""

    kind: ErrorKind = ErrorKind.INTERNAL
    default_message = "Internal Server Error"

    def __init__(
        self,
        message: str | None = None,
        *,
        errors: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> None:
        self.message = message or self.default_message
        self.errors = errors
        self.headers = headers
        super().__init__(self.message)

    @property
    def status_code(self) -> int:
        return self.kind.status_code


class BadRequestError(AppError):
    kind = ErrorKind.BAD_REQUEST
    default_message = "Bad request"


class ValidationError(BadRequestError):
    default_message = "Validation failed"


class UnauthorizedError(AppError):
    kind = ErrorKind.UNAUTHORIZED
    default_message = "Unauthorized"


class ForbiddenError(AppError):
    kind = ErrorKind.FORBIDDEN
    default_message = "Access denied"


class NotFoundError(AppError):
    kind = ErrorKind.NOT_FOUND
    default_message = "Resource not found"


class ConflictError(AppError):
    kind = ErrorKind.CONFLICT
    default_message = "Resource already exists"


class UnsupportedMediaTypeError(AppError):
    kind = ErrorKind.UNSUPPORTED_MEDIA_TYPE
    default_message = "File type is invalid."


class TooManyRequestsError(AppError):
    kind = ErrorKind.TOO_MANY_REQUESTS
    default_message = "Too Many Requests"


class InternalError(AppError):
    kind = ErrorKind.INTERNAL


class UpstreamServiceError(AppError):
    kind = ErrorKind.BAD_GATEWAY
    default_message = "External service failed"
