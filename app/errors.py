"""Typed application errors and their HTTP mapping.

Services raise ``AppError`` with one of the ``ErrorKind`` values; the handlers
registered by ``register_exception_handlers`` are the only place a kind is
turned into a status code and a JSON body.
"""
import enum
import logging
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)

GENERIC_INTERNAL_MESSAGE = "Internal server error"


class ErrorKind(str, enum.Enum):
    bad_request = "bad_request"
    unauthorized = "unauthorized"
    forbidden = "forbidden"
    not_found = "not_found"
    internal = "internal"


STATUS_BY_KIND = {
    ErrorKind.bad_request: status.HTTP_400_BAD_REQUEST,
    ErrorKind.unauthorized: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.forbidden: status.HTTP_403_FORBIDDEN,
    ErrorKind.not_found: status.HTTP_404_NOT_FOUND,
    ErrorKind.internal: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


class AppError(Exception):
    """A failed operation: one kind plus a message safe to show the caller."""

    def __init__(self, kind: ErrorKind, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.cause = cause

    @property
    def status_code(self) -> int:
        return STATUS_BY_KIND[self.kind]

    @classmethod
    def bad_request(cls, message: str) -> "AppError":
        return cls(ErrorKind.bad_request, message)

    @classmethod
    def unauthorized(cls, message: str = "Unauthorized") -> "AppError":
        return cls(ErrorKind.unauthorized, message)

    @classmethod
    def forbidden(cls, message: str) -> "AppError":
        return cls(ErrorKind.forbidden, message)

    @classmethod
    def not_found(cls, message: str) -> "AppError":
        return cls(ErrorKind.not_found, message)

    @classmethod
    def internal(cls, cause: BaseException) -> "AppError":
        return cls(ErrorKind.internal, GENERIC_INTERNAL_MESSAGE, cause=cause)

    def __repr__(self) -> str:
        return f"AppError({self.kind.value!r}, {self.message!r})"


def register_exception_handlers(app: FastAPI) -> None:
    """Install the JSON error envelope handlers on ``app``."""

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        if exc.kind == ErrorKind.internal:
            logger.error(
                "Request failed: %s %s -> %d",
                request.method, request.url.path, exc.status_code,
                exc_info=exc.cause,
            )
        else:
            logger.warning(
                "Request failed: %s %s -> %d (%s)",
                request.method, request.url.path, exc.status_code, exc.message,
            )
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        logger.warning("Invalid request body for %s %s: %s", request.method, request.url.path, exc.errors())
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"detail": "Invalid request body"},
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": GENERIC_INTERNAL_MESSAGE},
        )
