"""
userhub - Application Errors

Typed error hierarchy shared by the service layer and the HTTP boundary.
Each subclass carries the status code it maps to, so the transport layer
dispatches on the error class and never inspects message text.

The exception handlers registered here are the only place where errors
become HTTP responses. Every error body has the shape {"error": "<message>"}.
"""

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from userhub.logging_config import get_logger


log = get_logger(__name__)


class AppError(Exception):
    """Base application error. All client-visible errors inherit from this."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"error": self.message}


class ValidationError(AppError):
    """Malformed or unacceptable client input."""
    status_code = status.HTTP_400_BAD_REQUEST


class AuthenticationError(AppError):
    """Bad credentials, inactive account or unusable bearer token."""
    status_code = status.HTTP_401_UNAUTHORIZED


class NotFoundError(AppError):
    """Unknown or already consumed lifecycle token."""
    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(AppError):
    """Uniqueness violation such as a duplicate email."""
    status_code = status.HTTP_409_CONFLICT


class InternalError(AppError):
    """Downstream failure; the cause is logged, never returned."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str = "internal server error"):
        super().__init__(message)


def register_error_handlers(app: FastAPI) -> None:
    """Register global exception handlers on the FastAPI app."""

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
        if exc.status_code >= 500 and exc.__cause__ is not None:
            log.warning("internal_error", path=request.url.path, exc_info=exc.__cause__)
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        log.info("invalid_request_body", path=request.url.path, errors=len(exc.errors()))
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": "invalid json body"},
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        log.warning("unhandled_error", path=request.url.path, exc_info=exc)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=InternalError().to_dict(),
        )
