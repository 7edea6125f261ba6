"""Error taxonomy for the auth service and the FastAPI handlers that render it."""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class AppError(Exception):
    """Base class for errors that map to an HTTP response."""

    status_code = 500
    default_code = "internal_error"

    def __init__(
        self,
        message: str,
        code: str | None = None,
        errors: list[str] | None = None,
    ) -> None:
        self.message = message
        self.code = code or self.default_code
        self.errors = errors
        super().__init__(message)


class ValidationFailedError(AppError):
    """Missing or malformed input."""

    status_code = 400
    default_code = "validation_failed"


class ConflictError(AppError):
    """Record already exists (duplicate email)."""

    status_code = 400
    default_code = "conflict"


class UnauthorizedError(AppError):
    """Bad credentials, or a missing, expired or invalid session."""

    status_code = 401
    default_code = "unauthorized"


class InternalError(AppError):
    """Store, hashing, mail or signing failure. Message is safe to show the client."""

    status_code = 500
    default_code = "internal_error"


def _error_body(exc: AppError) -> dict:
    body: dict = {"success": False, "message": exc.message, "code": exc.code}
    if exc.errors:
        body["errors"] = exc.errors
    return body


def _format_validation_error(err: dict) -> str:
    loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query")]
    msg = str(err.get("msg", "Invalid value")).removeprefix("Value error, ")
    return f"{'.'.join(loc)}: {msg}" if loc else msg


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if isinstance(exc, InternalError):
        logger.error(
            "Request failed with internal error",
            extra={"path": request.url.path, "reason": exc.message},
            exc_info=exc.__cause__,
        )
    return JSONResponse(status_code=exc.status_code, content=_error_body(exc))


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    error = ValidationFailedError(
        "Validation failed",
        errors=[_format_validation_error(e) for e in exc.errors()],
    )
    return JSONResponse(status_code=error.status_code, content=_error_body(error))


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    error = InternalError("Internal server error")
    return JSONResponse(status_code=error.status_code, content=_error_body(error))


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
