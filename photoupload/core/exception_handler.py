"""
Global exception handler for the Photo Upload API.
Provides centralized error handling for all API exceptions.
"""
import logging
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from .exceptions import (
    AuthenticationException,
    ConflictException,
    ForbiddenException,
    NotFoundException,
    PersistenceException,
    StorageUnavailableException,
    ValidationException
)

logger = logging.getLogger(__name__)

# Client-facing text for backend failures; the underlying detail is only logged.
PERSISTENCE_ERROR_MESSAGE = "A database error occurred"
STORAGE_ERROR_MESSAGE = "Storage service is temporarily unavailable"


def error_response(request: Request, status_code: int, error: str, kind: str, message: str,
                   headers: dict = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": error, "kind": kind, "message": message, "path": request.url.path},
        headers=headers
    )


def _describe_validation_errors(exc: RequestValidationError) -> str:
    parts = []
    for err in exc.errors():
        location = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        parts.append(f"{location}: {err.get('msg')}" if location else err.get("msg", ""))
    return "; ".join(parts) or "Invalid request"


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI application."""

    @app.exception_handler(ValidationException)
    async def handle_validation_error(request: Request, exc: ValidationException):
        return error_response(request, 400, "Validation Error", "validation_error", exc.message)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(request: Request, exc: RequestValidationError):
        return error_response(
            request, 400, "Validation Error", "validation_error", _describe_validation_errors(exc)
        )

    @app.exception_handler(AuthenticationException)
    async def handle_authentication_error(request: Request, exc: AuthenticationException):
        logger.info("Authentication failed on %s: %s", request.url.path, type(exc).__name__)
        return error_response(
            request, 401, "Unauthorized", "authentication_failure", exc.message,
            headers={"WWW-Authenticate": "Bearer"}
        )

    @app.exception_handler(ForbiddenException)
    async def handle_forbidden(request: Request, exc: ForbiddenException):
        return error_response(request, 403, "Forbidden", "forbidden", exc.message)

    @app.exception_handler(NotFoundException)
    async def handle_not_found(request: Request, exc: NotFoundException):
        return error_response(request, 404, "Not Found", "not_found", exc.message)

    @app.exception_handler(ConflictException)
    async def handle_conflict(request: Request, exc: ConflictException):
        return error_response(request, 409, "Conflict", "conflict", exc.message)

    @app.exception_handler(StorageUnavailableException)
    async def handle_storage_error(request: Request, exc: StorageUnavailableException):
        logger.error("Storage failure on %s: %s", request.url.path, exc.message, exc_info=exc)
        return error_response(
            request, 503, "Storage Unavailable", "storage_unavailable", STORAGE_ERROR_MESSAGE
        )

    @app.exception_handler(PersistenceException)
    async def handle_persistence_error(request: Request, exc: PersistenceException):
        logger.error("Persistence failure on %s: %s", request.url.path, exc.message, exc_info=exc)
        return error_response(
            request, 500, "Database Error", "persistence_failure", PERSISTENCE_ERROR_MESSAGE
        )

    @app.exception_handler(Exception)
    async def handle_generic_error(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s", request.url.path)
        return error_response(
            request, 500, "Internal Server Error", "internal_error", "An unexpected error occurred"
        )
