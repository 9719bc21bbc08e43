"""FastAPI exception handlers for custom exceptions."""

from __future__ import annotations

from fastapi import Request, status
from fastapi.responses import JSONResponse
from loguru import logger

from core.exceptions import (
    ImageBoardError,
    StorageError,
    UploadTooLargeError,
    ValidationError,
)


def status_for(exc: ImageBoardError) -> int:
    # Check the more specific classes first
    if isinstance(exc, UploadTooLargeError):
        return status.HTTP_413_REQUEST_ENTITY_TOO_LARGE
    if isinstance(exc, ValidationError):
        return status.HTTP_400_BAD_REQUEST
    if isinstance(exc, StorageError):
        return status.HTTP_503_SERVICE_UNAVAILABLE
    # ConfigurationError, RenderError and anything new
    return status.HTTP_500_INTERNAL_SERVER_ERROR


async def imageboard_exception_handler(request: Request, exc: ImageBoardError) -> JSONResponse:
    """Handle image board exceptions."""
    status_code = status_for(exc)

    logger.error(
        "ImageBoard exception on {path}: {type} - {message}",
        path=request.url.path,
        type=type(exc).__name__,
        message=str(exc),
        details=exc.details,
    )

    return JSONResponse(
        status_code=status_code,
        content={
            "error": type(exc).__name__,
            "message": exc.message,
            "details": exc.details,
        },
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Turn anything unexpected into a JSON 500 without taking the process down."""
    logger.opt(exception=exc).error("Unhandled exception on {path}", path=request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": type(exc).__name__,
            "message": str(exc),
        },
    )
