"""Exception handlers translating application errors into JSON responses."""

from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from vector_desk.core.errors import RemoteError, ValidationError
from vector_desk.core.logging import get_logger

logger = get_logger(__name__)


async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=422,
        content={
            "error": "validation_error",
            "detail": exc.message,
            "field": exc.field,
            "index": exc.index,
        },
    )


async def remote_error_handler(request: Request, exc: RemoteError) -> JSONResponse:
    logger.warning("Remote failure on %s: %s", request.url.path, exc.message)
    return JSONResponse(
        status_code=502,
        content={"error": "remote_error", "detail": exc.message, "operation": exc.operation},
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s", request.url.path)
    return JSONResponse(status_code=500, content={"error": "internal_error", "detail": "Internal server error"})


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ValidationError, validation_error_handler)
    app.add_exception_handler(RemoteError, remote_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)


__all__ = ["register_exception_handlers"]
