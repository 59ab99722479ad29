"""
Exception handlers: business errors become ``{"detail", "code"}`` with their
own status, anything unexpected a logged, generic 500.
"""

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from core.exceptions import AppError
from core.logging_config import get_logger

logger = get_logger(__name__)


def _request_context(request: Request) -> dict:
    return {
        "path": request.url.path,
        "method": request.method,
    }


async def app_error_handler(request: Request, exc: AppError):
    context = {**_request_context(request), "error_code": exc.code}

    if exc.status_code >= 500:
        logger.error(f"Request failed: {exc.message}", extra=context, exc_info=exc)
    else:
        logger.warning(f"Request rejected: {exc.message}", extra=context)

    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def unhandled_error_handler(request: Request, exc: Exception):
    # FastAPI renders these itself
    if isinstance(exc, (HTTPException, RequestValidationError)):
        raise exc

    logger.error(
        f"Unhandled exception: {exc}",
        extra={**_request_context(request), "error_type": type(exc).__name__},
        exc_info=exc
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error", "code": "INTERNAL_ERROR"}
    )


def register_error_handlers(app: FastAPI):
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
