"""
Shared API Middleware
======================

Middleware and exception handlers for services built on an
`ApplicationContext`.
"""

from typing import Callable

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from appcontext.core.exceptions import (
    ApplicationException,
    ExceptionPayload,
    ResourceNotFoundException,
)
from appcontext.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)


class ForwardedForMiddleware(BaseHTTPMiddleware):
    """
    Logs the original client address of proxied requests to the log sink.

    Expects the application context on ``app.state.context``; requests are
    passed through untouched when there is none.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        app_context = getattr(request.app.state, "context", None)
        if app_context is not None:
            app_context.log_x_forwarded_for(request)
        return await call_next(request)


async def application_exception_handler(
    request: Request,
    exc: ApplicationException,
) -> JSONResponse:
    """Turn an ApplicationException into an ExceptionPayload response."""
    status_code = 404 if isinstance(exc, ResourceNotFoundException) else 500

    logger.error(
        "Application exception",
        extra={
            "path": request.url.path,
            "method": request.method,
            "error_type": type(exc).__name__,
            "error_message": exc.message
        }
    )

    app_context = getattr(request.app.state, "context", None)
    if app_context is not None:
        app_context.log_error(exc.message)

    return JSONResponse(
        status_code=status_code,
        content=ExceptionPayload(message=exc.message).model_dump()
    )


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Global exception handler for unhandled exceptions.

    Internal details are not exposed outside development.
    """
    logger.error(
        "Unhandled exception",
        extra={
            "path": request.url.path,
            "method": request.method,
            "error_type": type(exc).__name__,
            "error_message": str(exc)
        }
    )

    settings = getattr(getattr(request.app.state, "context", None), "settings", None)
    is_dev = getattr(settings, "environment", None) == "development"

    return JSONResponse(
        status_code=500,
        content=ExceptionPayload(
            message=str(exc) if is_dev else "Internal server error"
        ).model_dump()
    )
