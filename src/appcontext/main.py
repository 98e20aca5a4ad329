"""
Service Entrypoint
==================

FastAPI application whose lifespan owns an `ApplicationContext`.

STARTUP:
1. Setup structured logging
2. Build the application context (configuration, log sink, databases)

SHUTDOWN:
1. Dispose database pools and close the log sink
"""

from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Optional

import uvicorn
from fastapi import FastAPI, Request

from appcontext.config import Settings, get_http_port, get_settings
from appcontext.context import init_application_context
from appcontext.core.exceptions import ApplicationException, ConfigurationException
from appcontext.infrastructure.crypto import KeyType
from appcontext.shared.api.middleware import (
    ForwardedForMiddleware,
    application_exception_handler,
    global_exception_handler,
)
from appcontext.shared.infrastructure.logging import get_logger, setup_logging

logger = get_logger(__name__)


def create_app(
    app_name: str,
    decryption_key: KeyType,
    *,
    settings: Optional[Settings] = None,
    **context_options: Any,
) -> FastAPI:
    """
    Create the FastAPI application for a named service.

    Args:
        app_name: Application name passed to init_application_context
        decryption_key: AES key for the stored database passwords
        settings: Settings to use instead of the cached ones
        **context_options: Extra keyword arguments for init_application_context
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator:
        # === STARTUP ===
        setup_logging(settings.log_level, settings.environment)
        logger.info("Starting application", extra={
            "application": app_name,
            "environment": settings.environment
        })

        app.state.context = init_application_context(
            app_name,
            decryption_key,
            settings=settings,
            **context_options,
        )

        yield  # Application runs here

        # === SHUTDOWN ===
        logger.info("Shutting down application", extra={"application": app_name})
        app.state.context.close()

    app = FastAPI(title=app_name, lifespan=lifespan)
    app.add_middleware(ForwardedForMiddleware)
    app.add_exception_handler(ApplicationException, application_exception_handler)
    app.add_exception_handler(Exception, global_exception_handler)

    @app.get("/health")
    def health(request: Request) -> dict[str, Any]:
        """Liveness plus the databases that failed to open at startup."""
        context = request.app.state.context
        return {
            "status": "ok",
            "application": context.application_name,
            "failed_connections": context.failed_connections,
        }

    return app


def run(settings: Optional[Settings] = None) -> None:
    """Serve the application on the resolved HTTP port."""
    settings = settings or get_settings()
    if not settings.decryption_key:
        raise ConfigurationException(
            "APPCONTEXT_DECRYPTION_KEY must be set to decrypt database passwords"
        )

    app = create_app(settings.app_name, settings.decryption_key, settings=settings)
    port = int(get_http_port(settings.default_http_port))
    uvicorn.run(app, host=settings.host, port=port)


if __name__ == "__main__":
    run()
