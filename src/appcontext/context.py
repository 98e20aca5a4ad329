"""
Application Context
===================

The object a service builds once at startup and hands to its request
handlers: the loaded configuration, the remote log sink and one connection
pool per required database.

STARTUP (linear, any failure stops it):
1. Load and decrypt the configuration file
2. Dial the syslog sink
3. Open each required database (failures tolerated when configured)
4. Log the start line and return the context
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, Mapping, Optional, Union

from sqlalchemy.engine import Engine
from starlette.requests import Request

from appcontext.config import Settings, get_configuration_file_spec, get_settings
from appcontext.core.exceptions import (
    ConnectionNotFoundError,
    DatabaseConnectionError,
)
from appcontext.domain.configuration import ApplicationConfiguration
from appcontext.infrastructure.config_loader import load_configuration
from appcontext.infrastructure.crypto import KeyType
from appcontext.infrastructure.database import open_otr_connection
from appcontext.shared.infrastructure.logging import (
    close_log_sink,
    dial_log_sink,
    get_logger,
)

logger = get_logger(__name__)

FORWARDED_FOR_HEADER = "X-Forwarded-For"


@dataclass
class ApplicationContext:
    """
    Process-wide state for one application.

    `databases` maps each requested connection name to its pool, or to None
    when opening it failed and startup was allowed to continue.
    """

    application_name: str
    configuration: ApplicationConfiguration
    log_sink: logging.Logger
    databases: Dict[str, Optional[Engine]] = field(default_factory=dict)
    settings: Settings = field(default_factory=get_settings)

    def get_database(self, name: str) -> Engine:
        """
        Return the pool opened for a connection name (matched case-insensitively).

        Raises:
            ConnectionNotFoundError: If the name was not opened at startup
            DatabaseConnectionError: If it failed to open at startup
        """
        for key, engine in self.databases.items():
            if key.lower() == name.lower():
                if engine is None:
                    raise DatabaseConnectionError(
                        f"Database {key} is unavailable: it failed to open at startup",
                        {"connection_name": key}
                    )
                return engine
        raise ConnectionNotFoundError(name)

    @property
    def failed_connections(self) -> list[str]:
        return [name for name, engine in self.databases.items() if engine is None]

    def log_info(self, message: str) -> None:
        self.log_sink.info(message, stacklevel=2)

    def log_error(self, message: str) -> None:
        self.log_sink.error(message, stacklevel=2)

    def log_x_forwarded_for(self, request: Union[Request, Mapping[str, str]]) -> None:
        """Log the first X-Forwarded-For value of a request, if it has one."""
        headers = request.headers if isinstance(request, Request) else request
        if hasattr(headers, "getlist"):
            values = headers.getlist(FORWARDED_FOR_HEADER)
        else:
            values = [v for k, v in headers.items() if k.lower() == FORWARDED_FOR_HEADER.lower()]
        if values:
            self.log_sink.info(f"{FORWARDED_FOR_HEADER}: {values[0]}", stacklevel=2)

    def close(self) -> None:
        """Dispose every pool and close the log sink."""
        _release(self.databases, self.log_sink)

    def __enter__(self) -> "ApplicationContext":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


def _release(databases: Dict[str, Optional[Engine]], sink: logging.Logger) -> None:
    for engine in databases.values():
        if engine is not None:
            engine.dispose()
    close_log_sink(sink)


def init_application_context(
    app_name: str,
    decryption_key: KeyType,
    *,
    connection_names: Optional[Iterable[str]] = None,
    continue_on_db_error: Optional[bool] = None,
    settings: Optional[Settings] = None,
) -> ApplicationContext:
    """
    Build the application context.

    Args:
        app_name: Application name; also selects ``<app_name>_CONFIGFILE``
        decryption_key: AES key for the stored database passwords
        connection_names: Brand names or short codes to open
            (defaults to settings.required_connections)
        continue_on_db_error: Keep going when a database fails to open
            (defaults to settings.continue_on_db_error)
        settings: Settings to use instead of the cached ones

    Returns:
        ApplicationContext: Ready context

    Raises:
        ConfigurationException: If the configuration cannot be loaded
        CredentialError: If a password cannot be decrypted
        LogSinkError: If the syslog sink cannot be dialed
        ConnectionNotFoundError: If a required connection is not configured
        DatabaseConnectionError: If a database fails and failures are not tolerated
    """
    settings = settings or get_settings()
    if connection_names is None:
        connection_names = settings.required_connections
    if continue_on_db_error is None:
        continue_on_db_error = settings.continue_on_db_error

    cfg = load_configuration(get_configuration_file_spec(app_name), decryption_key)

    sink = dial_log_sink(cfg.papertrail_endpoint, app_name, settings.log_sink_level)

    databases: Dict[str, Optional[Engine]] = {}
    for name in connection_names:
        try:
            databases[name] = open_otr_connection(
                app_name,
                cfg,
                name,
                settings.verify_connectivity,
                driver=settings.db_driver,
            )
        except ConnectionNotFoundError as e:
            # A missing entry is a configuration mistake, never tolerated
            sink.error(e.message)
            _release(databases, sink)
            raise
        except DatabaseConnectionError as e:
            sink.error(e.message)
            if not continue_on_db_error:
                _release(databases, sink)
                raise
            logger.warning(f"Continuing without database {name}: {e.message}")
            databases[name] = None

    app = ApplicationContext(
        application_name=app_name,
        configuration=cfg,
        log_sink=sink,
        databases=databases,
        settings=settings,
    )

    app.log_info(
        f"Started Application: {app.application_name}, "
        f"with http root: {cfg.http_root_path}, on port # {cfg.http_server_port}"
    )
    return app
