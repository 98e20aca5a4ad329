"""
Database Infrastructure
=======================

Opens pooled connections (SQLAlchemy engines) to the OTR databases named in
the configuration file.

Each engine is an independent, thread-safe connection pool that lives until
`dispose()` is called. Opening with verification checks out one connection
right away, which consumes a server-side session on the target database.
"""

from typing import Any, Dict

from sqlalchemy import create_engine, text
from sqlalchemy.engine import URL, Engine
from sqlalchemy.exc import SQLAlchemyError

from appcontext.config import get_settings
from appcontext.core.exceptions import DatabaseConnectionError
from appcontext.domain.configuration import (
    ApplicationConfiguration,
    DatabaseConnectionConfiguration,
)
from appcontext.shared.infrastructure.logging import get_logger, log_latency

logger = get_logger(__name__)

CONNECTION_TIMEOUT_SECONDS = 300

_CONNECTION_STRING_TEMPLATE = (
    "server={server};database={database};user id={username};password={password};"
    "connection timeout={timeout};app name={app_name}"
)


def build_connection_string(
    app_name: str,
    descriptor: DatabaseConnectionConfiguration,
    redact_password: bool = False,
) -> str:
    """
    Build the semicolon-delimited connection string for a descriptor.

    Args:
        app_name: Client name reported to the server
        descriptor: Resolved connection descriptor (plaintext password)
        redact_password: Replace the password, for logging

    Returns:
        str: ``server=...;database=...;user id=...;password=...;connection timeout=300;app name=...``
    """
    return _CONNECTION_STRING_TEMPLATE.format(
        server=descriptor.server,
        database=descriptor.database,
        username=descriptor.db_username,
        password="***REDACTED***" if redact_password else descriptor.db_password,
        timeout=CONNECTION_TIMEOUT_SECONDS,
        app_name=app_name,
    )


def build_connection_url(descriptor: DatabaseConnectionConfiguration, driver: str) -> URL:
    """SQLAlchemy URL carrying the same server, database and credentials."""
    return URL.create(
        drivername=driver,
        username=descriptor.db_username or None,
        password=descriptor.db_password or None,
        host=descriptor.server or None,
        database=descriptor.database or None,
    )


def build_connect_args(driver: str, app_name: str) -> Dict[str, Any]:
    """DBAPI arguments for the login timeout and client app name."""
    if driver.endswith("+pymssql"):
        return {"login_timeout": CONNECTION_TIMEOUT_SECONDS, "appname": app_name}
    return {}


def open_connection(
    app_name: str,
    descriptor: DatabaseConnectionConfiguration,
    verify_connectivity: bool = True,
    *,
    driver: str | None = None,
) -> Engine:
    """
    Open a connection pool for one database descriptor.

    Args:
        app_name: Client name reported to the server
        descriptor: Resolved connection descriptor
        verify_connectivity: Ping the database before returning
        driver: SQLAlchemy driver name (defaults to settings.db_driver)

    Returns:
        Engine: Live connection pool

    Raises:
        DatabaseConnectionError: If the engine cannot be created or the ping fails
    """
    driver = driver or get_settings().db_driver
    name = descriptor.connection_name or descriptor.brand_short_code

    logger.debug(
        f"Opening database {name}: "
        f"{build_connection_string(app_name, descriptor, redact_password=True)}"
    )

    try:
        engine = create_engine(
            build_connection_url(descriptor, driver),
            connect_args=build_connect_args(driver, app_name),
            pool_pre_ping=True,
        )
    except (SQLAlchemyError, ImportError) as e:
        raise DatabaseConnectionError(
            f"Error opening database connection to {name}: {e}",
            {"connection_name": name}
        ) from e

    if verify_connectivity:
        try:
            with log_latency(logger, "database_ping", connection_name=name):
                with engine.connect() as conn:
                    conn.execute(text("SELECT 1"))
        except SQLAlchemyError as e:
            engine.dispose()
            raise DatabaseConnectionError(
                f"Error pinging database {name}: {e}",
                {"connection_name": name}
            ) from e

    return engine


def open_otr_connection(
    app_name: str,
    configuration: ApplicationConfiguration,
    brand_or_short_name: str,
    verify_connectivity: bool = True,
    *,
    driver: str | None = None,
) -> Engine:
    """
    Resolve a brand name or short code and open its connection pool.

    Raises:
        ConnectionNotFoundError: If no connection matches
        DatabaseConnectionError: If opening or pinging fails
    """
    descriptor = configuration.get_database_config(brand_or_short_name)
    return open_connection(app_name, descriptor, verify_connectivity, driver=driver)
