"""
Structured Logging
==================

Console logging, the remote syslog sink, and caller-tagged log lines.

Provides:
- Structured JSON logs on stdout (parseable by log aggregators)
- A UDP syslog sink (e.g. Papertrail) with one handler per process
- Caller-tagged messages: source file, line and function in every line
- Performance timing utilities

Usage:
    from appcontext.shared.infrastructure.logging import get_logger

    logger = get_logger(__name__)
    logger.info("Configuration loaded", extra={"connections": 2})
"""

import inspect
import logging
import os
import socket
import sys
import time
from contextlib import contextmanager
from datetime import datetime, timezone
from logging.handlers import SysLogHandler
from typing import Any

from pythonjsonlogger import jsonlogger

from appcontext.core.exceptions import LogSinkError

SINK_LOGGER_PREFIX = "appcontext.sink"

CALLER_TAGGED_FORMAT = " file: %(filename)s:%(lineno)d, function: %(funcName)s, msg: %(message)s"

_REDACTED = "***REDACTED***"


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """
    Custom JSON formatter with additional fields.

    Adds:
    - timestamp in ISO format
    - environment info
    - redaction of password, token and api key fields
    """

    def __init__(self, *args: Any, environment: str = "unknown", **kwargs: Any):
        super().__init__(*args, **kwargs)
        self.environment = environment

    def add_fields(
        self,
        log_record: dict[str, Any],
        record: logging.LogRecord,
        message_dict: dict[str, Any],
    ) -> None:
        super().add_fields(log_record, record, message_dict)

        if not log_record.get("timestamp"):
            log_record["timestamp"] = datetime.now(timezone.utc).isoformat()

        log_record["environment"] = getattr(record, "environment", self.environment)

        for key, value in list(log_record.items()):
            if not isinstance(value, str):
                continue
            lowered = key.lower()
            if "password" in lowered or "api_key" in lowered:
                log_record[key] = _REDACTED
            elif "token" in lowered:
                log_record[key] = _REDACTED


class CallerTaggedFormatter(logging.Formatter):
    """
    Formats records as `` file: app.py:42, function: main, msg: ...``.

    The location comes from the record itself, so loggers called with
    ``stacklevel`` report the right caller.
    """

    def __init__(self, fmt: str = CALLER_TAGGED_FORMAT, datefmt: str | None = None):
        super().__init__(fmt=fmt, datefmt=datefmt)


def log_entry(message: str, stacklevel: int = 1) -> str:
    """
    Tag a message with the location of a caller.

    Args:
        message: Message text
        stacklevel: 1 tags the direct caller, 2 its caller, and so on

    Returns:
        str: `` file: <basename>:<line>, function: <name>, msg: <message>``

    Raises:
        RuntimeError: If the stack is shallower than `stacklevel`
    """
    frame = inspect.currentframe()
    try:
        for _ in range(stacklevel):
            frame = frame.f_back if frame is not None else None
        if frame is None:
            raise RuntimeError("Could not get context info for logger!")
        filename = os.path.basename(frame.f_code.co_filename)
        return (
            f" file: {filename}:{frame.f_lineno}, "
            f"function: {frame.f_code.co_name}, msg: {message}"
        )
    finally:
        del frame


def setup_logging(
    level: str = "INFO",
    environment: str = "development",
) -> None:
    """
    Configure structured JSON logging for the application.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR)
        environment: Environment name for log context
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper()))

    root_logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(getattr(logging, level.upper()))

    formatter = CustomJsonFormatter(
        fmt="%(asctime)s %(name)s %(levelname)s %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        environment=environment,
    )

    handler.setFormatter(formatter)
    root_logger.addHandler(handler)

    # Silence noisy loggers
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance with the given name.

    Args:
        name: Logger name (typically __name__ of the module)

    Returns:
        logging.Logger: Configured logger instance
    """
    return logging.getLogger(name)


def _parse_endpoint(endpoint: str) -> tuple[str, int]:
    host, sep, port = endpoint.strip().rpartition(":")
    if not sep or not host or not port.isdigit():
        raise ValueError(f"expected host:port, got {endpoint!r}")
    if not 0 < int(port) <= 65535:
        raise ValueError(f"port out of range in {endpoint!r}")
    return host.strip("[]"), int(port)


def dial_log_sink(endpoint: str, app_name: str, level: str = "INFO") -> logging.Logger:
    """
    Connect the remote syslog sink for an application.

    The sink is a dedicated logger that does not propagate to the console
    handlers. Dialing again for the same application replaces its handler.

    Args:
        endpoint: ``host:port`` of the UDP syslog collector
        app_name: Tag sent with every message
        level: Severity threshold of the sink

    Returns:
        logging.Logger: Logger writing to the sink

    Raises:
        LogSinkError: If the endpoint is malformed or cannot be resolved
    """
    try:
        address = _parse_endpoint(endpoint)
        handler = SysLogHandler(
            address=address,
            facility=SysLogHandler.LOG_USER,
            socktype=socket.SOCK_DGRAM,
        )
    except (ValueError, OSError) as e:
        raise LogSinkError(
            f"FATAL ERROR: Unable to dial syslog on: {endpoint}",
            {"endpoint": endpoint, "error": str(e)}
        ) from e

    handler.ident = f"{app_name}: "
    handler.setLevel(level)
    handler.setFormatter(CallerTaggedFormatter())

    sink = logging.getLogger(f"{SINK_LOGGER_PREFIX}.{app_name}")
    close_log_sink(sink)
    sink.setLevel(level)
    sink.propagate = False
    sink.addHandler(handler)
    return sink


def close_log_sink(sink: logging.Logger) -> None:
    """Flush and detach every handler of a sink logger."""
    for handler in list(sink.handlers):
        sink.removeHandler(handler)
        handler.flush()
        handler.close()


@contextmanager
def log_latency(logger: logging.Logger, operation: str, **extra_context: Any):
    """
    Context manager for measuring and logging operation latency.

    Logs "<operation> completed" at INFO, or "<operation> failed" at WARNING
    when the block raises (the exception propagates).

    Usage:
        with log_latency(logger, "database_ping", connection_name="GLS"):
            conn.execute(text("SELECT 1"))

    Args:
        logger: Logger instance
        operation: Operation name for logging
        **extra_context: Additional context to include in log
    """
    start = time.perf_counter()

    def _context() -> dict[str, Any]:
        latency_ms = (time.perf_counter() - start) * 1000
        return {
            "operation": operation,
            "latency_ms": round(latency_ms, 2),
            **extra_context,
        }

    try:
        yield
    except Exception as e:
        logger.warning(f"{operation} failed: {e}", extra=_context())
        raise
    logger.info(f"{operation} completed", extra=_context())
