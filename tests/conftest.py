"""Shared fixtures: configuration files, a local syslog collector and fake engines."""

from __future__ import annotations

import json
import logging
import socket
from pathlib import Path
from typing import Any, Callable, Dict, Iterator, List

import pytest
import sqlalchemy

from appcontext.config import Settings
from appcontext.infrastructure import database
from appcontext.infrastructure.crypto import encrypt_aes
from appcontext.shared.infrastructure.logging import CustomJsonFormatter

KEY = "dummy private key goes here....."
APP_NAME = "billing"
UNREACHABLE_SERVER = "unreachable-sql"


def make_connection(
    short_code: str,
    brand: str,
    password: str = "secret123",
    server: str = "sql01",
    key: str = KEY,
) -> Dict[str, Any]:
    return {
        "BrandName": brand,
        "BrandShortCode": short_code,
        "ConnectionName": f"{short_code}-OTR",
        "M2KWebServer": "web01",
        "Server": server,
        "Database": f"{short_code.lower()}_otr",
        "DBUsername": "svc_app",
        "DBPassword": encrypt_aes(key, password),
    }


class SyslogCollector:
    """UDP socket standing in for the remote log collector."""

    def __init__(self) -> None:
        self.sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        self.sock.bind(("127.0.0.1", 0))
        self.sock.settimeout(2.0)

    @property
    def endpoint(self) -> str:
        host, port = self.sock.getsockname()
        return f"{host}:{port}"

    def receive(self) -> str:
        data, _ = self.sock.recvfrom(65535)
        return data.decode("utf-8", errors="replace")

    def receive_until(self, needle: str, attempts: int = 10) -> str:
        for _ in range(attempts):
            message = self.receive()
            if needle in message:
                return message
        raise AssertionError(f"{needle!r} never reached the collector")

    def close(self) -> None:
        self.sock.close()


@pytest.fixture(autouse=True)
def restore_root_logger() -> Iterator[None]:
    """Drop the console handler setup_logging() installs on the root logger."""
    root = logging.getLogger()
    level = root.level
    yield
    for handler in list(root.handlers):
        if isinstance(handler.formatter, CustomJsonFormatter):
            root.removeHandler(handler)
    root.setLevel(level)


@pytest.fixture
def syslog_collector() -> Iterator[SyslogCollector]:
    collector = SyslogCollector()
    yield collector
    collector.close()


@pytest.fixture
def write_config(tmp_path: Path) -> Callable[..., Path]:
    """Write a configuration file and return its path."""

    def _write(
        connections: List[Dict[str, Any]],
        endpoint: str = "127.0.0.1:514",
        name: str = "config.json",
    ) -> Path:
        path = tmp_path / name
        payload = {
            "Connections": connections,
            "PapertrailEndPoint": endpoint,
            "HttpRootPath": "/billing",
            "HttpServerPort": "8080",
        }
        path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def fake_engines(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> List[Any]:
    """
    Replace SQLAlchemy engine creation with SQLite engines.

    Descriptors whose server is UNREACHABLE_SERVER get an engine that cannot
    connect. Every URL requested is recorded in the returned list.
    """
    requested: List[Any] = []

    def _create_engine(url, **kwargs):
        requested.append(url)
        if url.host == UNREACHABLE_SERVER:
            return sqlalchemy.create_engine(f"sqlite:///{tmp_path}/missing/dir/db.sqlite")
        return sqlalchemy.create_engine("sqlite://")

    monkeypatch.setattr(database, "create_engine", _create_engine)
    return requested


@pytest.fixture
def settings() -> Settings:
    return Settings(
        environment="development",
        required_connections=["GLS", "HBL"],
        continue_on_db_error=True,
        verify_connectivity=True,
        log_sink_level="INFO",
    )
