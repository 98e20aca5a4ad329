"""
Configuration Module
====================

Ambient settings for the bootstrap helper using Pydantic, plus the small
environment lookups a service performs at startup (configuration
file location and HTTP port).

The application configuration proper (database connections, log endpoint,
HTTP root) lives in a JSON file and is modelled in `appcontext.domain`.
"""

import os
from functools import lru_cache
from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_CONFIG_FILE = "config.json"
CONFIG_FILE_ENV_SUFFIX = "_CONFIGFILE"

# Checked in order by get_http_port()
HTTP_PORT_ENV_VARS = ("ASPNETCORE_PORT", "HTTP_PLATFORM_PORT")

_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


class Settings(BaseSettings):
    """
    Process settings loaded from environment variables (prefix ``APPCONTEXT_``).

    Uses Pydantic for validation and type safety.
    """

    # ========== Application ==========
    app_name: str = Field(default="appcontext", description="Application name")
    environment: str = Field(default="development", description="Environment name")
    decryption_key: Optional[str] = Field(
        default=None,
        description="AES key for the database passwords in the configuration file"
    )
    host: str = Field(default="0.0.0.0", description="Server host")
    default_http_port: str = Field(
        default="8080",
        description="HTTP port used when no platform port variable is set"
    )

    # ========== Logging ==========
    log_level: str = Field(default="INFO", description="Console log level")
    log_sink_level: str = Field(
        default="INFO",
        description="Severity threshold of the remote syslog sink"
    )

    # ========== Database ==========
    db_driver: str = Field(
        default="mssql+pymssql",
        description="SQLAlchemy driver name used to open OTR connections"
    )
    required_connections: List[str] = Field(
        default=["GLS", "HBL"],
        description="Brand names or short codes opened at startup"
    )
    continue_on_db_error: bool = Field(
        default=True,
        description="Keep starting up when a database connection fails"
    )
    verify_connectivity: bool = Field(
        default=True,
        description="Ping each database right after opening it"
    )

    model_config = SettingsConfigDict(
        env_prefix="APPCONTEXT_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Ensure environment is one of allowed values."""
        allowed = {"development", "staging", "production"}
        if v not in allowed:
            raise ValueError(f"environment must be one of {allowed}")
        return v

    @field_validator("log_level", "log_sink_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in _LOG_LEVELS:
            raise ValueError(f"log level must be one of {_LOG_LEVELS}")
        return level


@lru_cache()
def get_settings() -> Settings:
    """Returns cached Settings instance."""
    return Settings()


def get_configuration_file_spec(app_name: str) -> str:
    """
    Resolve the path of the JSON configuration file for an application.

    Reads ``<app_name>_CONFIGFILE`` and falls back to ``config.json`` in the
    working directory.
    """
    return os.getenv(app_name + CONFIG_FILE_ENV_SUFFIX) or DEFAULT_CONFIG_FILE


def get_http_port(default_port: str) -> str:
    """
    Resolve the HTTP port the service should listen on.

    The platform-assigned port wins over the legacy platform variable, which
    wins over `default_port`. Empty variables count as unset.
    """
    for name in HTTP_PORT_ENV_VARS:
        port = os.getenv(name)
        if port:
            return port
    return default_port
