"""
Core Exceptions
================

Custom exceptions for the bootstrap helper.

Every failure during startup is raised as one of these types so the caller
decides whether it is fatal. They can be caught and turned into an
`ExceptionPayload` at the HTTP boundary.
"""

from typing import Optional

from pydantic import BaseModel, Field


class ApplicationException(Exception):
    """Base exception for all application errors."""

    def __init__(self, message: str, details: Optional[dict] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class ConfigurationException(ApplicationException):
    """Exception for configuration errors."""


class ConfigurationIOError(ConfigurationException):
    """The configuration file could not be read."""

    def __init__(self, path: str, reason: str, details: Optional[dict] = None):
        self.path = path
        super().__init__(
            f"Unable to read config file: {path}. Error is: {reason}",
            details or {"path": path}
        )


class ConfigurationParseError(ConfigurationException):
    """The configuration file is not valid JSON or has the wrong shape."""


class CredentialError(ApplicationException):
    """A stored database password could not be decrypted."""


class CipherKeyError(CredentialError):
    """The decryption key does not fit the cipher."""


class ResourceNotFoundException(ApplicationException):
    """Exception when a requested resource is not found."""

    def __init__(
        self,
        resource_type: str,
        resource_id: Optional[str] = None,
        details: Optional[dict] = None
    ):
        self.resource_type = resource_type
        self.resource_id = resource_id
        message = f"{resource_type}"
        if resource_id:
            message += f" with id '{resource_id}'"
        message += " not found"
        super().__init__(message, details)


class ConnectionNotFoundError(ResourceNotFoundException):
    """No database connection matches a brand name or short code."""

    def __init__(self, brand_or_short_name: str, details: Optional[dict] = None):
        self.brand_or_short_name = brand_or_short_name
        super().__init__("OTR configuration", brand_or_short_name, details)


class ExternalServiceException(ApplicationException):
    """Base exception for external service failures."""

    def __init__(
        self,
        service_name: str,
        message: str,
        details: Optional[dict] = None
    ):
        self.service_name = service_name
        super().__init__(f"{service_name}: {message}", details)


class DatabaseConnectionError(ExternalServiceException):
    """Exception for database open or ping failures."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__("Database", message, details)


class LogSinkError(ExternalServiceException):
    """Exception when the remote syslog sink cannot be dialed."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__("Syslog", message, details)


class ExceptionPayload(BaseModel):
    """Error body returned at the API boundary."""

    message: str = Field(..., description="Human-readable error message")
