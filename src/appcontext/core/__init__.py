"""
Core Module
============

Shared core abstractions used across the bootstrap helper.

This module contains framework-agnostic code: the exception hierarchy and
the error payload returned at API boundaries.
"""

from appcontext.core.exceptions import (
    ApplicationException,
    ConfigurationException,
    ConfigurationIOError,
    ConfigurationParseError,
    CredentialError,
    CipherKeyError,
    ResourceNotFoundException,
    ConnectionNotFoundError,
    ExternalServiceException,
    DatabaseConnectionError,
    LogSinkError,
    ExceptionPayload,
)

__all__ = [
    "ApplicationException",
    "ConfigurationException",
    "ConfigurationIOError",
    "ConfigurationParseError",
    "CredentialError",
    "CipherKeyError",
    "ResourceNotFoundException",
    "ConnectionNotFoundError",
    "ExternalServiceException",
    "DatabaseConnectionError",
    "LogSinkError",
    "ExceptionPayload",
]
