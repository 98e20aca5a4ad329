"""
Domain Layer
============

Value objects describing the application configuration and the
brand-to-database lookup.
"""

from appcontext.domain.configuration import (
    ApplicationConfiguration,
    DatabaseConnectionConfiguration,
)

__all__ = [
    "ApplicationConfiguration",
    "DatabaseConnectionConfiguration",
]
