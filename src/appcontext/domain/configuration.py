"""
Configuration Value Objects
===========================

Immutable models of the JSON configuration file.

Field names follow Python conventions; the PascalCase keys used on disk are
kept as aliases so existing configuration files load unchanged.
"""

from typing import List

from pydantic import BaseModel, ConfigDict, Field

from appcontext.core.exceptions import ConnectionNotFoundError


class DatabaseConnectionConfiguration(BaseModel):
    """One database target (an OTR), identified by brand name or short code."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    brand_name: str = Field(default="", alias="BrandName")
    brand_short_code: str = Field(default="", alias="BrandShortCode")
    connection_name: str = Field(default="", alias="ConnectionName")
    m2k_web_server: str = Field(default="", alias="M2KWebServer")
    server: str = Field(default="", alias="Server")
    database: str = Field(default="", alias="Database")
    db_username: str = Field(default="", alias="DBUsername")
    # Ciphertext on disk, plaintext once loaded; never shown in repr
    db_password: str = Field(default="", alias="DBPassword", repr=False)

    def matches(self, brand_or_short_name: str) -> bool:
        """Case-insensitive match against the short code or the brand name."""
        wanted = brand_or_short_name.lower()
        return self.brand_short_code.lower() == wanted or self.brand_name.lower() == wanted


class ApplicationConfiguration(BaseModel):
    """
    Parsed configuration file.

    `connections` keeps the order of the file. Lookups scan it linearly and
    the first matching entry wins.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    connections: List[DatabaseConnectionConfiguration] = Field(
        default_factory=list,
        alias="Connections"
    )
    papertrail_endpoint: str = Field(default="", alias="PapertrailEndPoint")
    http_root_path: str = Field(default="", alias="HttpRootPath")
    http_server_port: str = Field(default="", alias="HttpServerPort")

    def get_database_config(self, brand_or_short_name: str) -> DatabaseConnectionConfiguration:
        """
        Find the connection for a brand name or short code.

        Args:
            brand_or_short_name: Brand name or short code, any case

        Returns:
            The first matching connection descriptor

        Raises:
            ConnectionNotFoundError: If there are no connections, nothing
                matches, or the match has no connection name
        """
        if not self.connections:
            raise ConnectionNotFoundError(
                brand_or_short_name,
                {"reason": "No OTR configurations found"}
            )

        for otr in self.connections:
            if otr.matches(brand_or_short_name):
                if not otr.connection_name:
                    break
                return otr

        raise ConnectionNotFoundError(
            brand_or_short_name,
            {"reason": "Unknown brand name or short code"}
        )
