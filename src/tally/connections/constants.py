"""
Shared default configurations for database connections.
"""

from pydantic import BaseModel, Field


class MssqlConnectionDefaults(BaseModel):
    """Default MSSQL connection configuration."""

    driver: str = Field(
        default="ODBC Driver 18 for SQL Server",
        description="ODBC driver name for SQL Server connections",
    )
    encrypt: str = Field(
        default="Yes", description="Enable encryption for SQL Server connections"
    )
    trust_cert: str = Field(
        default="Yes", description="Trust server certificate for SQL Server connections"
    )
    timeout: int = Field(default=30, ge=1, description="Connection timeout in seconds")


class MysqlConnectionDefaults(BaseModel):
    """Default MySQL connection configuration."""

    driver: str = Field(
        default="MySQL ODBC 8.0 Unicode Driver",
        description="ODBC driver name for MySQL connections",
    )
    port: int = Field(default=3306, ge=1, le=65535, description="MySQL TCP port")


# Singleton instances for easy access
MSSQL_CONNECTION_DEFAULTS = MssqlConnectionDefaults()
MYSQL_CONNECTION_DEFAULTS = MysqlConnectionDefaults()


def get_mssql_defaults() -> dict:
    """Get default MSSQL connection options."""
    return MSSQL_CONNECTION_DEFAULTS.model_dump()


def get_mysql_defaults() -> dict:
    """Get default MySQL connection options."""
    return MYSQL_CONNECTION_DEFAULTS.model_dump()
