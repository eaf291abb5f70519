"""
Connection configuration.
"""
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from tally.connections.constants import get_mssql_defaults, get_mysql_defaults

CONNECTION_TYPES = ("mssql", "mysql", "sqlite")


class ConnectionConfig(BaseModel):
    """
    Configuration for the target database connection.

    Example:
        ```yaml
        connection:
          type: mssql
          server: myserver.database.windows.net
          database: app
          options:
            driver: ODBC Driver 18 for SQL Server
        ```
    """

    type: str = Field(..., description="Connection type: mssql, mysql or sqlite")
    server: Optional[str] = Field(default=None, description="Database server")
    database: str = Field(..., description="Database name, or file for sqlite")
    options: Dict[str, Any] = Field(
        default_factory=dict, description="Driver-specific options"
    )

    @field_validator("type")
    @classmethod
    def validate_type(cls, v):
        """Validate connection type."""
        if v not in CONNECTION_TYPES:
            raise ValueError(
                f"Connection type must be one of {list(CONNECTION_TYPES)}, got '{v}'"
            )
        return v

    @model_validator(mode="after")
    def validate_server(self):
        """Server-based databases need a server."""
        if self.type in ("mssql", "mysql") and not self.server:
            raise ValueError(f"A server is required for {self.type} connections")
        return self

    def get_merged_options(self) -> Dict[str, Any]:
        """Driver defaults overlaid with configured options."""
        if self.type == "mssql":
            options = get_mssql_defaults()
        elif self.type == "mysql":
            options = get_mysql_defaults()
        else:
            options = {}
        options.update(self.options)
        return options
