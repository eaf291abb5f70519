"""
MySQL connection factory over pyodbc and the MySQL ODBC driver.
"""
from typing import Any, Dict, Optional

import pyodbc

from tally.utility.exceptions import DatabaseConnectionError, DatabaseError
from tally.utility.logger import get_logger

from . import odbc
from .base import BaseConnection
from .constants import MYSQL_CONNECTION_DEFAULTS


class MysqlConnection(BaseConnection, connection_type="mysql"):
    """
    MySQL connection factory.

    Example:
        ```python
        factory = MysqlConnection(
            server="localhost",
            database="app",
            options={"username": "deploy", "password": "secret"},
        )
        ```
    """

    driver_error = pyodbc.Error
    dialect_name = "mysql"

    def __init__(
        self,
        database: str,
        server: Optional[str] = None,
        options: Optional[Dict[str, Any]] = None,
    ):
        """
        Initialize MySQL connection factory.

        Args:
            database: Database (schema) name
            server: MySQL host
            options: Additional options:
                - driver: ODBC driver name (default: "MySQL ODBC 8.0 Unicode Driver")
                - port: TCP port (default: 3306)
                - username / password: Credentials
        """
        super().__init__(database, server, options)
        self.driver = self.options.get("driver", MYSQL_CONNECTION_DEFAULTS.driver)
        self.port = self.options.get("port", MYSQL_CONNECTION_DEFAULTS.port)
        self.username = self.options.get("username")
        self.password = self.options.get("password")
        self.logger = get_logger("tally.connections.mysql")

    def get_connection(self) -> pyodbc.Connection:
        """
        Create and return a new MySQL connection.

        Raises:
            DatabaseConnectionError: If the server cannot be reached
            DatabaseError: If connection fails for any other reason
        """
        try:
            self.logger.debug(f"Connecting to {self.describe()}")
            conn = pyodbc.connect(self._build_connection_string())
            self.logger.debug(f"Connected to {self.describe()}")
            return conn
        except pyodbc.Error as e:
            error_msg = str(e)
            if "IM002" in error_msg:
                raise DatabaseError(
                    f"ODBC Driver not found. Expected: {self.driver}"
                ) from e
            if odbc.is_connection_error(e):
                raise DatabaseConnectionError(f"Connection error: {error_msg}") from e
            raise DatabaseError(f"Database connection failed: {error_msg}") from e

    def close_connection(self, conn: pyodbc.Connection) -> None:
        """Close a database connection."""
        try:
            if conn:
                conn.close()
                self.logger.debug("Connection closed")
        except pyodbc.Error as e:
            self.logger.warning(f"Error closing connection: {str(e)}")

    def is_missing_object_error(self, error: Exception) -> bool:
        return odbc.is_missing_object_error(error)

    def is_connection_error(self, error: Exception) -> bool:
        return odbc.is_connection_error(error)

    def _build_connection_string(self) -> str:
        conn_str = (
            f"DRIVER={{{self.driver}}};"
            f"SERVER={self.server};"
            f"PORT={self.port};"
            f"DATABASE={self.database}"
        )
        if self.username:
            conn_str += f";UID={self.username};PWD={self.password}"
        return conn_str
