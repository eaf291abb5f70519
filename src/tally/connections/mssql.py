"""
MS SQL Server connection factory with Azure AD authentication.

- Azure AD access tokens via DefaultAzureCredential, cached per instance
- SQL authentication when username and password options are given
- Reads SQLSTATEs to classify driver errors for the journal
"""
import struct
import time
from typing import Any, Dict, Optional

import pyodbc
from azure.core.credentials import AccessToken
from azure.identity import DefaultAzureCredential

from tally.utility.exceptions import DatabaseConnectionError, DatabaseError
from tally.utility.logger import get_logger

from . import odbc
from .base import BaseConnection
from .constants import MSSQL_CONNECTION_DEFAULTS


class MssqlConnection(BaseConnection, connection_type="mssql"):
    """
    MS SQL Server connection factory.

    Authentication:
    - Azure AD via DefaultAzureCredential (Managed Identity, Azure CLI,
      Environment Credentials and more) when no username is configured
    - SQL authentication when ``username`` and ``password`` options are set

    Example:
        ```python
        factory = MssqlConnection(
            server="myserver.database.windows.net",
            database="mydatabase",
            options={"driver": "ODBC Driver 18 for SQL Server"}
        )
        conn = factory.get_connection()
        ```
    """

    driver_error = pyodbc.Error
    dialect_name = "sqlserver"

    # SQL Server constant for access token
    SQL_COPT_SS_ACCESS_TOKEN = 1256

    # Token refresh buffer (seconds before expiry)
    TOKEN_EXPIRY_BUFFER = 300  # 5 minutes

    def __init__(
        self,
        database: str,
        server: Optional[str] = None,
        options: Optional[Dict[str, Any]] = None,
    ):
        """
        Initialize MSSQL connection factory.

        Args:
            database: Database name
            server: SQL Server address (e.g., "myserver.database.windows.net")
            options: Additional options:
                - driver: ODBC driver name (default: "ODBC Driver 18 for SQL Server")
                - encrypt: Enable encryption (default: "Yes")
                - trust_cert: Trust server certificate (default: "Yes")
                - timeout: Connection timeout in seconds (default: 30)
                - username / password: SQL authentication instead of Azure AD
        """
        super().__init__(database, server, options)

        # Connection options with defaults
        self.driver = self.options.get("driver", MSSQL_CONNECTION_DEFAULTS.driver)
        self.encrypt = self.options.get("encrypt", MSSQL_CONNECTION_DEFAULTS.encrypt)
        self.trust_cert = self.options.get(
            "trust_cert", MSSQL_CONNECTION_DEFAULTS.trust_cert
        )
        self.timeout = self.options.get("timeout", MSSQL_CONNECTION_DEFAULTS.timeout)
        self.username = self.options.get("username")
        self.password = self.options.get("password")

        # Azure credential (reused across connections), only for Azure AD auth
        self._credential = None if self.username else DefaultAzureCredential()

        # Instance-based token cache
        self._token: Optional[AccessToken] = None

        self.logger = get_logger("tally.connections.mssql")

    def get_connection(self) -> pyodbc.Connection:
        """
        Create and return a new MSSQL connection.

        Returns:
            pyodbc.Connection: Database connection (autocommit off)

        Raises:
            DatabaseConnectionError: If the server cannot be reached
            DatabaseError: If connection fails for any other reason
        """
        try:
            conn_str, attrs_before = self._build_connection_string()

            self.logger.debug(f"Connecting to {self._mask_server()}.{self.database}")
            conn = pyodbc.connect(conn_str, attrs_before=attrs_before)
            self.logger.debug(f"Connected to {self._mask_server()}.{self.database}")
            return conn

        except pyodbc.Error as e:
            error_msg = str(e)

            # Check for ODBC driver not found error
            if "IM002" in error_msg:
                raise DatabaseError(
                    f"ODBC Driver not found. Expected: {self.driver}. "
                    f"Install with: brew install msodbcsql18"
                ) from e

            if odbc.is_connection_error(e):
                raise DatabaseConnectionError(f"Connection error: {error_msg}") from e

            raise DatabaseError(f"Database connection failed: {error_msg}") from e
        except DatabaseError:
            raise
        except Exception as e:
            raise DatabaseError(f"Failed to create MSSQL connection: {str(e)}") from e

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

    def _get_token(self) -> AccessToken:
        """
        Get Azure AD token with caching.

        Caches token and only refreshes when within TOKEN_EXPIRY_BUFFER
        seconds of expiration.
        """
        if self._token:
            time_remaining = self._token.expires_on - time.time()
            if time_remaining > self.TOKEN_EXPIRY_BUFFER:
                self.logger.debug(
                    f"Using cached token ({time_remaining:.0f}s remaining)"
                )
                return self._token

        self.logger.debug("Fetching new Azure AD token")
        self._token = self._credential.get_token(
            "https://database.windows.net/.default"
        )

        time_remaining = self._token.expires_on - time.time()
        self.logger.debug(f"New token acquired ({time_remaining:.0f}s until expiry)")
        return self._token

    def _build_connection_string(self) -> tuple[str, Dict]:
        """
        Build ODBC connection string and attributes.

        Returns:
            Tuple of (connection_string, attrs_before_dict)
        """
        conn_str = (
            f"DRIVER={{{self.driver}}};"
            f"SERVER={self.server};"
            f"DATABASE={self.database};"
            f"Encrypt={self.encrypt};"
            f"TrustServerCertificate={self.trust_cert};"
            f"Timeout={self.timeout}"
        )

        if self.username:
            conn_str += f";UID={self.username};PWD={self.password}"
            return conn_str, {}

        token_bytes = self._convert_token_to_bytes(self._get_token())
        return conn_str, {self.SQL_COPT_SS_ACCESS_TOKEN: token_bytes}

    def _convert_token_to_bytes(self, token: AccessToken) -> bytes:
        """
        Convert Azure AD token to MS Windows byte string format.

        SQL Server expects a length-prefixed UTF-16LE encoded token.
        See Microsoft docs for ODBC Azure AD authentication.
        """
        encoded_bytes = token.token.encode("utf-16-le")
        return struct.pack("<i", len(encoded_bytes)) + encoded_bytes

    def _mask_server(self) -> str:
        """Mask server name for logging (show only first part)."""
        if self.server and "." in self.server:
            return self.server.split(".")[0]
        return self.server or ""

    def describe(self) -> str:
        return f"{self._mask_server()}.{self.database}"
