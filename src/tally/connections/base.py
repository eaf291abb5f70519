"""
Base connection interface for database connections.

Defines the contract that all database-specific connection
factories must implement.
"""
import importlib
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, Type

# Driver modules register their factories when first imported
DRIVER_MODULES = {
    "mssql": "tally.connections.mssql",
    "mysql": "tally.connections.mysql",
    "sqlite": "tally.connections.sqlite",
}


class BaseConnection(ABC):
    """
    Abstract base class for database connection factories.

    Connection factories are responsible for creating and closing
    database connections with database-specific authentication and
    connection string building. They also know how to read their
    driver's errors, which is what lets the journal tell a missing
    table apart from a lost connection.

    Each database type (MSSQL, MySQL, SQLite) implements this
    interface and registers itself under a ``connection_type``.

    Example:
        ```python
        class MssqlConnection(BaseConnection, connection_type="mssql"):
            def get_connection(self) -> Any:
                # MSSQL-specific connection logic with Azure AD
                ...

            def close_connection(self, conn: Any) -> None:
                # Clean up MSSQL connection
                ...
        ```
    """

    _registry: Dict[str, Type["BaseConnection"]] = {}

    # Base exception class raised by the underlying driver
    driver_error: Type[Exception] = Exception

    # Dialect the journal should use against this kind of database
    dialect_name: Optional[str] = None

    def __init_subclass__(cls, connection_type: str = None, **kwargs):
        super().__init_subclass__(**kwargs)
        if connection_type:
            cls._registry[connection_type] = cls

    @classmethod
    def create(cls, config: Any) -> "BaseConnection":
        """
        Create a connection factory using the registry pattern.

        Args:
            config: ConnectionConfig (type, server, database and merged
                options)

        Returns:
            Connection factory of the appropriate type

        Raises:
            ValueError: If the connection type is not registered
        """
        connection_type = config.type
        if connection_type not in cls._registry and connection_type in DRIVER_MODULES:
            importlib.import_module(DRIVER_MODULES[connection_type])
        if connection_type not in cls._registry:
            raise ValueError(f"Unknown connection type: {connection_type}")
        return cls._registry[connection_type](
            database=config.database,
            server=config.server,
            options=config.get_merged_options(),
        )

    def __init__(
        self,
        database: str,
        server: Optional[str] = None,
        options: Optional[Dict[str, Any]] = None,
    ):
        """
        Initialize base connection.

        Args:
            database: Database name (or file path for file-based databases)
            server: Database server address
            options: Additional database-specific options
        """
        self.server = server
        self.database = database
        self.options = options or {}

    @abstractmethod
    def get_connection(self) -> Any:
        """
        Create and return a new database connection.

        Returns:
            DB-API connection object (type varies by database)
        """
        pass

    @abstractmethod
    def close_connection(self, conn: Any) -> None:
        """
        Close a database connection.

        Args:
            conn: Database connection to close
        """
        pass

    def begin_transaction(self, conn: Any) -> None:
        """
        Open a transaction on the connection.

        Default implementation does nothing: drivers that connect with
        autocommit off start a transaction with the first statement.
        Override in subclasses whose connections run in autocommit mode.

        Args:
            conn: Open database connection
        """
        pass

    def run_script(self, cursor: Any, sql: str) -> None:
        """
        Execute the full text of an upgrade script on a cursor.

        Args:
            cursor: Cursor bound to an open connection
            sql: Script contents
        """
        cursor.execute(sql)

    def is_missing_object_error(self, error: Exception) -> bool:
        """
        Whether a driver error means the queried table or column is absent.

        Default implementation returns False, so every error propagates.
        """
        return False

    def is_connection_error(self, error: Exception) -> bool:
        """
        Whether a driver error means the connection failed or was lost.

        Default implementation returns False.
        """
        return False

    def describe(self) -> str:
        """Short, credential-free description for logging."""
        if self.server:
            return f"{self.server}.{self.database}"
        return str(self.database)
