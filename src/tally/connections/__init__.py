"""
Connection management for tally.

Provides database-specific connection factories and the connection
manager that lends them to the journal.

Key components:
- BaseConnection: Interface for database connection factories
- ConnectionManager: Scoped connection, cursor and transaction handling
- SqliteConnection: SQLite connection factory

The pyodbc-backed factories are imported from their own modules so that
only projects using them need an ODBC driver manager installed:
- tally.connections.mssql.MssqlConnection: MS SQL Server (Azure AD support)
- tally.connections.mysql.MysqlConnection: MySQL over ODBC
"""
from .base import BaseConnection
from .constants import get_mssql_defaults, get_mysql_defaults
from .manager import CommandFactory, ConnectionManager
from .sqlite import SqliteConnection

__all__ = [
    "BaseConnection",
    "CommandFactory",
    "ConnectionManager",
    "SqliteConnection",
    "get_mssql_defaults",
    "get_mysql_defaults",
]
