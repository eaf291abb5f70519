"""
SQLite connection factory.

Simple, file-based database - perfect for local development, tests
and small tools that keep their own upgrade history.
"""
import re
import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from tally.utility.exceptions import DatabaseConnectionError
from tally.utility.logger import get_logger

from .base import BaseConnection

# Timestamps are stored as ISO-8601 text
sqlite3.register_adapter(datetime, lambda value: value.isoformat(" "))

COMMENT_PATTERN = re.compile(r"--[^\n]*|/\*.*?\*/", re.DOTALL)


class SqliteConnection(BaseConnection, connection_type="sqlite"):
    """
    SQLite connection factory.

    ``database`` is the path to the database file, or ``:memory:``.
    Parent directories of a file path are created on first connect.

    Example:
        ```python
        factory = SqliteConnection(database="data/app.db")
        ```
    """

    driver_error = sqlite3.Error
    dialect_name = "sqlite"

    MISSING_OBJECT_MESSAGES = ("no such table", "no such column", "unknown database")

    def __init__(
        self,
        database: str,
        server: Optional[str] = None,
        options: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(database, server, options)
        self.timeout = self.options.get("timeout", 5.0)
        self.logger = get_logger("tally.connections.sqlite")

    def get_connection(self) -> sqlite3.Connection:
        """
        Open the database file.

        The connection is in autocommit mode; transactions are opened
        explicitly with begin_transaction().

        Raises:
            DatabaseConnectionError: If the file cannot be opened
        """
        if self.database != ":memory:":
            Path(self.database).parent.mkdir(parents=True, exist_ok=True)
        try:
            conn = sqlite3.connect(
                self.database, timeout=self.timeout, isolation_level=None
            )
        except sqlite3.Error as e:
            raise DatabaseConnectionError(
                f"Unable to open SQLite database {self.database}: {str(e)}"
            ) from e
        self.logger.debug(f"Opened SQLite database {self.database}")
        return conn

    def close_connection(self, conn: sqlite3.Connection) -> None:
        if conn:
            conn.close()
            self.logger.debug("Connection closed")

    def begin_transaction(self, conn: sqlite3.Connection) -> None:
        conn.execute("begin")

    def run_script(self, cursor: Any, sql: str) -> None:
        """
        Execute a script that may hold several statements.

        Statements run one at a time on the given cursor, so they join
        the connection's open transaction. executescript() is not used:
        it commits a pending transaction before it runs.
        """
        for statement in split_statements(sql):
            cursor.execute(statement)

    def is_missing_object_error(self, error: Exception) -> bool:
        if not isinstance(error, sqlite3.OperationalError):
            return False
        message = str(error).lower()
        return any(marker in message for marker in self.MISSING_OBJECT_MESSAGES)

    def is_connection_error(self, error: Exception) -> bool:
        if not isinstance(error, sqlite3.OperationalError):
            return False
        return "unable to open database" in str(error).lower()


def split_statements(sql: str) -> List[str]:
    """
    Split a script into single statements.

    sqlite3.complete_statement() decides where a statement ends, so
    semicolons inside string literals, comments and trigger bodies are
    kept. Fragments holding only whitespace or comments are dropped. A
    trailing statement without a semicolon is given one.
    """
    statements: List[str] = []
    buffer = ""
    for piece in sql.split(";"):
        buffer += piece
        if sqlite3.complete_statement(buffer + ";"):
            statements.append(buffer + ";")
            buffer = ""
        else:
            buffer += ";"
    # The loop appends one semicolon too many to an unfinished remainder
    statements.append(buffer[:-1])
    return [s.strip() for s in statements if not _is_blank(s)]


def _is_blank(statement: str) -> bool:
    return not COMMENT_PATTERN.sub("", statement).strip(" \t\r\n;")
