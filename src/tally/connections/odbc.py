"""
Shared helpers for pyodbc-backed connections.

SQL Server and MySQL are both reached through pyodbc, so they read
driver errors the same way: by SQLSTATE.
"""
from typing import Optional

import pyodbc

# 42S02: base table or view not found, 42S22: column not found
MISSING_OBJECT_SQLSTATES = ("42S02", "42S22")


def get_sqlstate(error: Exception) -> Optional[str]:
    """
    Extract the SQLSTATE from a pyodbc error.

    pyodbc puts the SQLSTATE in the first argument. Some wrappers expose
    it as a ``sqlstate`` attribute instead.
    """
    sqlstate = getattr(error, "sqlstate", None)
    if sqlstate:
        return sqlstate
    args = getattr(error, "args", ())
    if args and isinstance(args[0], str) and len(args[0]) == 5:
        return args[0]
    return None


def is_missing_object_error(error: Exception) -> bool:
    """Whether a pyodbc error means a table or column does not exist."""
    if not isinstance(error, pyodbc.Error):
        return False
    return get_sqlstate(error) in MISSING_OBJECT_SQLSTATES


def is_connection_error(error: Exception) -> bool:
    """Whether a pyodbc error is connection-related (SQLSTATE class 08)."""
    if not isinstance(error, pyodbc.Error):
        return False
    sqlstate = get_sqlstate(error)
    if sqlstate:
        return sqlstate.startswith("08")
    # Only if SQLSTATE is not available
    return "08S01" in str(error)
