"""
Common test fixtures and configuration.

This module provides shared fixtures and utilities following tally's testing
philosophy:
- Focus on what callers see: which scripts ran, in which batch
- Use a real SQLite file wherever a database is needed
- Use a scripted stub database to pin the SQL other dialects send
"""
import logging
import shutil
import sqlite3
import sys
import tempfile
from pathlib import Path
from typing import Callable, List, Optional, Tuple

import pytest

# Add src directory to Python path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from tally.connections.base import BaseConnection  # noqa: E402
from tally.connections.manager import ConnectionManager  # noqa: E402
from tally.connections.sqlite import SqliteConnection  # noqa: E402
from tally.engine.scripts import SqlScript  # noqa: E402
from tally.journal.table_journal import TableJournal  # noqa: E402


@pytest.fixture(autouse=True)
def setup_logging():
    """Configure logging for tests."""
    logging.basicConfig(level=logging.DEBUG)
    yield


@pytest.fixture
def temp_dir():
    """Create temporary directory for tests."""
    temp_dir = tempfile.mkdtemp()
    yield Path(temp_dir)
    shutil.rmtree(temp_dir)


class RecordingLogger:
    """Logger double that keeps every message it is given."""

    def __init__(self):
        self.messages: List[Tuple[str, str]] = []

    def info(self, msg: str, color_prefix: Optional[str] = None) -> None:
        self.messages.append(("info", msg))

    def debug(self, msg: str) -> None:
        self.messages.append(("debug", msg))

    def warning(self, msg: str) -> None:
        self.messages.append(("warning", msg))

    def error(self, msg: str) -> None:
        self.messages.append(("error", msg))

    def start(self, msg: str) -> None:
        self.messages.append(("info", f"START {msg}"))

    def success(self, msg: str) -> None:
        self.messages.append(("info", f"OK {msg}"))

    @property
    def infos(self) -> List[str]:
        return [msg for level, msg in self.messages if level == "info"]


@pytest.fixture
def recording_logger():
    return RecordingLogger()


# --- SQLite -----------------------------------------------------------------


@pytest.fixture
def sqlite_path(temp_dir):
    """Path of a SQLite database file that does not exist yet."""
    return temp_dir / "target.db"


@pytest.fixture
def sqlite_manager(sqlite_path):
    """Connection manager for the SQLite test database."""
    return ConnectionManager(SqliteConnection(database=str(sqlite_path)), delay=0)


@pytest.fixture
def sqlite_journal(sqlite_manager, recording_logger):
    """Table journal on the SQLite test database."""
    return TableJournal(sqlite_manager, "sqlite", logger=recording_logger)


@pytest.fixture
def read_tables(sqlite_path):
    """Return the names of the tables in the SQLite test database."""

    def read() -> List[str]:
        with sqlite3.connect(str(sqlite_path)) as conn:
            rows = conn.execute(
                "select name from sqlite_master where type = 'table' "
                "and name not like 'sqlite_%' order by name"
            ).fetchall()
        return [row[0] for row in rows]

    return read


@pytest.fixture
def script():
    """Build a script with a name and optional contents."""

    def build(name: str, contents: str = "") -> SqlScript:
        return SqlScript(name=name, contents=contents)

    return build


# --- Scripted stub database ---------------------------------------------------


class StubDriverError(Exception):
    """Base error of the stub driver."""


class StubMissingObjectError(StubDriverError):
    """Stub driver's 'object does not exist' error."""


class StubConnectionLostError(StubDriverError):
    """Stub driver's connection failure."""


class StubCursor:
    def __init__(self, database: "StubDatabase"):
        self.database = database
        self.rowcount = -1
        self.closed = False
        self._rows: List[tuple] = []

    def execute(self, sql: str, params: tuple = ()):
        params = tuple(params)
        self.database.executed.append((sql, params))
        result = self.database.responder(sql, params)
        if isinstance(result, Exception):
            raise result
        self._rows = list(result or [])
        self.rowcount = len(self._rows) if self._rows else self.database.rowcount

    def fetchone(self):
        return self._rows[0] if self._rows else None

    def fetchall(self):
        return list(self._rows)

    def close(self):
        self.closed = True


class StubDatabase:
    """
    DB-API connection double.

    ``responder(sql, params)`` decides what each statement returns: a list
    of rows, None for no rows, or an exception instance to raise.
    """

    def __init__(self):
        self.executed: List[Tuple[str, tuple]] = []
        self.cursors: List[StubCursor] = []
        self.commits = 0
        self.rollbacks = 0
        self.closed = False
        self.rowcount = 0
        self.responder: Callable[[str, tuple], object] = lambda sql, params: None

    def cursor(self) -> StubCursor:
        cursor = StubCursor(self)
        self.cursors.append(cursor)
        return cursor

    def commit(self):
        self.commits += 1

    def rollback(self):
        self.rollbacks += 1

    def close(self):
        self.closed = True

    def statements(self) -> List[str]:
        return [sql for sql, _ in self.executed]


class StubConnection(BaseConnection):
    """Connection factory handing out StubDatabase connections."""

    driver_error = StubDriverError
    dialect_name = "sqlserver"

    def __init__(self, database: StubDatabase = None):
        super().__init__(database="stub")
        self.stub = database or StubDatabase()
        self.opened = 0
        self.closed = 0
        self.begins = 0

    def get_connection(self):
        self.opened += 1
        return self.stub

    def close_connection(self, conn):
        self.closed += 1

    def begin_transaction(self, conn):
        self.begins += 1

    def is_missing_object_error(self, error):
        return isinstance(error, StubMissingObjectError)

    def is_connection_error(self, error):
        return isinstance(error, StubConnectionLostError)


@pytest.fixture
def stub_db():
    return StubDatabase()


@pytest.fixture
def stub_connection(stub_db):
    return StubConnection(stub_db)


@pytest.fixture
def stub_manager(stub_connection):
    return ConnectionManager(stub_connection, retries=1, delay=0)


@pytest.fixture
def cli_runner():
    """Fixture providing Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()
