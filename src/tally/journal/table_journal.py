"""
Table-backed journal: upgrade history kept in a table of the target database.

The journal is a plain, auditable log. It does not enforce uniqueness:
storing the same script twice records two rows, and callers check
get_executed_scripts() before running a script. It also takes no locks;
callers running upgrades from several processes at once need their own
mutual exclusion around discover, apply and store.
"""
from datetime import datetime
from typing import Any, List, Optional, Union

import polars as pl

from tally.connections.manager import CommandFactory, ConnectionManager
from tally.utility.logger import get_logger
from tally.utility.settings import settings

from .base import Journal
from .dialects import Dialect, get_dialect
from .evolver import SchemaEvolver
from .prober import ExistenceProber
from .statements import JournalStatements, JournalTable

# Marker prepended to a script name when its entry is rolled back
ROLLED_BACK_PREFIX = settings.journal.rolled_back_prefix


class TableJournal(Journal):
    """
    Journal stored in a table, for any registered dialect.

    The table is created on the first store and upgraded in place when it
    predates batch numbers. Reads never write: when the table does not
    exist yet the database is treated as being at its initial state.

    Batch numbers start at 1. An empty or missing journal reports a
    current batch number of 0, so the first stored script lands in
    batch 1.

    Example:
        ```python
        manager = ConnectionManager(SqliteConnection(database="app.db"))
        journal = TableJournal(manager, "sqlite")

        journal.get_executed_scripts()  # []
        journal.store_executed_script(SqlScript(name="001_init.sql", contents=""))
        journal.get_executed_scripts()  # ["001_init.sql"]
        journal.get_current_batch_number()  # 1
        ```
    """

    def __init__(
        self,
        connection_manager: ConnectionManager,
        dialect: Union[str, Dialect],
        table_name: Optional[str] = None,
        schema_name: Optional[str] = None,
        logger: Optional[Any] = None,
    ):
        """
        Initialize table journal.

        Args:
            connection_manager: Lends connections for every operation
            dialect: Dialect name or Dialect of the target database
            table_name: Journal table name (default: SchemaVersions)
            schema_name: Schema holding the table (default: none)
            logger: Anything with an ``info(str)`` method
        """
        self.connection_manager = connection_manager
        self.dialect = get_dialect(dialect) if isinstance(dialect, str) else dialect
        self.table = JournalTable(
            schema_name=schema_name,
            table_name=table_name or settings.journal.table_name,
        )
        self.logger = logger or get_logger(f"tally.journal.{self.table.table_name}")

        self.statements = JournalStatements(self.dialect, self.table)
        self.prober = ExistenceProber(connection_manager, self.dialect)
        self.evolver = SchemaEvolver(
            connection_manager, self.statements, self.prober, self.logger
        )

    @property
    def qualified_name(self) -> str:
        """Quoted, schema-qualified journal table name."""
        return self.statements.qualified_name

    def get_executed_scripts(self) -> List[str]:
        return self._executed_scripts()

    def get_executed_scripts_on_batch_number(self, batch_number: int) -> List[str]:
        return self._executed_scripts(batch_number)

    def _executed_scripts(self, batch_number: Optional[int] = None) -> List[str]:
        self.logger.info("Fetching list of already executed scripts.")
        if not self.evolver.storage_exists():
            self.logger.info(
                f"The {self.qualified_name} table could not be found. "
                "The database is assumed to be at version 0."
            )
            return []

        if batch_number is None:
            sql, params = self.statements.select_executed_scripts(), ()
        elif not self.evolver.has_batch_number_column():
            # Every legacy row is in batch 0
            if batch_number != 0:
                return []
            sql, params = self.statements.select_executed_scripts(), ()
        else:
            sql = self.statements.select_executed_scripts_by_batch()
            params = (batch_number,)

        def read(command_factory: CommandFactory) -> List[str]:
            cursor = command_factory()
            cursor.execute(sql, params)
            return [row[0] for row in cursor.fetchall()]

        return self.connection_manager.execute_with_managed_connection(read)

    def get_current_batch_number(self) -> int:
        """
        Highest batch number in the journal.

        Returns 0 when the table is missing, empty, or has no batch
        number column yet.
        """
        if not self.evolver.storage_exists():
            return 0
        if not self.evolver.has_batch_number_column():
            return 0
        return self._read_current_batch_number()

    def _read_current_batch_number(self) -> int:
        sql = self.statements.select_current_batch_number()

        def read(command_factory: CommandFactory) -> int:
            cursor = command_factory()
            cursor.execute(sql)
            row = cursor.fetchone()
            if row is None or row[0] is None:
                return 0
            return int(row[0])

        return self.connection_manager.execute_with_managed_connection(read)

    def store_executed_script(
        self, script: Any, batch_number: Optional[int] = None
    ) -> None:
        """
        Record a script as executed.

        Creates or upgrades the journal table first. Each call opens a new
        batch (current + 1) unless ``batch_number`` is given, which lets a
        caller keep every script of one upgrade run in the same batch.

        Args:
            script: The executed script; only its ``name`` is read
            batch_number: Batch to record the script under
        """
        if batch_number is not None and batch_number < 1:
            raise ValueError(f"Batch number must be at least 1, got {batch_number}")

        self.evolver.ensure_storage()

        if batch_number is None:
            batch_number = self._read_current_batch_number() + 1

        sql = self.statements.insert_executed_script()
        params = (script.name, datetime.now(), batch_number)

        def insert(command_factory: CommandFactory) -> None:
            command_factory().execute(sql, params)

        self.connection_manager.execute_with_managed_connection(insert)
        self.logger.debug(f"Recorded {script.name} in batch {batch_number}")

    def update_script_entry(self, script_name: str) -> int:
        """
        Mark a script's entry as rolled back.

        The entry is renamed to ``rolledback_<name>``, which keeps the audit
        row but removes the original name from the executed list. A name
        with no entry affects nothing and is not an error. Renaming an
        already rolled back name adds the prefix again.

        Returns:
            Number of entries renamed
        """
        if not self.evolver.storage_exists():
            self.logger.info(
                f"The {self.qualified_name} table could not be found. "
                f"Nothing to roll back for {script_name}."
            )
            return 0

        sql = self.statements.update_script_name()
        params = (f"{ROLLED_BACK_PREFIX}{script_name}", script_name)

        def update(command_factory: CommandFactory) -> int:
            cursor = command_factory()
            cursor.execute(sql, params)
            return cursor.rowcount

        renamed = self.connection_manager.execute_with_managed_connection(update)
        self.logger.info(f"Marked {script_name} as rolled back ({renamed} entries)")
        return renamed

    def get_history(self) -> pl.DataFrame:
        """
        Every journal entry, ordered by when it was recorded.

        Returns:
            DataFrame with id, script_name, applied and batch_number columns
            (empty when the table does not exist)
        """
        schema = {
            "id": pl.Int64,
            "script_name": pl.Utf8,
            "applied": pl.Datetime,
            "batch_number": pl.Int64,
        }
        if not self.evolver.storage_exists():
            return pl.DataFrame(schema=schema)

        sql = self.statements.select_history(self.evolver.has_batch_number_column())

        def read(command_factory: CommandFactory) -> List[tuple]:
            cursor = command_factory()
            cursor.execute(sql)
            return [tuple(row) for row in cursor.fetchall()]

        rows = self.connection_manager.execute_with_managed_connection(read)
        records = [
            (int(row_id), name, _as_datetime(applied), int(batch))
            for row_id, name, applied, batch in rows
        ]
        return pl.DataFrame(records, schema=schema, orient="row")


def _as_datetime(value: Any) -> datetime:
    """Drivers that keep timestamps as text (SQLite) return ISO strings."""
    if isinstance(value, str):
        return datetime.fromisoformat(value)
    return value
