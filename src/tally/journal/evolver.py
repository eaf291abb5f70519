"""
Schema evolution for the journal table.

The journal owns the shape of its own table. When the table is missing it
is created in the current shape; when an older installation lacks a
column a later version introduced, that column is added in place. Both
steps are guarded by existence probes, so running them again is a no-op.
"""
from typing import Any

from tally.connections.manager import CommandFactory, ConnectionManager

from .prober import ExistenceProber
from .statements import JournalStatements


class SchemaEvolver:
    """
    Brings the journal table to its current shape.

    Example:
        ```python
        evolver = SchemaEvolver(manager, statements, prober, logger)
        evolver.ensure_storage()  # create, or add BatchNumber, or nothing
        ```
    """

    def __init__(
        self,
        connection_manager: ConnectionManager,
        statements: JournalStatements,
        prober: ExistenceProber,
        logger: Any,
    ):
        self.connection_manager = connection_manager
        self.statements = statements
        self.prober = prober
        self.logger = logger

        self.dialect = statements.dialect
        self.table = statements.table
        self.qualified_name = statements.qualified_name

    def storage_exists(self) -> bool:
        return self.prober.table_exists(self.table.schema_name, self.table.table_name)

    def has_batch_number_column(self) -> bool:
        return self.prober.column_exists(
            self.table.schema_name,
            self.table.table_name,
            self.dialect.batch_number_column,
        )

    def ensure_storage(self) -> None:
        """
        Create the journal table if absent, else add missing columns.

        A freshly created table already has every current column, so the
        column check only runs against a table that existed before.
        """
        if not self.storage_exists():
            self.create_table()
            return

        if not self.has_batch_number_column():
            self.add_batch_number_column()

    def create_table(self) -> None:
        self.logger.info(f"Creating the {self.qualified_name} table")
        self._execute(self.statements.create_table())
        self.logger.info(f"The {self.qualified_name} table has been created")

    def add_batch_number_column(self) -> None:
        self.logger.info(f"Adding {self.dialect.batch_number_column} column")
        self._execute(self.statements.add_batch_number_column())
        self.logger.info(f"Added {self.dialect.batch_number_column} column")

    def _execute(self, sql: str) -> None:
        def run(command_factory: CommandFactory) -> None:
            command_factory().execute(sql)

        self.connection_manager.execute_with_managed_connection(run)
