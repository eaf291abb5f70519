"""
Existence probing for the journal table and its columns.

Probes run a live introspection query through the connection manager
rather than a catalog API, so the journal works against any database it
can only reach by executing commands.
"""
from typing import Optional, Tuple

from tally.connections.manager import CommandFactory, ConnectionManager

from .dialects import Dialect, ProbeQuery


class ExistenceProber:
    """
    Answers whether the journal table, or one of its columns, exists.

    Each answer is one query. A driver error that means "no such object"
    is answered with False; see ConnectionManager.probe for how other
    errors surface.
    """

    def __init__(self, connection_manager: ConnectionManager, dialect: Dialect):
        self.connection_manager = connection_manager
        self.dialect = dialect

    def table_exists(self, schema_name: Optional[str], table_name: str) -> bool:
        schema = self._unquote(schema_name)
        query = self.dialect.table_exists_query(schema)
        params = query.bind(self.dialect.unquote(table_name), schema)
        return self._probe(query, params)

    def column_exists(
        self, schema_name: Optional[str], table_name: str, column_name: str
    ) -> bool:
        schema = self._unquote(schema_name)
        query = self.dialect.column_exists_query(schema)
        params = query.bind(
            self.dialect.unquote(table_name),
            schema,
            self.dialect.unquote(column_name),
        )
        return self._probe(query, params)

    def _unquote(self, schema_name: Optional[str]) -> Optional[str]:
        if not schema_name:
            return None
        return self.dialect.unquote(schema_name)

    def _probe(self, query: ProbeQuery, params: Tuple[str, ...]) -> bool:
        def check(command_factory: CommandFactory) -> bool:
            cursor = command_factory()
            cursor.execute(query.sql, params)
            row = cursor.fetchone()
            return row is not None and row[0] == 1

        return self.connection_manager.probe(check)
