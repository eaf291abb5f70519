"""
Build the configured journal.
"""
from typing import Any, Optional

from tally.connections.manager import ConnectionManager
from tally.utility.exceptions import ConfigError
from tally.utility.settings import settings

from .base import Journal
from .null_journal import NullJournal
from .table_journal import TableJournal


def create_journal(
    config: Any,
    connection_manager: ConnectionManager,
    logger: Optional[Any] = None,
) -> Journal:
    """
    Create a journal from a JournalConfig.

    The dialect defaults to the one matching the connection. On SQL Server
    the table lives in the ``dbo`` schema unless another is configured.

    Args:
        config: JournalConfig (type, dialect, schema_name, table_name)
        connection_manager: Connection manager for the target database
        logger: Optional logger passed to the journal

    Raises:
        ConfigError: If no dialect can be determined
    """
    if config.type == "null":
        return NullJournal()

    dialect = config.dialect or connection_manager.dialect_name
    if not dialect:
        raise ConfigError(
            "Journal dialect could not be inferred from the connection; "
            "set journal.dialect explicitly"
        )

    schema_name = config.schema_name
    if schema_name is None and dialect == "sqlserver":
        schema_name = settings.journal.sqlserver_schema

    return TableJournal(
        connection_manager,
        dialect,
        table_name=config.table_name,
        schema_name=schema_name,
        logger=logger,
    )
