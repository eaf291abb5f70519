"""
The journal subsystem: which upgrade scripts have run, and in which batch.

Key components:
- Journal: Interface every journal implements
- TableJournal: History kept in a table of the target database
- NullJournal: No history at all, for idempotent scripts
- Dialect: Backend quoting, introspection and DDL vocabulary
- ExistenceProber / SchemaEvolver: Create and upgrade the journal table
"""
from .base import Journal
from .dialects import (
    MYSQL,
    SQL_SERVER,
    SQLITE,
    Dialect,
    ProbeQuery,
    available_dialects,
    get_dialect,
    register_dialect,
)
from .evolver import SchemaEvolver
from .factory import create_journal
from .null_journal import NullJournal
from .prober import ExistenceProber
from .statements import JournalStatements, JournalTable
from .table_journal import ROLLED_BACK_PREFIX, TableJournal

__all__ = [
    "Journal",
    "TableJournal",
    "NullJournal",
    "create_journal",
    "Dialect",
    "ProbeQuery",
    "SQL_SERVER",
    "MYSQL",
    "SQLITE",
    "get_dialect",
    "register_dialect",
    "available_dialects",
    "ExistenceProber",
    "SchemaEvolver",
    "JournalStatements",
    "JournalTable",
    "ROLLED_BACK_PREFIX",
]
