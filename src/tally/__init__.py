"""
Keep a tally of the upgrade scripts applied to a database.
"""
from .configs import ConnectionConfig, JournalConfig, TallyConfig
from .connections import ConnectionManager, SqliteConnection
from .engine import FileSystemScriptProvider, SqlScript, Upgrader, UpgradeResult
from .journal import Journal, NullJournal, TableJournal, create_journal
from .workspace import Workspace

__version__ = "0.1.0"

__all__ = [
    # Journal
    "Journal",
    "TableJournal",
    "NullJournal",
    "create_journal",
    # Connections
    "ConnectionManager",
    "SqliteConnection",
    # Engine
    "SqlScript",
    "FileSystemScriptProvider",
    "Upgrader",
    "UpgradeResult",
    # Config
    "ConnectionConfig",
    "JournalConfig",
    "TallyConfig",
    "Workspace",
]
