"""
Utility functions and classes for tally.
"""
from .exceptions import (
    ConfigError,
    DatabaseConnectionError,
    DatabaseError,
    JournalError,
    JournalNotSupportedError,
    JournalProbeError,
    ScriptError,
    TallyError,
)

__all__ = [
    "TallyError",
    "DatabaseError",
    "DatabaseConnectionError",
    "JournalError",
    "JournalProbeError",
    "JournalNotSupportedError",
    "ScriptError",
    "ConfigError",
]
