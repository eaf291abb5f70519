"""
Custom exceptions for tally - clear, actionable error handling.

tally uses a small exception hierarchy so callers can tell apart the
things that went wrong: the database could not be reached, the journal
could not answer, a script failed, or the configuration is wrong.

Exception Hierarchy:
    TallyError (base)
    ├── DatabaseError - Errors raised while talking to the target database
    │   └── DatabaseConnectionError - Connection could not be opened or was lost
    ├── JournalError
    │   ├── JournalProbeError - An existence probe failed for a reason other
    │   │                       than the object being missing
    │   └── JournalNotSupportedError - The journal variant has no such operation
    ├── ScriptError - An upgrade script failed to execute
    └── ConfigError - Configuration errors

Usage Guidelines:
    - Always use exception chaining (`raise SpecificError(...) from e`) when
      wrapping driver exceptions to preserve the original traceback.
    - Connection errors (DatabaseConnectionError) are typically transient and
      are retried when a connection is opened. Nothing else is retried.
    - Errors from create/alter/insert/update statements are not wrapped: the
      journal lets the driver's exception reach the caller unmodified.
    - JournalNotSupportedError is also a NotImplementedError, so callers can
      detect "this journal cannot do batching" without matching on a
      backend error.
"""


class TallyError(Exception):
    """Base exception for all tally errors."""

    pass


class DatabaseError(TallyError):
    """Error talking to the target database."""

    pass


class DatabaseConnectionError(DatabaseError):
    """Transient connection error against the target database."""

    pass


class JournalError(TallyError):
    """Base exception for journal-related errors."""

    pass


class JournalProbeError(JournalError):
    """An existence probe failed for a reason other than a missing object."""

    pass


class JournalNotSupportedError(JournalError, NotImplementedError):
    """The journal variant does not support the requested operation."""

    pass


class ScriptError(TallyError):
    """Error executing an upgrade script."""

    def __init__(self, message: str, script_name: str = None):
        super().__init__(message)
        self.script_name = script_name


class ConfigError(TallyError):
    """Raised when there's an error in configuration."""

    pass
