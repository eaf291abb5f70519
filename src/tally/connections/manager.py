"""
Connection manager: scoped access to the target database.

The journal never holds a connection or cursor itself. It hands an action
to the manager, the action receives a command factory that yields fresh
cursors, and the manager closes those cursors and decides when to commit.

Two scopes can be opened around several actions:
- operation(): keep one connection open for a whole upgrade run
- transaction(): run several actions as one unit of work
"""
from contextlib import contextmanager
from typing import Any, Callable, Iterator, List, Optional, TypeVar

from tally.utility.exceptions import DatabaseConnectionError, JournalProbeError
from tally.utility.logger import get_logger
from tally.utility.retry import with_retry
from tally.utility.settings import settings

from .base import BaseConnection

T = TypeVar("T")

# A zero-argument callable returning a new DB-API cursor
CommandFactory = Callable[[], Any]


class ConnectionManager:
    """
    Lends connections to the journal and to script execution.

    Example:
        ```python
        manager = ConnectionManager(SqliteConnection(database="app.db"))

        def count_rows(command_factory):
            cursor = command_factory()
            cursor.execute("select count(*) from users")
            return cursor.fetchone()[0]

        rows = manager.execute_with_managed_connection(count_rows)
        ```
    """

    def __init__(
        self,
        connection_factory: BaseConnection,
        retries: Optional[int] = None,
        delay: Optional[float] = None,
    ):
        """
        Initialize connection manager.

        Args:
            connection_factory: Factory that opens and closes connections
            retries: Attempts when opening a connection fails transiently
            delay: Initial backoff delay in seconds between attempts
        """
        self.connection_factory = connection_factory
        self.retries = retries if retries is not None else settings.retry.retries
        self.delay = delay if delay is not None else settings.retry.delay

        self._connection: Optional[Any] = None
        self._in_transaction = False

        self.logger = get_logger("tally.connections.manager")

    @property
    def dialect_name(self) -> Optional[str]:
        """Journal dialect matching the connection factory's database."""
        return self.connection_factory.dialect_name

    @property
    def in_transaction(self) -> bool:
        return self._in_transaction

    def _connect(self) -> Any:
        """Open a connection, retrying transient connection errors."""

        @with_retry(
            retries=self.retries,
            delay=self.delay,
            exceptions=(DatabaseConnectionError,),
            logger_name="tally.connections.retry",
            reraise=True,
        )
        def connect():
            return self.connection_factory.get_connection()

        return connect()

    @contextmanager
    def operation(self) -> Iterator["ConnectionManager"]:
        """
        Hold one open connection until the block exits.

        Nested use reuses the connection that is already open.
        """
        if self._connection is not None:
            yield self
            return

        self._connection = self._connect()
        self.logger.debug(
            f"Opened connection to {self.connection_factory.describe()}"
        )
        try:
            yield self
        finally:
            connection, self._connection = self._connection, None
            self.connection_factory.close_connection(connection)

    @contextmanager
    def transaction(self) -> Iterator["ConnectionManager"]:
        """
        Run every action inside the block as one unit of work.

        Commits when the block exits normally, rolls back and re-raises
        otherwise. Nested use joins the outer transaction.
        """
        if self._in_transaction:
            yield self
            return

        with self.operation():
            self.connection_factory.begin_transaction(self._connection)
            self._in_transaction = True
            try:
                yield self
            except Exception:
                self._connection.rollback()
                raise
            else:
                self._connection.commit()
            finally:
                self._in_transaction = False

    def execute_with_managed_connection(
        self, action: Callable[[CommandFactory], T]
    ) -> T:
        """
        Run an action with a command factory bound to an open connection.

        Every cursor the action creates is closed when it returns or raises.
        Outside a transaction the work is committed when the action returns
        and rolled back if it raises. Errors reach the caller unmodified.

        Args:
            action: Callable receiving the command factory

        Returns:
            Whatever the action returns
        """
        with self.operation():
            connection = self._connection
            cursors: List[Any] = []

            def command_factory() -> Any:
                cursor = connection.cursor()
                cursors.append(cursor)
                return cursor

            try:
                result = action(command_factory)
            except Exception:
                if not self._in_transaction:
                    connection.rollback()
                raise
            finally:
                for cursor in cursors:
                    cursor.close()

            if not self._in_transaction:
                connection.commit()
            return result

    def probe(self, action: Callable[[CommandFactory], bool]) -> bool:
        """
        Run a read-only existence check and answer True or False.

        Driver errors that mean "that object does not exist" are answered
        with False. Connection failures are raised as
        DatabaseConnectionError, and any other driver error as
        JournalProbeError, so an outage is never mistaken for a missing
        table.

        Args:
            action: Callable receiving the command factory, returning a bool

        Returns:
            The action's answer, or False when the probed object is missing
        """
        factory = self.connection_factory
        try:
            return bool(self.execute_with_managed_connection(action))
        except factory.driver_error as e:
            if factory.is_missing_object_error(e):
                self.logger.debug(f"Probe found no object: {str(e)}")
                return False
            if factory.is_connection_error(e):
                raise DatabaseConnectionError(
                    f"Connection error while probing: {str(e)}"
                ) from e
            raise JournalProbeError(f"Existence probe failed: {str(e)}") from e

    def execute_script(self, script: Any) -> None:
        """
        Execute an upgrade script's contents.

        Args:
            script: Object with ``name`` and ``contents`` attributes
        """

        def run(command_factory: CommandFactory) -> None:
            self.connection_factory.run_script(command_factory(), script.contents)

        self.execute_with_managed_connection(run)
