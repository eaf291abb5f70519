"""
Upgrader: applies pending scripts and records them in the journal.

This is the caller the journal is designed around:
1. ask the journal which scripts already ran
2. diff against the scripts available
3. execute each pending script
4. record each success in the journal

One upgrade run is one batch. By default each script and its journal
entry are committed together, so a failure never leaves a script applied
but unrecorded.
"""
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from tally.connections.manager import ConnectionManager
from tally.journal.base import Journal
from tally.journal.table_journal import ROLLED_BACK_PREFIX
from tally.utility.exceptions import JournalNotSupportedError, ScriptError
from tally.utility.logger import get_logger

from .scripts import SqlScript


class UpgradeResult(BaseModel):
    """Outcome of one upgrade run."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    successful: bool
    scripts: List[SqlScript] = Field(
        default_factory=list, description="Scripts applied and recorded"
    )
    batch_number: Optional[int] = None
    error: Optional[Exception] = None
    error_script: Optional[str] = None


class Upgrader:
    """
    Runs pending scripts against the target database.

    Example:
        ```python
        upgrader = Upgrader(manager, journal, FileSystemScriptProvider("scripts"))
        result = upgrader.perform_upgrade()
        if not result.successful:
            print(f"{result.error_script} failed: {result.error}")
        ```
    """

    def __init__(
        self,
        connection_manager: ConnectionManager,
        journal: Journal,
        script_provider: Any,
        logger: Optional[Any] = None,
        transaction_per_script: bool = True,
    ):
        """
        Initialize upgrader.

        Args:
            connection_manager: Connection manager for the target database
            journal: Journal recording executed scripts
            script_provider: Anything with ``get_scripts() -> List[SqlScript]``
            logger: Optional logger
            transaction_per_script: Commit each script with its journal entry
        """
        self.connection_manager = connection_manager
        self.journal = journal
        self.script_provider = script_provider
        self.transaction_per_script = transaction_per_script
        self.logger = logger or get_logger("tally.upgrader")

    def get_scripts_to_execute(self) -> List[SqlScript]:
        """Available scripts the journal has no record of, in name order."""
        executed = set(self.journal.get_executed_scripts())
        return [
            script
            for script in self.script_provider.get_scripts()
            if script.name not in executed
        ]

    def is_upgrade_required(self) -> bool:
        return len(self.get_scripts_to_execute()) > 0

    def perform_upgrade(self) -> UpgradeResult:
        """
        Execute every pending script and record it.

        Stops at the first failing script. Failures are reported in the
        result, not raised.
        """
        applied: List[SqlScript] = []
        current_script: Optional[str] = None
        batch_number: Optional[int] = None

        try:
            with self.connection_manager.operation():
                pending = self.get_scripts_to_execute()
                if not pending:
                    self.logger.info("No new scripts need to be executed")
                    return UpgradeResult(successful=True)

                batch_number = self._next_batch_number()
                self.logger.start(f"Upgrading with {len(pending)} scripts")

                for script in pending:
                    current_script = script.name
                    self._apply(script, batch_number)
                    applied.append(script)

            self.logger.success(f"Upgrade complete ({len(applied)} scripts)")
            return UpgradeResult(
                successful=True, scripts=applied, batch_number=batch_number
            )

        except Exception as e:
            self.logger.error(f"Upgrade failed: {str(e)}")
            return UpgradeResult(
                successful=False,
                scripts=applied,
                batch_number=batch_number,
                error=e,
                error_script=current_script,
            )

    def rollback_batch(self, batch_number: Optional[int] = None) -> List[str]:
        """
        Mark every script of a batch as rolled back.

        Only the journal entries change; no SQL from the scripts is undone.

        Args:
            batch_number: Batch to roll back (default: the current batch)

        Returns:
            Names of the scripts marked rolled back
        """
        with self.connection_manager.operation():
            if batch_number is None:
                batch_number = self.journal.get_current_batch_number()

            if batch_number < 1:
                self.logger.info("No batches recorded, nothing to roll back")
                return []

            recorded = self.journal.get_executed_scripts_on_batch_number(batch_number)
            # Entries already rolled back would only gain a second prefix
            scripts = [
                name for name in recorded if not name.startswith(ROLLED_BACK_PREFIX)
            ]
            if not scripts:
                self.logger.info(f"No active scripts recorded in batch {batch_number}")
                return []

            with self.connection_manager.transaction():
                for name in scripts:
                    self.journal.update_script_entry(name)

        self.logger.success(
            f"Marked {len(scripts)} scripts in batch {batch_number} as rolled back"
        )
        return scripts

    def _next_batch_number(self) -> Optional[int]:
        try:
            return self.journal.get_current_batch_number() + 1
        except JournalNotSupportedError:
            return None

    def _apply(self, script: SqlScript, batch_number: Optional[int]) -> None:
        self.logger.info(f"Executing script {script.name}")
        if self.transaction_per_script:
            with self.connection_manager.transaction():
                self._execute(script)
                self.journal.store_executed_script(script, batch_number=batch_number)
        else:
            self._execute(script)
            self.journal.store_executed_script(script, batch_number=batch_number)

    def _execute(self, script: SqlScript) -> None:
        try:
            self.connection_manager.execute_script(script)
        except Exception as e:
            raise ScriptError(
                f"Script {script.name} failed: {str(e)}", script_name=script.name
            ) from e
