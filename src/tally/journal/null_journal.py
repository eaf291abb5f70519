"""
A journal that remembers nothing.
"""
from typing import Any, List, Optional

from tally.utility.exceptions import JournalNotSupportedError

from .base import Journal


class NullJournal(Journal):
    """
    Enables multiple executions of idempotent scripts.

    Every script is always pending, and recording one does nothing.
    Batch operations and rollback marking are not supported and raise
    JournalNotSupportedError.
    """

    def get_executed_scripts(self) -> List[str]:
        return []

    def get_executed_scripts_on_batch_number(self, batch_number: int) -> List[str]:
        raise JournalNotSupportedError("NullJournal does not record batches")

    def get_current_batch_number(self) -> int:
        raise JournalNotSupportedError("NullJournal does not record batches")

    def store_executed_script(
        self, script: Any, batch_number: Optional[int] = None
    ) -> None:
        pass

    def update_script_entry(self, script_name: str) -> int:
        raise JournalNotSupportedError("NullJournal cannot mark scripts rolled back")
