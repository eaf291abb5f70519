"""
The journal interface.

A journal records which upgrade scripts have run against a database.
Different journals store that history differently (or not at all), but
they all answer the same five questions.
"""
from abc import ABC, abstractmethod
from typing import Any, List, Optional


class Journal(ABC):
    """
    Abstract base class for journals.

    Scripts are anything with a ``name`` attribute; the journal never
    reads their contents.
    """

    @abstractmethod
    def get_executed_scripts(self) -> List[str]:
        """Names of all recorded scripts in ascending order."""
        pass

    @abstractmethod
    def get_executed_scripts_on_batch_number(self, batch_number: int) -> List[str]:
        """Names of the scripts recorded under one batch, in ascending order."""
        pass

    @abstractmethod
    def get_current_batch_number(self) -> int:
        """The highest batch number recorded so far."""
        pass

    @abstractmethod
    def store_executed_script(
        self, script: Any, batch_number: Optional[int] = None
    ) -> None:
        """Record that a script has been executed."""
        pass

    @abstractmethod
    def update_script_entry(self, script_name: str) -> int:
        """Mark a recorded script as rolled back."""
        pass
