"""
Workspace: everything one tally.yml describes, wired together.

Reads the configuration, builds the connection factory and manager, the
journal and the script provider, and hands out an Upgrader.
"""
from pathlib import Path
from typing import Optional, Union

from tally.configs import TallyConfig
from tally.connections import BaseConnection, ConnectionManager
from tally.engine import FileSystemScriptProvider, Upgrader
from tally.journal import Journal, create_journal
from tally.utility.logger import get_logger

DEFAULT_CONFIG_FILE = "tally.yml"


class Workspace:
    """
    A configured tally project.

    Example:
        ```python
        workspace = Workspace.from_yaml("tally.yml")
        result = workspace.upgrader().perform_upgrade()
        ```
    """

    def __init__(self, config: TallyConfig):
        self.config = config
        self.logger = get_logger("tally.workspace")

        self.connection_factory = BaseConnection.create(config.connection)
        self.connection_manager = ConnectionManager(self.connection_factory)
        self.journal: Journal = create_journal(config.journal, self.connection_manager)
        self.script_provider = FileSystemScriptProvider(
            config.scripts.path,
            pattern=config.scripts.pattern,
            encoding=config.scripts.encoding,
        )
        self.logger.debug(
            f"Workspace ready: {config.connection.type} "
            f"{self.connection_factory.describe()}, scripts in {config.scripts.path}"
        )

    @classmethod
    def from_yaml(cls, path: Optional[Union[str, Path]] = None) -> "Workspace":
        """Load a workspace from tally.yml (default: in the current directory)."""
        config_path = Path(path) if path else Path.cwd() / DEFAULT_CONFIG_FILE
        return cls(TallyConfig.from_yaml(config_path))

    def upgrader(self, transaction_per_script: bool = True) -> Upgrader:
        return Upgrader(
            self.connection_manager,
            self.journal,
            self.script_provider,
            transaction_per_script=transaction_per_script,
        )
