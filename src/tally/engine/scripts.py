"""
Upgrade scripts and where they come from.
"""
from pathlib import Path
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from tally.utility.exceptions import ConfigError


class SqlScript(BaseModel):
    """A named unit of change. The journal only ever reads ``name``."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1, description="Unique, orderable name")
    contents: str = Field(default="", description="SQL text of the script")

    @classmethod
    def from_file(
        cls,
        path: Union[str, Path],
        name: Optional[str] = None,
        encoding: str = "utf-8",
    ) -> "SqlScript":
        """Read a script from disk, named after the file unless told otherwise."""
        path = Path(path)
        return cls(name=name or path.name, contents=path.read_text(encoding=encoding))


class FileSystemScriptProvider:
    """
    Scripts found in one directory, ordered by name.

    Example:
        ```python
        provider = FileSystemScriptProvider("scripts")
        [script.name for script in provider.get_scripts()]
        # ["001_init.sql", "002_add_users.sql"]
        ```
    """

    def __init__(
        self,
        path: Union[str, Path],
        pattern: str = "*.sql",
        encoding: str = "utf-8",
    ):
        self.path = Path(path)
        self.pattern = pattern
        self.encoding = encoding

    def get_scripts(self) -> List[SqlScript]:
        """
        Read every matching script.

        Raises:
            ConfigError: If the directory does not exist
        """
        if not self.path.is_dir():
            raise ConfigError(f"Scripts directory not found: {self.path}")

        files = sorted(
            (f for f in self.path.glob(self.pattern) if f.is_file()),
            key=lambda f: f.name,
        )
        return [SqlScript.from_file(f, encoding=self.encoding) for f in files]
