"""
Main configuration model for tally, read from tally.yml.
"""
import os
import re
from pathlib import Path
from typing import Any, Dict, Union

import yaml
from pydantic import BaseModel, Field, ValidationError

from tally.utility.exceptions import ConfigError

from .connection_config import ConnectionConfig
from .journal_config import JournalConfig

# ${VAR_NAME} or ${VAR_NAME:-default}
ENV_VAR_PATTERN = re.compile(r"\$\{([^:}]+)(?::-([^}]*))?\}")


class ScriptsConfig(BaseModel):
    """Where upgrade scripts are read from."""
    path: str = Field(default="scripts", description="Scripts directory")
    pattern: str = Field(default="*.sql", description="Glob for script files")
    encoding: str = Field(default="utf-8", description="Script file encoding")


class TallyConfig(BaseModel):
    """Main configuration model for tally."""
    connection: ConnectionConfig = Field(..., description="Target database")
    journal: JournalConfig = Field(default_factory=JournalConfig)
    scripts: ScriptsConfig = Field(default_factory=ScriptsConfig)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TallyConfig":
        """
        Create configuration from dictionary.

        Raises:
            ConfigError: If the configuration is invalid
        """
        try:
            return cls(**expand_env_vars(data))
        except ValidationError as e:
            raise ConfigError(f"Invalid configuration: {str(e)}") from e

    @classmethod
    def from_yaml(cls, path: Union[str, Path]) -> "TallyConfig":
        """
        Read configuration from a YAML file.

        Relative scripts and sqlite paths are resolved against the
        file's directory.

        Raises:
            ConfigError: If the file is missing or invalid
        """
        path = Path(path)
        if not path.exists():
            raise ConfigError(f"Configuration file not found: {path}")

        with open(path, "r") as f:
            try:
                data = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ConfigError(f"Invalid YAML in {path}: {str(e)}") from e

        config = cls.from_dict(data)
        return config.resolve_paths(path.parent)

    def resolve_paths(self, base_dir: Path) -> "TallyConfig":
        """Anchor relative file paths to a base directory."""
        scripts_path = Path(self.scripts.path)
        if not scripts_path.is_absolute():
            scripts_path = base_dir / scripts_path

        connection = self.connection
        if connection.type == "sqlite" and connection.database != ":memory:":
            database = Path(connection.database)
            if not database.is_absolute():
                connection = connection.model_copy(
                    update={"database": str(base_dir / database)}
                )

        return self.model_copy(
            update={
                "connection": connection,
                "scripts": self.scripts.model_copy(update={"path": str(scripts_path)}),
            }
        )


def expand_env_vars(data: Any) -> Any:
    """
    Recursively expand environment variables in configuration data.

    Supports patterns like ${VAR_NAME} and ${VAR_NAME:-default_value}

    Raises:
        ConfigError: If environment variable is not set and no default provided
    """
    if isinstance(data, str):

        def replace_env_var(match):
            var_name = match.group(1)
            has_default = match.group(2) is not None
            env_value = os.getenv(var_name)
            if env_value is not None:
                return env_value
            if has_default:
                return match.group(2)
            raise ConfigError(
                f"Environment variable '{var_name}' is not set "
                "and no default value provided"
            )

        return ENV_VAR_PATTERN.sub(replace_env_var, data)
    if isinstance(data, dict):
        return {key: expand_env_vars(value) for key, value in data.items()}
    if isinstance(data, list):
        return [expand_env_vars(item) for item in data]
    return data
