"""
Configuration models for tally.
"""
from .connection_config import ConnectionConfig
from .journal_config import JournalConfig
from .tally_config import ScriptsConfig, TallyConfig, expand_env_vars

__all__ = [
    "ConnectionConfig",
    "JournalConfig",
    "ScriptsConfig",
    "TallyConfig",
    "expand_env_vars",
]
