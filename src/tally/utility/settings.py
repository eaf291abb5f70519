"""
Default settings that keep tally predictable.
"""
from typing import Optional

from pydantic import BaseModel, Field


class JournalSettings(BaseModel):
    """Journal table defaults."""
    table_name: str = Field(
        default="SchemaVersions",
        description="Journal table name when none is configured"
    )
    sqlserver_schema: str = Field(
        default="dbo",
        description="Schema used for the journal table on SQL Server"
    )
    rolled_back_prefix: str = Field(
        default="rolledback_",
        description="Marker prepended to a script name when it is rolled back"
    )


class RetrySettings(BaseModel):
    """Retry settings for opening connections."""
    retries: int = Field(default=3, ge=1, description="Attempts before giving up")
    delay: float = Field(
        default=1.0,
        ge=0,
        description="Initial delay between attempts in seconds"
    )


class LoggingSettings(BaseModel):
    """Logging output settings."""
    level: str = Field(default="INFO", description="Console log level")
    log_dir: Optional[str] = Field(
        default=None,
        description="Directory for tally.log (no file logging when unset)"
    )


class Settings(BaseModel):
    """Global settings for tally."""
    journal: JournalSettings = JournalSettings()
    retry: RetrySettings = RetrySettings()
    logging: LoggingSettings = LoggingSettings()


settings = Settings()
