"""
Journal configuration.
"""
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from tally.journal.dialects import available_dialects
from tally.utility.settings import settings


class JournalConfig(BaseModel):
    """
    Configuration for the journal.

    Example:
        ```yaml
        journal:
          type: table
          schema_name: dbo
          table_name: SchemaVersions
        ```
    """

    type: str = Field(
        default="table",
        description="'table' keeps history in the database, 'null' keeps none",
    )
    dialect: Optional[str] = Field(
        default=None,
        description="Journal dialect (inferred from the connection when unset)",
    )
    schema_name: Optional[str] = Field(
        default=None, description="Schema holding the journal table"
    )
    table_name: str = Field(
        default=settings.journal.table_name, description="Journal table name"
    )

    @field_validator("type")
    @classmethod
    def validate_type(cls, v):
        """Validate journal type."""
        if v not in ("table", "null"):
            raise ValueError(f"Journal type must be 'table' or 'null', got '{v}'")
        return v

    @field_validator("dialect")
    @classmethod
    def validate_dialect(cls, v):
        """Validate dialect is registered."""
        if v is not None and v not in available_dialects():
            raise ValueError(
                f"Journal dialect must be one of {available_dialects()}, got '{v}'"
            )
        return v

    @field_validator("table_name")
    @classmethod
    def validate_table_name(cls, v):
        if not v or not v.strip():
            raise ValueError("Journal table name is required")
        return v
