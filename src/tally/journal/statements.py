"""
The journal table descriptor and the statements run against it.
"""
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .dialects import Dialect


class JournalTable(BaseModel):
    """
    Where the journal lives: an optional schema and a table name.

    Immutable for the lifetime of a journal.
    """

    model_config = ConfigDict(frozen=True)

    schema_name: Optional[str] = Field(
        default=None, description="Schema (or attached database) of the table"
    )
    table_name: str = Field(..., description="Journal table name")

    @field_validator("schema_name")
    @classmethod
    def normalize_schema(cls, v):
        """Treat an empty schema as no schema."""
        if v is not None and not v.strip():
            return None
        return v

    @field_validator("table_name")
    @classmethod
    def validate_table_name(cls, v):
        if not v or not v.strip():
            raise ValueError("Journal table name is required")
        return v


class JournalStatements:
    """
    Renders the journal's DML for one dialect and one table.

    All statements use ``?`` placeholders.
    """

    def __init__(self, dialect: Dialect, table: JournalTable):
        self.dialect = dialect
        self.table = table
        self.qualified_name = dialect.qualify(table.schema_name, table.table_name)

        columns = dialect.columns()
        self._id = columns["id"]
        self._name = columns["script_name"]
        self._applied = columns["applied"]
        self._batch = columns["batch_number"]

    def select_executed_scripts(self) -> str:
        return f"select {self._name} from {self.qualified_name} order by {self._name}"

    def select_executed_scripts_by_batch(self) -> str:
        return (
            f"select {self._name} from {self.qualified_name} "
            f"where {self._batch} = ? order by {self._name}"
        )

    def select_current_batch_number(self) -> str:
        return f"select max({self._batch}) from {self.qualified_name}"

    def insert_executed_script(self) -> str:
        return (
            f"insert into {self.qualified_name} "
            f"({self._name}, {self._applied}, {self._batch}) values (?, ?, ?)"
        )

    def update_script_name(self) -> str:
        return (
            f"update {self.qualified_name} set {self._name} = ? "
            f"where {self._name} = ?"
        )

    def select_history(self, has_batch_number: bool = True) -> str:
        # Rows of a table that predates batch numbers read as batch 0
        batch = self._batch if has_batch_number else "0"
        return (
            f"select {self._id}, {self._name}, {self._applied}, {batch} "
            f"from {self.qualified_name} order by {self._id}"
        )

    def create_table(self) -> str:
        return self.dialect.create_table_statement(
            self.qualified_name, self.table.table_name
        )

    def add_batch_number_column(self) -> str:
        return self.dialect.add_batch_number_column_statement(self.qualified_name)
