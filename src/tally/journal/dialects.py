"""
Dialects: the backend-specific vocabulary of the journal.

A dialect is a plain value describing how one kind of database quotes
identifiers, names the journal's columns, answers "does this table or
column exist?", and spells the DDL for the journal table. The journal
itself is the same for every backend; it only reads the dialect.

Built-in dialects:
- sqlserver: [bracket] quoting, INFORMATION_SCHEMA probes
- mysql: `backtick` quoting, information_schema probes scoped to DATABASE()
- sqlite: "double quote" quoting, sqlite_master / pragma_table_info probes
"""
from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

from tally.utility.exceptions import ConfigError


class ProbeQuery(BaseModel):
    """
    An introspection query and the order of its parameters.

    ``params`` names the values bound to the query's ``?`` placeholders,
    drawn from ``schema``, ``table`` and ``column``.
    """

    model_config = ConfigDict(frozen=True)

    sql: str
    params: Tuple[str, ...] = ("table",)

    @field_validator("params")
    @classmethod
    def validate_params(cls, v):
        unknown = set(v) - {"schema", "table", "column"}
        if unknown:
            raise ValueError(f"Unknown probe parameters: {sorted(unknown)}")
        return v

    def bind(
        self,
        table: str,
        schema: Optional[str] = None,
        column: Optional[str] = None,
    ) -> Tuple[str, ...]:
        """Parameter values in the order the query expects them."""
        values = {"schema": schema, "table": table, "column": column}
        return tuple(values[name] for name in self.params)


class Dialect(BaseModel):
    """
    Description of one database backend's journal vocabulary.

    DDL templates are formatted with ``table`` (qualified, quoted journal
    table name), ``primary_key`` (quoted constraint name), the quoted
    column names ``id``, ``script_name``, ``applied``, ``batch_number``
    and ``length`` (maximum script name length).

    Example:
        ```python
        dialect = get_dialect("sqlserver")
        dialect.qualify("dbo", "SchemaVersions")  # [dbo].[SchemaVersions]
        ```
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Registry name of the dialect")
    quote_prefix: str = Field(..., min_length=1, max_length=1)
    quote_suffix: str = Field(..., min_length=1, max_length=1)

    id_column: str = "Id"
    script_name_column: str = "ScriptName"
    applied_column: str = "Applied"
    batch_number_column: str = "BatchNumber"
    script_name_length: int = Field(default=255, ge=1)

    table_exists: ProbeQuery
    table_exists_in_schema: ProbeQuery
    column_exists: ProbeQuery
    column_exists_in_schema: ProbeQuery

    create_table_sql: str
    add_batch_number_column_sql: str

    def quote(self, identifier: str) -> str:
        """
        Quote a single identifier.

        An identifier that is already quoted is returned unchanged.
        Otherwise the closing quote character is doubled and the
        identifier wrapped.
        """
        identifier = identifier.strip()
        if (
            len(identifier) >= 2
            and identifier.startswith(self.quote_prefix)
            and identifier.endswith(self.quote_suffix)
        ):
            return identifier
        escaped = identifier.replace(self.quote_suffix, self.quote_suffix * 2)
        return f"{self.quote_prefix}{escaped}{self.quote_suffix}"

    def qualify(self, schema_name: Optional[str], table_name: str) -> str:
        """Combine schema and table into one quoted identifier."""
        if not schema_name:
            return self.quote(table_name)
        return f"{self.quote(schema_name)}.{self.quote(table_name)}"

    def primary_key_name(self, table_name: str) -> str:
        """Quoted name of the journal table's primary key constraint."""
        return self.quote(f"PK_{self.unquote(table_name)}_Id")

    def unquote(self, identifier: str) -> str:
        """Strip the dialect's quotes from an identifier, if present."""
        identifier = identifier.strip()
        if (
            len(identifier) >= 2
            and identifier.startswith(self.quote_prefix)
            and identifier.endswith(self.quote_suffix)
        ):
            inner = identifier[1:-1]
            return inner.replace(self.quote_suffix * 2, self.quote_suffix)
        return identifier

    def columns(self) -> Dict[str, str]:
        """Quoted journal column names keyed by their logical name."""
        return {
            "id": self.quote(self.id_column),
            "script_name": self.quote(self.script_name_column),
            "applied": self.quote(self.applied_column),
            "batch_number": self.quote(self.batch_number_column),
        }

    def table_exists_query(self, schema_name: Optional[str]) -> ProbeQuery:
        return self.table_exists_in_schema if schema_name else self.table_exists

    def column_exists_query(self, schema_name: Optional[str]) -> ProbeQuery:
        return self.column_exists_in_schema if schema_name else self.column_exists

    def create_table_statement(self, qualified_name: str, table_name: str) -> str:
        """CREATE TABLE statement for the current journal shape."""
        return self.create_table_sql.format(
            table=qualified_name,
            primary_key=self.primary_key_name(table_name),
            length=self.script_name_length,
            **self.columns(),
        )

    def add_batch_number_column_statement(self, qualified_name: str) -> str:
        """ALTER TABLE statement adding the batch number column to a legacy table."""
        return self.add_batch_number_column_sql.format(
            table=qualified_name, **self.columns()
        )


SQL_SERVER = Dialect(
    name="sqlserver",
    quote_prefix="[",
    quote_suffix="]",
    table_exists=ProbeQuery(
        sql="select 1 from INFORMATION_SCHEMA.TABLES where TABLE_NAME = ?",
        params=("table",),
    ),
    table_exists_in_schema=ProbeQuery(
        sql=(
            "select 1 from INFORMATION_SCHEMA.TABLES "
            "where TABLE_NAME = ? and TABLE_SCHEMA = ?"
        ),
        params=("table", "schema"),
    ),
    column_exists=ProbeQuery(
        sql=(
            "select 1 from INFORMATION_SCHEMA.COLUMNS "
            "where TABLE_NAME = ? and COLUMN_NAME = ?"
        ),
        params=("table", "column"),
    ),
    column_exists_in_schema=ProbeQuery(
        sql=(
            "select 1 from INFORMATION_SCHEMA.COLUMNS "
            "where TABLE_NAME = ? and COLUMN_NAME = ? and TABLE_SCHEMA = ?"
        ),
        params=("table", "column", "schema"),
    ),
    create_table_sql=(
        "create table {table} (\n"
        "    {id} int identity(1,1) not null constraint {primary_key} primary key,\n"
        "    {script_name} nvarchar({length}) not null,\n"
        "    {applied} datetime not null,\n"
        "    {batch_number} int not null\n"
        ")"
    ),
    add_batch_number_column_sql=(
        "alter table {table} add {batch_number} int not null default(0)"
    ),
)

MYSQL = Dialect(
    name="mysql",
    quote_prefix="`",
    quote_suffix="`",
    id_column="schemaversionid",
    script_name_column="scriptname",
    applied_column="applied",
    batch_number_column="batchnumber",
    table_exists=ProbeQuery(
        sql=(
            "select 1 from information_schema.tables "
            "where table_name = ? and table_schema = DATABASE()"
        ),
        params=("table",),
    ),
    table_exists_in_schema=ProbeQuery(
        sql=(
            "select 1 from information_schema.tables "
            "where table_name = ? and table_schema = ?"
        ),
        params=("table", "schema"),
    ),
    column_exists=ProbeQuery(
        sql=(
            "select 1 from information_schema.columns "
            "where table_name = ? and column_name = ? and table_schema = DATABASE()"
        ),
        params=("table", "column"),
    ),
    column_exists_in_schema=ProbeQuery(
        sql=(
            "select 1 from information_schema.columns "
            "where table_name = ? and column_name = ? and table_schema = ?"
        ),
        params=("table", "column", "schema"),
    ),
    create_table_sql=(
        "CREATE TABLE {table}\n"
        "(\n"
        "    {id} INT NOT NULL AUTO_INCREMENT,\n"
        "    {script_name} VARCHAR({length}) NOT NULL,\n"
        "    {applied} TIMESTAMP NOT NULL,\n"
        "    {batch_number} INT NOT NULL,\n"
        "    PRIMARY KEY ({id})\n"
        ")"
    ),
    add_batch_number_column_sql=(
        "ALTER TABLE {table} ADD COLUMN {batch_number} INT NOT NULL DEFAULT 0"
    ),
)

SQLITE = Dialect(
    name="sqlite",
    quote_prefix='"',
    quote_suffix='"',
    table_exists=ProbeQuery(
        sql="select 1 from sqlite_master where type = 'table' and name = ?",
        params=("table",),
    ),
    # Attached databases act as schemas; pragma_table_info takes the schema
    # as its second argument.
    table_exists_in_schema=ProbeQuery(
        sql="select 1 from pragma_table_info(?, ?) limit 1",
        params=("table", "schema"),
    ),
    column_exists=ProbeQuery(
        sql="select 1 from pragma_table_info(?) where name = ?",
        params=("table", "column"),
    ),
    column_exists_in_schema=ProbeQuery(
        sql="select 1 from pragma_table_info(?, ?) where name = ?",
        params=("table", "schema", "column"),
    ),
    create_table_sql=(
        "create table {table} (\n"
        "    {id} integer primary key autoincrement,\n"
        "    {script_name} varchar({length}) not null,\n"
        "    {applied} timestamp not null,\n"
        "    {batch_number} integer not null\n"
        ")"
    ),
    add_batch_number_column_sql=(
        "alter table {table} add column {batch_number} integer not null default 0"
    ),
)


# Registry for dialects
_dialects: Dict[str, Dialect] = {}


def register_dialect(dialect: Dialect) -> None:
    """
    Register a dialect under its name.

    Args:
        dialect: Dialect to register (replaces one with the same name)
    """
    _dialects[dialect.name] = dialect


def get_dialect(name: str) -> Dialect:
    """
    Get a dialect by name.

    Raises:
        ConfigError: If the dialect name is not registered
    """
    if name not in _dialects:
        raise ConfigError(
            f"Unknown journal dialect: {name}. "
            f"Available dialects: {', '.join(available_dialects())}"
        )
    return _dialects[name]


def available_dialects() -> List[str]:
    """Names of all registered dialects, sorted."""
    return sorted(_dialects)


# Register default dialects
register_dialect(SQL_SERVER)
register_dialect(MYSQL)
register_dialect(SQLITE)
