"""Canonical, dialect-independent description of a table."""

from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator


class Dialect(str, Enum):
    """SQL dialects the parser and renderer understand."""

    MYSQL = "mysql"
    SQLITE = "sqlite"
    POSTGRESQL = "postgresql"
    ANSI = "ansi"


DefaultKind = Literal["string", "number", "boolean", "null", "expression"]


class ColumnDefault(BaseModel):
    """A column's declared default.

    ``value`` holds the literal text with SQL quoting removed for strings,
    and the raw SQL for expressions such as ``CURRENT_TIMESTAMP``.
    """

    model_config = ConfigDict(frozen=True)

    value: str | None = Field(description="Default value text, None for NULL")
    kind: DefaultKind = Field(description="How the default was written")

    def as_sql(self) -> str:
        """Return the default as it would appear after DEFAULT."""
        if self.kind == "null" or self.value is None:
            return "NULL"
        if self.kind == "string":
            return "'" + self.value.replace("'", "''") + "'"
        return self.value


class ColumnSchema(BaseModel):
    """One column of a table."""

    model_config = ConfigDict(frozen=True)

    name: str
    ordinal: int = Field(ge=1, description="1-based declaration position")
    raw_type: str = Field(default="", description="Type as written in the source DDL")
    data_type: str = Field(description="Canonical upper-case type name")
    length: int | None = None
    precision: int | None = None
    scale: int | None = None
    unsigned: bool = False
    enum_values: tuple[str, ...] | None = Field(
        default=None,
        description="Allowed values for ENUM columns or CHECK (col IN (...)) constraints",
    )
    nullable: bool = True
    default: ColumnDefault | None = None
    primary_key: bool = False
    auto_increment: bool = False
    unique: bool = False
    collation: str | None = None
    charset: str | None = None
    comment: str | None = None

    @model_validator(mode="after")
    def primary_key_is_not_null(self) -> "ColumnSchema":
        """Primary key columns can never hold NULL."""
        if self.primary_key and self.nullable:
            raise ValueError(f"Primary key column {self.name!r} cannot be nullable")
        return self


class IndexSchema(BaseModel):
    """A secondary index or unique constraint."""

    model_config = ConfigDict(frozen=True)

    name: str | None = None
    columns: tuple[str, ...]
    unique: bool = False


class ForeignKeySchema(BaseModel):
    """A foreign key constraint."""

    model_config = ConfigDict(frozen=True)

    name: str | None = None
    columns: tuple[str, ...]
    referred_table: str
    referred_columns: tuple[str, ...]
    on_delete: str | None = None
    on_update: str | None = None


class TableSchema(BaseModel):
    """Immutable description of a single table.

    Column order always follows the declaration order of the source DDL, and
    the primary key lists its columns in key order.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    schema_name: str | None = None
    dialect: Dialect = Dialect.ANSI
    columns: tuple[ColumnSchema, ...]
    primary_key: tuple[str, ...] = ()
    comment: str | None = None
    options: dict[str, str] = Field(default_factory=dict)
    checks: tuple[str, ...] = ()
    indexes: tuple[IndexSchema, ...] = ()
    foreign_keys: tuple[ForeignKeySchema, ...] = ()

    @model_validator(mode="after")
    def validate_columns(self) -> "TableSchema":
        """Column names must be unique and the primary key must reference them."""
        seen: set[str] = set()
        for column in self.columns:
            key = column.name.lower()
            if key in seen:
                raise ValueError(f"Duplicate column {column.name!r} in table {self.name!r}")
            seen.add(key)
        missing = [name for name in self.primary_key if name.lower() not in seen]
        if missing:
            raise ValueError(f"Primary key references unknown columns: {', '.join(missing)}")
        return self

    @property
    def column_names(self) -> list[str]:
        return [column.name for column in self.columns]

    def column(self, name: str) -> ColumnSchema:
        """Look up a column by name, case-insensitively.

        Raises:
            KeyError: If the table has no such column.
        """
        lowered = name.lower()
        for column in self.columns:
            if column.name.lower() == lowered:
                return column
        raise KeyError(name)

    @property
    def qualified_name(self) -> str:
        if self.schema_name:
            return f"{self.schema_name}.{self.name}"
        return self.name
