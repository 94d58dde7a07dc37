"""Pydantic schemas for DDL API requests and responses and service results."""

from typing import Any

from pydantic import BaseModel, Field, computed_field

from schemas.table_schema import Dialect, TableSchema


class ColumnDifference(BaseModel):
    """One attribute of one column that differs between two variants."""

    column: str
    attribute: str
    expected: Any = Field(description="Value in the reference table")
    actual: Any = Field(description="Value in the compared table")


class SchemaComparison(BaseModel):
    """Result of comparing a table against a reference variant."""

    table: str
    reference_dialect: Dialect
    other_dialect: Dialect
    missing_columns: list[str] = Field(default_factory=list, description="In the reference only")
    extra_columns: list[str] = Field(default_factory=list, description="In the compared table only")
    same_order: bool
    same_primary_key: bool
    differences: list[ColumnDifference] = Field(default_factory=list)

    @computed_field
    @property
    def same_shape(self) -> bool:
        """Same column set, same order and same primary key."""
        return not self.missing_columns and not self.extra_columns and self.same_order and self.same_primary_key

    @computed_field
    @property
    def equivalent(self) -> bool:
        """Same shape and no attribute differences."""
        return self.same_shape and not self.differences


class RenderedDdl(BaseModel):
    """DDL for one table in a target dialect."""

    table: str
    dialect: Dialect
    statements: list[str] = Field(description="CREATE TABLE first, then indexes and comments")
    warnings: list[str] = Field(
        default_factory=list,
        description="Information the target dialect could not express",
    )

    @property
    def sql(self) -> str:
        """All statements joined into a script."""
        return "".join(f"{statement};\n" for statement in self.statements)


class DdlRequest(BaseModel):
    """SQL text to read, with an optional dialect override."""

    sql: str = Field(min_length=1, description="One or more CREATE TABLE statements")
    dialect: Dialect | None = Field(
        default=None,
        description="Dialect to read the SQL in; detected per statement when omitted",
    )


class RenderRequest(DdlRequest):
    """SQL to translate into another dialect."""

    target: Dialect = Field(description="Dialect to render the tables in")


class ParseResponse(BaseModel):
    """Canonical schemas for every table in the request."""

    tables: list[TableSchema]


class CompareResponse(BaseModel):
    """Parsed variants and their comparison against the first one."""

    tables: list[TableSchema]
    comparisons: list[SchemaComparison]


class RenderResponse(BaseModel):
    """Rendered DDL per table."""

    results: list[RenderedDdl]


class ModelsResponse(BaseModel):
    """Generated SQLAlchemy model package, keyed by file name."""

    files: dict[str, str]


class ErrorResponse(BaseModel):
    """Standard error response schema."""

    detail: str = Field(
        description="Error message",
    )
