"""Schemas package."""

from schemas.ddl import (
    ColumnDifference,
    CompareResponse,
    DdlRequest,
    ErrorResponse,
    ModelsResponse,
    ParseResponse,
    RenderedDdl,
    RenderRequest,
    RenderResponse,
    SchemaComparison,
)
from schemas.table_schema import (
    ColumnDefault,
    ColumnSchema,
    Dialect,
    ForeignKeySchema,
    IndexSchema,
    TableSchema,
)

__all__ = [
    "Dialect",
    "ColumnDefault",
    "ColumnSchema",
    "IndexSchema",
    "ForeignKeySchema",
    "TableSchema",
    "ColumnDifference",
    "SchemaComparison",
    "RenderedDdl",
    "DdlRequest",
    "RenderRequest",
    "ParseResponse",
    "CompareResponse",
    "RenderResponse",
    "ModelsResponse",
    "ErrorResponse",
]
