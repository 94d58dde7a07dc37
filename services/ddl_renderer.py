"""Render canonical table schemas as DDL for a target dialect."""

import logging

import sqlalchemy as sa
from sqlalchemy.dialects import mysql, postgresql, sqlite
from sqlalchemy.engine import default
from sqlalchemy.schema import CreateIndex, CreateTable, SetColumnComment, SetTableComment

from schemas.ddl import RenderedDdl
from schemas.table_schema import Dialect, TableSchema
from services.exceptions import UnsupportedDialectError
from services.sqlalchemy_bridge import schema_to_table

logger = logging.getLogger(__name__)


def compiler_dialect(dialect: Dialect) -> sa.engine.Dialect:
    """Return the SQLAlchemy dialect used to compile DDL for ``dialect``."""
    if dialect == Dialect.MYSQL:
        return mysql.dialect()
    if dialect == Dialect.SQLITE:
        return sqlite.dialect()
    if dialect == Dialect.POSTGRESQL:
        return postgresql.dialect()
    if dialect == Dialect.ANSI:
        return default.DefaultDialect()
    raise UnsupportedDialectError(f"Cannot render DDL for dialect {dialect!r}")


def _compile(element, dialect: sa.engine.Dialect) -> str:
    return str(element.compile(dialect=dialect)).strip()


def render_create_table(schema: TableSchema, target: Dialect | str) -> RenderedDdl:
    """Render ``schema`` as DDL statements for ``target``.

    Args:
        schema: Canonical table schema, read from any dialect.
        target: Dialect to render in.

    Returns:
        RenderedDdl: ``CREATE TABLE`` followed by ``CREATE INDEX`` and, on
        PostgreSQL, ``COMMENT ON`` statements, plus a warning for every piece
        of information the target could not express.

    Raises:
        UnsupportedDialectError: If ``target`` is not a known dialect.
    """
    try:
        target = Dialect(target)
    except ValueError as e:
        raise UnsupportedDialectError(f"Unsupported dialect: {target}") from e
    compiler = compiler_dialect(target)

    warnings: list[str] = []
    metadata = sa.MetaData()
    table = schema_to_table(schema, metadata, target, warnings)

    statements = [_compile(CreateTable(table), compiler)]
    for index in sorted(table.indexes, key=lambda i: str(i.name)):
        statements.append(_compile(CreateIndex(index), compiler))

    # PostgreSQL has no inline comment syntax.
    if target == Dialect.POSTGRESQL:
        if table.comment:
            statements.append(_compile(SetTableComment(table), compiler))
        for column in table.columns:
            if column.comment:
                statements.append(_compile(SetColumnComment(column), compiler))

    for warning in warnings:
        logger.warning("Rendering %s for %s: %s", schema.name, target.value, warning)

    return RenderedDdl(table=schema.name, dialect=target, statements=statements, warnings=warnings)


def render_script(tables: list[TableSchema], target: Dialect | str) -> list[RenderedDdl]:
    """Render several tables for the same target."""
    return [render_create_table(table, target) for table in tables]
