"""Conversion between canonical table schemas and SQLAlchemy ``Table`` objects."""

import logging

import sqlalchemy as sa

from schemas.table_schema import (
    ColumnDefault,
    ColumnSchema,
    Dialect,
    ForeignKeySchema,
    IndexSchema,
    TableSchema,
)
from services.ddl_parser import enum_from_check, parse_default_expression
from services.type_mapping import sqlalchemy_type_for, type_from_sqlalchemy

logger = logging.getLogger(__name__)

MYSQL_OPTION_KEYS = {
    "engine": "engine",
    "charset": "charset",
    "default charset": "charset",
    "character set": "charset",
    "default character set": "charset",
    "collate": "collate",
    "default collate": "collate",
}
COMMENT_DIALECTS = {Dialect.MYSQL, Dialect.POSTGRESQL}


def _constraint_name(name) -> str | None:
    return str(name) if isinstance(name, str) else None


def default_from_server_default(server_default, dialect: Dialect = Dialect.ANSI) -> ColumnDefault | None:
    """Translate a SQLAlchemy server default into a ``ColumnDefault``.

    Plain strings are string literals; text clauses and reflected defaults
    are read as SQL.
    """
    if server_default is None:
        return None
    arg = getattr(server_default, "arg", None)
    if arg is None:
        return None
    if isinstance(arg, str):
        return ColumnDefault(value=arg, kind="string")
    return parse_default_expression(str(arg), dialect)


def _server_default_for(default: ColumnDefault | None):
    if default is None:
        return None
    if default.kind == "string":
        return default.value
    return sa.text(default.as_sql())


def table_to_schema(table: sa.Table, dialect: Dialect = Dialect.ANSI) -> TableSchema:
    """Describe a SQLAlchemy table (declared or reflected) as a ``TableSchema``."""
    checks: list[str] = []
    indexes: list[IndexSchema] = []
    for constraint in table.constraints:
        if isinstance(constraint, sa.CheckConstraint) and isinstance(constraint.sqltext, sa.TextClause):
            checks.append(constraint.sqltext.text)
        elif isinstance(constraint, sa.UniqueConstraint):
            indexes.append(
                IndexSchema(
                    name=_constraint_name(constraint.name),
                    columns=tuple(column.name for column in constraint.columns),
                    unique=True,
                )
            )
    for index in sorted(table.indexes, key=lambda i: str(i.name)):
        indexes.append(
            IndexSchema(
                name=_constraint_name(index.name),
                columns=tuple(column.name for column in index.columns),
                unique=bool(index.unique),
            )
        )

    check_enums: dict[str, tuple[str, ...]] = {}
    for expression in checks:
        enum = enum_from_check(expression, dialect)
        if enum is not None:
            check_enums[enum[0].lower()] = enum[1]

    columns: list[ColumnSchema] = []
    for ordinal, column in enumerate(table.columns, start=1):
        normalized = type_from_sqlalchemy(column.type)
        try:
            raw_type = str(column.type)
        except sa.exc.CompileError:
            raw_type = normalized.data_type
        columns.append(
            ColumnSchema(
                name=column.name,
                ordinal=ordinal,
                raw_type=raw_type,
                data_type=normalized.data_type,
                length=normalized.length,
                precision=normalized.precision,
                scale=normalized.scale,
                unsigned=normalized.unsigned,
                enum_values=normalized.enum_values or check_enums.get(column.name.lower()),
                nullable=bool(column.nullable) and not column.primary_key,
                default=default_from_server_default(column.server_default, dialect),
                primary_key=column.primary_key,
                auto_increment=column.autoincrement is True,
                unique=bool(column.unique),
                collation=normalized.collation,
                comment=column.comment,
            )
        )

    foreign_keys = []
    for fk in table.foreign_key_constraints:
        targets = [element.target_fullname.rsplit(".", 2) for element in fk.elements]
        foreign_keys.append(
            ForeignKeySchema(
                name=_constraint_name(fk.name),
                columns=tuple(fk.column_keys),
                referred_table=targets[0][-2],
                referred_columns=tuple(target[-1] for target in targets),
                on_delete=fk.ondelete,
                on_update=fk.onupdate,
            )
        )

    options: dict[str, str] = {}
    for key, value in table.kwargs.items():
        if not key.startswith("mysql_") or value is None:
            continue
        option = key[len("mysql_") :].lower().replace("_", " ")
        if option == "comment":
            continue
        options[MYSQL_OPTION_KEYS.get(option, option.replace(" ", "_"))] = str(value)

    return TableSchema(
        name=table.name,
        schema_name=table.schema,
        dialect=dialect,
        columns=tuple(columns),
        primary_key=tuple(column.name for column in table.primary_key.columns),
        comment=table.comment,
        options=options,
        checks=tuple(checks),
        indexes=tuple(indexes),
        foreign_keys=tuple(foreign_keys),
    )


def _stub_table(metadata: sa.MetaData, name: str, schema_name: str | None, columns: tuple[str, ...]) -> sa.Table:
    """Return the placeholder for a referenced table, adding any missing columns."""
    key = f"{schema_name}.{name}" if schema_name else name
    table = metadata.tables.get(key)
    if table is None:
        return sa.Table(name, metadata, *(sa.Column(column, sa.Integer) for column in columns), schema=schema_name)
    for column in columns:
        if column not in table.c:
            table.append_column(sa.Column(column, sa.Integer))
    return table


def schema_to_table(
    schema: TableSchema,
    metadata: sa.MetaData,
    dialect: Dialect,
    warnings: list[str] | None = None,
) -> sa.Table:
    """Build a SQLAlchemy table for ``schema`` shaped for a target dialect.

    Information the target cannot express is dropped and described in
    ``warnings``. Referenced tables missing from ``metadata`` are added as
    stubs so foreign keys compile.
    """
    if warnings is None:
        warnings = []
    supports_comments = dialect in COMMENT_DIALECTS

    columns: list[sa.Column] = []
    for column in schema.columns:
        if column.collation and dialect != Dialect.MYSQL:
            warnings.append(f"Column {column.name!r}: collation {column.collation} dropped on {dialect.value}")
        if column.charset and dialect != Dialect.MYSQL:
            warnings.append(f"Column {column.name!r}: character set {column.charset} dropped on {dialect.value}")
        if column.comment and not supports_comments:
            warnings.append(f"Column {column.name!r}: comment dropped on {dialect.value}")
        columns.append(
            sa.Column(
                column.name,
                sqlalchemy_type_for(column, dialect, schema.name, warnings),
                primary_key=column.primary_key,
                nullable=column.nullable,
                autoincrement=column.auto_increment,
                unique=True if column.unique else None,
                server_default=_server_default_for(column.default),
                comment=column.comment if supports_comments else None,
            )
        )

    constraints: list[sa.Constraint] = [sa.CheckConstraint(expression) for expression in schema.checks]
    for fk in schema.foreign_keys:
        if fk.referred_table != schema.name:
            _stub_table(metadata, fk.referred_table, schema.schema_name, fk.referred_columns)
        # Unqualified references resolve in the schema of the referencing table.
        prefix = f"{schema.schema_name}.{fk.referred_table}" if schema.schema_name else fk.referred_table
        constraints.append(
            sa.ForeignKeyConstraint(
                list(fk.columns),
                [f"{prefix}.{name}" for name in fk.referred_columns],
                name=fk.name,
                ondelete=fk.on_delete,
                onupdate=fk.on_update,
            )
        )

    kwargs: dict[str, str | bool] = {}
    if schema.comment:
        if supports_comments:
            kwargs["comment"] = schema.comment
        else:
            warnings.append(f"Table {schema.name!r}: comment dropped on {dialect.value}")
    for key, value in schema.options.items():
        if dialect == Dialect.MYSQL and key not in ("without_rowid", "strict"):
            kwargs[f"mysql_{key}"] = value
        elif dialect == Dialect.SQLITE and key == "without_rowid":
            kwargs["sqlite_with_rowid"] = False
        else:
            warnings.append(f"Table {schema.name!r}: option {key}={value} dropped on {dialect.value}")

    table = sa.Table(schema.name, metadata, *columns, *constraints, schema=schema.schema_name, **kwargs)

    by_name = {column.name.lower(): column for column in table.columns}
    for index in schema.indexes:
        name = index.name or f"{'uq' if index.unique else 'ix'}_{schema.name}_{'_'.join(index.columns)}"
        sa.Index(name, *(by_name[column.lower()] for column in index.columns), unique=index.unique)

    logger.debug("Built SQLAlchemy table %s for %s", schema.name, dialect.value)
    return table
