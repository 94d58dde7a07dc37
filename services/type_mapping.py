"""Column type normalization across dialects.

Three directions are covered:

- declared type text (``varchar(14)``, ``INTEGER``, ``enum('M','F')``) to the
  canonical type recorded on ``ColumnSchema``;
- canonical type to SQLAlchemy type objects, for rendering DDL in a target
  dialect;
- SQLAlchemy type objects (declared models, reflected databases) back to the
  canonical type.

Python annotations for generated models are derived from the canonical type.
"""

import logging
from dataclasses import dataclass

import sqlalchemy as sa
from sqlalchemy.dialects import mysql
from sqlalchemy.types import UserDefinedType

from schemas.table_schema import ColumnSchema, Dialect

logger = logging.getLogger(__name__)

# Declared type name (upper case, single spaces) -> canonical type.
TYPE_ALIASES: dict[str, str] = {
    "INT": "INTEGER",
    "INTEGER": "INTEGER",
    "INT4": "INTEGER",
    "MEDIUMINT": "INTEGER",
    "INT2": "SMALLINT",
    "SMALLINT": "SMALLINT",
    "TINYINT": "TINYINT",
    "BIGINT": "BIGINT",
    "INT8": "BIGINT",
    "BOOL": "BOOLEAN",
    "BOOLEAN": "BOOLEAN",
    "BIT": "BIT",
    "DECIMAL": "DECIMAL",
    "DEC": "DECIMAL",
    "NUMERIC": "DECIMAL",
    "FIXED": "DECIMAL",
    "FLOAT": "FLOAT",
    "FLOAT4": "FLOAT",
    "REAL": "REAL",
    "DOUBLE": "DOUBLE",
    "DOUBLE PRECISION": "DOUBLE",
    "FLOAT8": "DOUBLE",
    "DATE": "DATE",
    "TIME": "TIME",
    "TIMETZ": "TIME",
    "TIME WITH TIME ZONE": "TIME",
    "TIME WITHOUT TIME ZONE": "TIME",
    "DATETIME": "DATETIME",
    "TIMESTAMP": "TIMESTAMP",
    "TIMESTAMPTZ": "TIMESTAMP",
    "TIMESTAMP WITH TIME ZONE": "TIMESTAMP",
    "TIMESTAMP WITHOUT TIME ZONE": "TIMESTAMP",
    "YEAR": "YEAR",
    "INTERVAL": "INTERVAL",
    "CHAR": "CHAR",
    "CHARACTER": "CHAR",
    "NCHAR": "CHAR",
    "NATIONAL CHAR": "CHAR",
    "VARCHAR": "VARCHAR",
    "VARCHAR2": "VARCHAR",
    "NVARCHAR": "VARCHAR",
    "CHARACTER VARYING": "VARCHAR",
    "NATIONAL VARCHAR": "VARCHAR",
    "TEXT": "TEXT",
    "TINYTEXT": "TEXT",
    "MEDIUMTEXT": "TEXT",
    "LONGTEXT": "TEXT",
    "CLOB": "TEXT",
    "BLOB": "BLOB",
    "TINYBLOB": "BLOB",
    "MEDIUMBLOB": "BLOB",
    "LONGBLOB": "BLOB",
    "BYTEA": "BLOB",
    "BINARY": "BINARY",
    "VARBINARY": "VARBINARY",
    "JSON": "JSON",
    "JSONB": "JSON",
    "UUID": "UUID",
    "ENUM": "ENUM",
    "SET": "SET",
    "": "ANY",
}

# PostgreSQL pseudo types that imply an auto-incrementing integer.
SERIAL_TYPES: dict[str, str] = {
    "SMALLSERIAL": "SMALLINT",
    "SERIAL2": "SMALLINT",
    "SERIAL": "INTEGER",
    "SERIAL4": "INTEGER",
    "BIGSERIAL": "BIGINT",
    "SERIAL8": "BIGINT",
}

LENGTH_TYPES = {"CHAR", "VARCHAR", "BINARY", "VARBINARY", "BIT"}
PRECISION_TYPES = {"DECIMAL", "FLOAT", "DOUBLE", "REAL"}
FRACTIONAL_TYPES = {"TIME", "DATETIME", "TIMESTAMP"}
VALUE_LIST_TYPES = {"ENUM", "SET"}

PYTHON_TYPES: dict[str, str] = {
    "INTEGER": "int",
    "SMALLINT": "int",
    "TINYINT": "int",
    "BIGINT": "int",
    "BIT": "int",
    "YEAR": "int",
    "BOOLEAN": "bool",
    "DECIMAL": "decimal.Decimal",
    "FLOAT": "float",
    "REAL": "float",
    "DOUBLE": "float",
    "DATE": "datetime.date",
    "TIME": "datetime.time",
    "DATETIME": "datetime.datetime",
    "TIMESTAMP": "datetime.datetime",
    "INTERVAL": "datetime.timedelta",
    "CHAR": "str",
    "VARCHAR": "str",
    "TEXT": "str",
    "ENUM": "str",
    "SET": "str",
    "BLOB": "bytes",
    "BINARY": "bytes",
    "VARBINARY": "bytes",
    "JSON": "dict",
    "UUID": "uuid.UUID",
}


@dataclass(frozen=True)
class NormalizedType:
    """Canonical type information for one column."""

    data_type: str
    length: int | None = None
    precision: int | None = None
    scale: int | None = None
    enum_values: tuple[str, ...] | None = None
    auto_increment: bool = False
    unsigned: bool = False
    collation: str | None = None


class RawType(UserDefinedType):
    """Passes a declared type through to DDL verbatim."""

    cache_ok = True

    def __init__(self, spec: str):
        self.spec = spec

    def get_col_spec(self, **kw) -> str:
        return self.spec


def _int_arg(args: list[str], index: int) -> int | None:
    try:
        return int(args[index])
    except (IndexError, ValueError):
        return None


def normalize_type(name: str, args: list[str] | None = None, dialect: Dialect = Dialect.ANSI) -> NormalizedType:
    """Map a declared type name and its arguments to the canonical type.

    Args:
        name: Type name as written, possibly several words
            (``double precision``).
        args: Parenthesized arguments, already unquoted.
        dialect: Dialect the type was declared in.

    Returns:
        The canonical type. Unknown names are kept upper-cased.
    """
    args = args or []
    key = " ".join(name.upper().split())

    if key in SERIAL_TYPES:
        return NormalizedType(SERIAL_TYPES[key], auto_increment=True)

    data_type = TYPE_ALIASES.get(key, key)

    if dialect == Dialect.MYSQL and data_type == "TINYINT" and args == ["1"]:
        return NormalizedType("BOOLEAN")

    if data_type in VALUE_LIST_TYPES:
        return NormalizedType(data_type, enum_values=tuple(args))
    if data_type in LENGTH_TYPES:
        return NormalizedType(data_type, length=_int_arg(args, 0))
    if data_type in PRECISION_TYPES:
        return NormalizedType(data_type, precision=_int_arg(args, 0), scale=_int_arg(args, 1))
    if data_type in FRACTIONAL_TYPES:
        return NormalizedType(data_type, precision=_int_arg(args, 0))
    # Integer display widths such as int(11) carry no type information.
    return NormalizedType(data_type)


def sqlite_affinity(raw_type: str) -> str:
    """Return the SQLite column affinity for a declared type."""
    declared = raw_type.upper()
    if "INT" in declared:
        return "INTEGER"
    if any(part in declared for part in ("CHAR", "CLOB", "TEXT")):
        return "TEXT"
    if not declared.strip() or "BLOB" in declared:
        return "BLOB"
    if any(part in declared for part in ("REAL", "FLOA", "DOUB")):
        return "REAL"
    return "NUMERIC"


def python_type_for(column: ColumnSchema) -> str:
    """Return the Python annotation used for a column in generated models."""
    return PYTHON_TYPES.get(column.data_type, "str")


def sqlalchemy_type_for(
    column: ColumnSchema,
    dialect: Dialect,
    table_name: str | None = None,
    warnings: list[str] | None = None,
) -> sa.types.TypeEngine:
    """Build the SQLAlchemy type used to render a column in a target dialect.

    Args:
        column: Column to render.
        dialect: Target dialect.
        table_name: Owning table, used to name emulated ENUM constraints.
        warnings: Collects notes about information the target cannot hold.

    Returns:
        A SQLAlchemy type instance.
    """
    if warnings is None:
        warnings = []
    is_mysql = dialect == Dialect.MYSQL
    collation = column.collation if is_mysql else None
    data_type = column.data_type

    if data_type == "ENUM":
        values = column.enum_values or ()
        if is_mysql:
            return mysql.ENUM(*values, collation=collation) if collation else mysql.ENUM(*values)
        warnings.append(
            f"Column {column.name!r}: ENUM emulated as VARCHAR with a CHECK constraint on {dialect.value}"
        )
        return sa.Enum(
            *values,
            name=f"ck_{table_name or 'table'}_{column.name}",
            native_enum=False,
            create_constraint=True,
        )
    if data_type == "SET":
        if is_mysql:
            return mysql.SET(*(column.enum_values or ()))
        warnings.append(f"Column {column.name!r}: SET has no equivalent on {dialect.value}, stored as TEXT")
        return sa.Text()

    if data_type in ("INTEGER", "SMALLINT", "TINYINT", "BIGINT") and column.unsigned:
        if is_mysql:
            return {
                "INTEGER": mysql.INTEGER,
                "SMALLINT": mysql.SMALLINT,
                "TINYINT": mysql.TINYINT,
                "BIGINT": mysql.BIGINT,
            }[data_type](unsigned=True)
        warnings.append(f"Column {column.name!r}: UNSIGNED dropped on {dialect.value}")

    if data_type == "INTEGER":
        return sa.Integer()
    if data_type == "SMALLINT":
        return sa.SmallInteger()
    if data_type == "TINYINT":
        return mysql.TINYINT() if is_mysql else sa.SmallInteger()
    if data_type == "BIGINT":
        return sa.BigInteger()
    if data_type == "BOOLEAN":
        return sa.Boolean()
    if data_type == "BIT":
        return mysql.BIT(column.length) if is_mysql else sa.Integer()
    if data_type == "YEAR":
        return mysql.YEAR() if is_mysql else sa.SmallInteger()
    if data_type == "DECIMAL":
        return sa.Numeric(column.precision, column.scale)
    if data_type == "FLOAT":
        return sa.Float(column.precision)
    if data_type == "REAL":
        return sa.REAL()
    if data_type == "DOUBLE":
        return sa.Double()
    if data_type == "DATE":
        return sa.Date()
    if data_type == "TIME":
        return sa.Time()
    if data_type == "DATETIME":
        return sa.DateTime()
    if data_type == "TIMESTAMP":
        return sa.TIMESTAMP()
    if data_type == "INTERVAL":
        return sa.Interval()
    if data_type == "CHAR":
        return sa.CHAR(column.length, collation=collation)
    if data_type == "VARCHAR":
        if column.length is None and is_mysql:
            warnings.append(f"Column {column.name!r}: VARCHAR without length rendered as TEXT on mysql")
            return sa.Text(collation=collation)
        return sa.String(column.length, collation=collation)
    if data_type == "TEXT":
        return sa.Text(collation=collation)
    if data_type == "BLOB":
        return sa.LargeBinary()
    if data_type == "BINARY":
        return sa.BINARY(column.length)
    if data_type == "VARBINARY":
        return sa.VARBINARY(column.length)
    if data_type == "JSON":
        return sa.JSON()
    if data_type == "UUID":
        return sa.Uuid()
    if data_type == "ANY":
        if dialect == Dialect.SQLITE:
            return RawType("")
        warnings.append(f"Column {column.name!r}: untyped column rendered as TEXT on {dialect.value}")
        return sa.Text()

    logger.debug("Passing through unknown type %s for column %s", column.raw_type, column.name)
    warnings.append(f"Column {column.name!r}: unknown type {column.raw_type!r} passed through verbatim")
    return RawType(column.raw_type or data_type)


def type_from_sqlalchemy(sa_type: sa.types.TypeEngine) -> NormalizedType:
    """Map a SQLAlchemy type (declared or reflected) to the canonical type."""
    visit_name = getattr(sa_type, "__visit_name__", "").upper()
    collation = getattr(sa_type, "collation", None)
    unsigned = bool(getattr(sa_type, "unsigned", False))

    if isinstance(sa_type, mysql.SET):
        return NormalizedType("SET", enum_values=tuple(sa_type.values))
    if isinstance(sa_type, sa.Enum):
        return NormalizedType("ENUM", enum_values=tuple(sa_type.enums), collation=collation)
    if isinstance(sa_type, sa.Boolean):
        return NormalizedType("BOOLEAN")
    if isinstance(sa_type, sa.Integer):
        if visit_name == "TINYINT" and getattr(sa_type, "display_width", None) == 1:
            return NormalizedType("BOOLEAN")
        if isinstance(sa_type, sa.BigInteger):
            data_type = "BIGINT"
        elif visit_name == "TINYINT":
            data_type = "TINYINT"
        elif isinstance(sa_type, sa.SmallInteger):
            data_type = "SMALLINT"
        else:
            data_type = "INTEGER"
        return NormalizedType(data_type, unsigned=unsigned)
    if isinstance(sa_type, sa.Float):
        if isinstance(sa_type, sa.Double) or visit_name in ("DOUBLE", "DOUBLE_PRECISION"):
            data_type = "DOUBLE"
        elif visit_name == "REAL":
            data_type = "REAL"
        else:
            data_type = "FLOAT"
        return NormalizedType(data_type, precision=sa_type.precision)
    if isinstance(sa_type, sa.Numeric):
        return NormalizedType("DECIMAL", precision=sa_type.precision, scale=sa_type.scale)
    if isinstance(sa_type, sa.DateTime):
        return NormalizedType("TIMESTAMP" if visit_name == "TIMESTAMP" else "DATETIME")
    if isinstance(sa_type, sa.Date):
        return NormalizedType("DATE")
    if isinstance(sa_type, sa.Time):
        return NormalizedType("TIME")
    if isinstance(sa_type, sa.Interval):
        return NormalizedType("INTERVAL")
    if isinstance(sa_type, sa.Text):
        return NormalizedType("TEXT", collation=collation)
    if isinstance(sa_type, (sa.CHAR, sa.NCHAR)):
        return NormalizedType("CHAR", length=sa_type.length, collation=collation)
    if isinstance(sa_type, sa.String):
        return NormalizedType("VARCHAR", length=sa_type.length, collation=collation)
    if isinstance(sa_type, sa.LargeBinary):
        return NormalizedType("BLOB")
    if visit_name in ("BINARY", "VARBINARY"):
        return NormalizedType(visit_name, length=getattr(sa_type, "length", None))
    if isinstance(sa_type, sa.JSON):
        return NormalizedType("JSON")
    if isinstance(sa_type, sa.Uuid):
        return NormalizedType("UUID")
    if isinstance(sa_type, RawType):
        return normalize_type(sa_type.spec)
    if isinstance(sa_type, sa.types.NullType):
        return NormalizedType("ANY")
    return NormalizedType(TYPE_ALIASES.get(visit_name, visit_name))
