"""Generate SQLAlchemy declarative model modules from table schemas.

Each table becomes one module holding one model class. The package also gets a
``base.py`` with the declarative base and an ``__init__.py`` re-exporting
every model.
"""

import keyword
import logging
import re
from pathlib import Path

from schemas.table_schema import ColumnDefault, ColumnSchema, Dialect, TableSchema
from services.type_mapping import python_type_for

logger = logging.getLogger(__name__)

BASE_MODULE_TEMPLATE = '''"""SQLAlchemy base class for generated models."""

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """SQLAlchemy declarative base class."""

    pass
'''

MODEL_MODULE_TEMPLATE = '''"""{module_doc}"""

{imports}

from {package}.base import Base


class {class_name}(Base):
    """{class_doc}"""

    __tablename__ = {table_name!r}
{table_args}
{columns}
'''

INIT_MODULE_TEMPLATE = '''"""Generated models package."""

{imports}

__all__ = [
{names}
]
'''

# Attribute names the declarative base reserves for itself.
RESERVED_ATTRIBUTES = {"metadata", "registry"}


def class_name_for(table_name: str) -> str:
    """Return the UpperCamelCase class name for a table."""
    words = [word for word in re.split(r"[\W_]+", table_name) if word]
    name = "".join(word[:1].upper() + word[1:] for word in words) or "Table"
    if name[0].isdigit():
        name = f"Table{name}"
    return name


def module_name_for(table_name: str) -> str:
    """Return the module name for a table."""
    name = re.sub(r"\W+", "_", table_name).strip("_").lower() or "table"
    if name[0].isdigit() or keyword.iskeyword(name) or name in ("base", "__init__"):
        name = f"{name}_table"
    return name


def attribute_name_for(column_name: str) -> str:
    """Return a safe Python attribute name for a column.

    Keywords, reserved declarative names and names that are not identifiers
    get a mangled attribute name; the real column name is then passed to
    ``Column`` explicitly.
    """
    name = re.sub(r"\W", "_", column_name)
    if not name or name[0].isdigit():
        name = f"col_{name}"
    if keyword.iskeyword(name) or name in RESERVED_ATTRIBUTES:
        name = f"{name}_"
    return name


def _type_source(column: ColumnSchema, table: TableSchema, imports: set[str]) -> str:
    """Return the SQLAlchemy type expression for a column."""
    collation = column.collation if table.dialect == Dialect.MYSQL else None
    data_type = column.data_type

    simple = {
        "INTEGER": "Integer",
        "SMALLINT": "SmallInteger",
        "TINYINT": "SmallInteger",
        "BIGINT": "BigInteger",
        "BIT": "Integer",
        "YEAR": "SmallInteger",
        "BOOLEAN": "Boolean",
        "REAL": "Double",
        "DOUBLE": "Double",
        "DATE": "Date",
        "TIME": "Time",
        "DATETIME": "DateTime",
        "TIMESTAMP": "DateTime",
        "INTERVAL": "Interval",
        "BLOB": "LargeBinary",
        "BINARY": "LargeBinary",
        "VARBINARY": "LargeBinary",
        "JSON": "JSON",
        "UUID": "Uuid",
    }
    if data_type in simple:
        imports.add(simple[data_type])
        return simple[data_type]

    if data_type == "ENUM":
        values = ", ".join(repr(value) for value in column.enum_values or ())
        if collation:
            imports.add("dialects.mysql")
            return f"mysql.ENUM({values}, collation={collation!r})"
        imports.add("Enum")
        return f"Enum({values}, name={f'{table.name}_{column.name}'!r})"
    if data_type == "DECIMAL":
        imports.add("Numeric")
        if column.precision is None:
            return "Numeric"
        if column.scale is None:
            return f"Numeric({column.precision})"
        return f"Numeric({column.precision}, {column.scale})"
    if data_type == "FLOAT":
        imports.add("Float")
        return f"Float({column.precision})" if column.precision is not None else "Float"

    if data_type in ("CHAR", "VARCHAR"):
        type_name = "CHAR" if data_type == "CHAR" else "String"
        args = [str(column.length)] if column.length is not None else []
    else:
        type_name = "Text"
        args = []
    imports.add(type_name)
    if collation:
        args.append(f"collation={collation!r}")
    if not args:
        return type_name
    return f"{type_name}({', '.join(args)})"


def _docstring_text(text: str) -> str:
    """Escape ``text`` for use inside a triple-quoted docstring."""
    return text.replace("\\", "\\\\").replace('"', '\\"')


def _server_default_source(default: ColumnDefault, imports: set[str]) -> str:
    if default.kind == "string":
        return repr(default.value)
    imports.add("text")
    return f"text({default.as_sql()!r})"


def _annotation_for(column: ColumnSchema, modules: set[str]) -> str:
    annotation = python_type_for(column)
    if "." in annotation:
        modules.add(annotation.split(".", 1)[0])
    return f"{annotation} | None" if column.nullable else annotation


def _column_source(column: ColumnSchema, table: TableSchema, imports: set[str], modules: set[str]) -> str:
    attribute = attribute_name_for(column.name)
    args: list[str] = []
    if attribute != column.name:
        args.append(repr(column.name))
    args.append(_type_source(column, table, imports))
    if column.primary_key:
        args.append("primary_key=True")
        # Integer primary keys autoincrement implicitly unless told otherwise.
        args.append(f"autoincrement={column.auto_increment}")
    elif column.auto_increment:
        args.append("autoincrement=True")
    if column.unique:
        args.append("unique=True")
    args.append(f"nullable={column.nullable}")
    if column.default is not None and column.default.kind != "null":
        args.append(f"server_default={_server_default_source(column.default, imports)}")
    if column.comment:
        args.append(f"comment={column.comment!r}")

    annotation = _annotation_for(column, modules)
    return f"    {attribute}: Mapped[{annotation}] = Column({', '.join(args)})"


def _table_args_source(table: TableSchema) -> str:
    table_args: dict[str, str] = {}
    if table.schema_name:
        table_args["schema"] = table.schema_name
    if table.comment:
        table_args["comment"] = table.comment
    if table.dialect == Dialect.MYSQL:
        for key in ("engine", "charset", "collate"):
            if key in table.options:
                table_args[f"mysql_{key}"] = table.options[key]
    if not table_args:
        return ""
    body = "".join(f"        {key!r}: {value!r},\n" for key, value in table_args.items())
    return f"    __table_args__ = {{\n{body}    }}\n"


def generate_model_source(schema: TableSchema, package: str = "models") -> str:
    """Render the model module for one table.

    Args:
        schema: Table to generate a model for.
        package: Import package the generated modules live in.

    Returns:
        str: Python source of the module.
    """
    imports: set[str] = {"Column"}
    modules: set[str] = set()
    columns = [_column_source(column, schema, imports, modules) for column in schema.columns]

    import_lines = [f"import {module}" for module in sorted(modules)]
    if import_lines:
        import_lines.append("")
    names = sorted((name for name in imports if "." not in name), key=str.lower)
    import_lines.append(f"from sqlalchemy import {', '.join(names)}")
    for name in sorted(name for name in imports if "." in name):
        parent, _, module = name.rpartition(".")
        import_lines.append(f"from sqlalchemy.{parent} import {module}")
    import_lines.append("from sqlalchemy.orm import Mapped")

    return MODEL_MODULE_TEMPLATE.format(
        module_doc=_docstring_text(f"Model for the {schema.name} table."),
        imports="\n".join(import_lines),
        package=package,
        class_name=class_name_for(schema.name),
        class_doc=_docstring_text(schema.comment or f"Row of the {schema.name} table."),
        table_name=schema.name,
        table_args=_table_args_source(schema),
        columns="\n".join(columns),
    )


def generate_package(tables: list[TableSchema], package: str = "models") -> dict[str, str]:
    """Render a models package for ``tables``.

    Only the first definition of a table name is used; later variants of
    the same table would map onto the same ``__tablename__``.

    Returns:
        dict[str, str]: File name to source, holding ``base.py``,
        ``__init__.py`` and one module per table.
    """
    files: dict[str, str] = {"base.py": BASE_MODULE_TEMPLATE}
    exports: list[tuple[str, str]] = []
    for table in tables:
        module = module_name_for(table.name)
        if f"{module}.py" in files:
            logger.warning("Skipping duplicate definition of table %s (%s)", table.name, table.dialect.value)
            continue
        class_name = class_name_for(table.name)
        files[f"{module}.py"] = generate_model_source(table, package)
        exports.append((module, class_name))

    import_lines = [f"from {package}.base import Base"]
    import_lines.extend(f"from {package}.{module} import {class_name}" for module, class_name in exports)
    names = ["Base", *(class_name for _, class_name in exports)]
    files["__init__.py"] = INIT_MODULE_TEMPLATE.format(
        imports="\n".join(import_lines),
        names="\n".join(f"    {name!r}," for name in names),
    )
    return files


def write_package(files: dict[str, str], path: str | Path) -> list[Path]:
    """Write generated files into ``path``, creating it when needed.

    Returns:
        list[Path]: Paths written, in ``files`` order.
    """
    directory = Path(path)
    directory.mkdir(parents=True, exist_ok=True)
    written: list[Path] = []
    for name, source in files.items():
        target = directory / name
        target.write_text(source, encoding="utf-8")
        logger.info("Generated %s", target)
        written.append(target)
    return written
