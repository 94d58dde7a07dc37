"""Tests for SQLAlchemy model code generation."""

from __future__ import annotations

import ast
import importlib
import sys

import pytest

from schemas.table_schema import Dialect
from services.ddl_parser import parse_create_table
from services.model_generator import (
    attribute_name_for,
    class_name_for,
    generate_model_source,
    generate_package,
    module_name_for,
    write_package,
)
from services.schema_comparator import compare_tables
from services.sqlalchemy_bridge import table_to_schema


@pytest.mark.unit
def test_names() -> None:
    """Derive class, module and attribute names from SQL names."""

    assert class_name_for("employees") == "Employees"
    assert class_name_for("dept_emp") == "DeptEmp"
    assert class_name_for("2024_sales") == "Table2024Sales"
    assert module_name_for("Dept-Emp") == "dept_emp"
    assert module_name_for("class") == "class_table"
    assert attribute_name_for("emp_no") == "emp_no"
    assert attribute_name_for("class") == "class_"
    assert attribute_name_for("metadata") == "metadata_"
    assert attribute_name_for("2fa") == "col_2fa"
    assert attribute_name_for("first name") == "first_name"


@pytest.mark.unit
def test_generate_model_source_for_mysql_variant(mysql_employees) -> None:
    """Render one Column per column with type, keys, defaults and comments."""

    source = generate_model_source(mysql_employees)

    compile(source, "employees.py", "exec")
    assert "from models.base import Base" in source
    assert "class Employees(Base):" in source
    assert '    """员工表"""' in source
    assert "__tablename__ = 'employees'" in source
    assert "'mysql_engine': 'InnoDB'," in source
    assert (
        "emp_no: Mapped[int] = Column(Integer, primary_key=True, autoincrement=False, "
        "nullable=False, comment='员工编号')"
    ) in source
    assert "String(14, collation='utf8mb4_unicode_ci')" in source
    assert "server_default='\"\"'" in source
    assert "server_default='默认值测试'" in source
    assert (
        "gender: Mapped[str] = Column(mysql.ENUM('M', 'F', collation='utf8mb4_unicode_ci'), nullable=False"
    ) in source
    assert "from sqlalchemy.dialects import mysql" in source
    assert "birth_date: Mapped[datetime.date]" in source
    assert "import datetime" in source


@pytest.mark.unit
def test_generate_model_source_for_sqlite_variant(sqlite_employees) -> None:
    """Annotate nullable columns as optional and omit MySQL-only details."""

    source = generate_model_source(sqlite_employees)

    compile(source, "employees.py", "exec")
    assert "birth_date: Mapped[int | None] = Column(Integer, nullable=True)" in source
    assert "first_name: Mapped[str | None] = Column(Text, nullable=True)" in source
    assert "__table_args__" not in source
    assert "import datetime" not in source


@pytest.mark.unit
def test_generate_model_source_renames_unsafe_columns() -> None:
    """Pass the real column name explicitly when the attribute name differs."""

    table = parse_create_table("CREATE TABLE t (id int PRIMARY KEY, `class` varchar(8), `2fa` tinyint(1))")

    source = generate_model_source(table)

    compile(source, "t.py", "exec")
    assert "class_: Mapped[str | None] = Column('class', String(8), nullable=True)" in source
    assert "col_2fa: Mapped[bool | None] = Column('2fa', Boolean, nullable=True)" in source


@pytest.mark.unit
def test_generate_model_source_keeps_quotes_and_backslashes_in_docstrings() -> None:
    """Escape table comments so the docstring compiles and reads back unchanged."""

    comment = 'say "hi" to C:\\tmp\\'
    table = parse_create_table("CREATE TABLE t (id int PRIMARY KEY)").model_copy(update={"comment": comment})

    source = generate_model_source(table)

    module = ast.parse(source)
    (model,) = [node for node in module.body if isinstance(node, ast.ClassDef)]
    assert ast.get_docstring(model, clean=False) == comment
    assert ast.get_docstring(module) == "Model for the t table."


@pytest.mark.unit
def test_generate_package_layout(employees_variants) -> None:
    """Produce base.py, __init__.py and one module per distinct table."""

    files = generate_package(employees_variants, package="hr_models")

    assert set(files) == {"base.py", "__init__.py", "employees.py"}
    assert "class Base(DeclarativeBase):" in files["base.py"]
    assert "from hr_models.employees import Employees" in files["__init__.py"]
    assert "    'Employees'," in files["__init__.py"]
    # First definition wins.
    assert "utf8mb4_unicode_ci" in files["employees.py"]
    for name, source in files.items():
        compile(source, name, "exec")


@pytest.mark.integration
def test_generated_package_imports_and_matches_source(tmp_path, monkeypatch, mysql_employees) -> None:
    """Import the generated package and read the same schema back from it."""

    package = "generated_employee_models"
    written = write_package(generate_package([mysql_employees], package), tmp_path / package)
    monkeypatch.syspath_prepend(str(tmp_path))

    assert sorted(path.name for path in written) == ["__init__.py", "base.py", "employees.py"]
    try:
        module = importlib.import_module(package)
        schema = table_to_schema(module.Employees.__table__, Dialect.MYSQL)
    finally:
        for name in [name for name in sys.modules if name.startswith(package)]:
            del sys.modules[name]

    comparison = compare_tables(mysql_employees, schema)
    assert comparison.equivalent is True
    assert schema.comment == "员工表"
    assert schema.options["engine"] == "InnoDB"
    assert schema.column("gender").collation == "utf8mb4_unicode_ci"
    assert [column.comment for column in schema.columns] == [column.comment for column in mysql_employees.columns]
