"""Tests for the ddl-schema command line."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
import sqlalchemy as sa

from app.cli import main

pytestmark = pytest.mark.integration

SAMPLE = str(Path(__file__).resolve().parent.parent / "samples" / "employees.sql")


def test_parse_prints_json(capsys) -> None:
    """Print every parsed table as JSON."""

    assert main(["parse", SAMPLE]) == 0

    tables = json.loads(capsys.readouterr().out)
    assert [table["dialect"] for table in tables] == ["mysql", "sqlite", "ansi"]
    assert tables[0]["comment"] == "员工表"


def test_compare_same_shape_exits_zero(capsys) -> None:
    """Exit 0 when all variants share the same shape."""

    assert main(["compare", SAMPLE]) == 0

    out = capsys.readouterr().out
    assert "#2 employees (sqlite) vs #1 employees (mysql): same shape" in out
    assert "#3 employees (ansi) vs #1 employees (mysql): equivalent" in out
    assert "birth_date.data_type: 'DATE' != 'INTEGER'" in out


def test_compare_different_shape_exits_one(tmp_path, capsys) -> None:
    """Exit 1 when a variant misses a column."""

    sql_file = tmp_path / "variants.sql"
    sql_file.write_text("CREATE TABLE t (a int, b int);\nCREATE TABLE t (a int);\n", encoding="utf-8")

    assert main(["compare", str(sql_file)]) == 1
    assert "missing column: b" in capsys.readouterr().out


def test_render_prints_ddl_and_warnings(capsys) -> None:
    """Print rendered DDL preceded by warnings as SQL comments."""

    assert main(["render", SAMPLE, "--to", "postgresql"]) == 0

    out = capsys.readouterr().out
    assert "CREATE TABLE employees" in out
    assert "COMMENT ON TABLE employees IS '员工表';" in out
    assert "-- warning: Column 'gender': ENUM emulated" in out


def test_generate_from_file(tmp_path) -> None:
    """Write a models package generated from a SQL file."""

    out_dir = tmp_path / "models_out"

    assert main(["generate", "--from-file", SAMPLE, "--path", str(out_dir)]) == 0

    assert sorted(path.name for path in out_dir.iterdir()) == ["__init__.py", "base.py", "employees.py"]
    assert "from models_out.base import Base" in (out_dir / "employees.py").read_text(encoding="utf-8")


def test_generate_from_sqlite_database(tmp_path) -> None:
    """Introspect a SQLite database given as driver and file."""

    db_file = tmp_path / "hr.db"
    engine = sa.create_engine(f"sqlite:///{db_file}")
    with engine.begin() as connection:
        connection.exec_driver_sql("CREATE TABLE employees (emp_no INTEGER PRIMARY KEY, name VARCHAR(14))")
        connection.exec_driver_sql("CREATE TABLE salaries (emp_no INTEGER, salary INTEGER)")
    engine.dispose()
    out_dir = tmp_path / "hr_models"

    exit_code = main(["generate", "sqlite", "-D", str(db_file), "--path", str(out_dir), "-t", "salaries"])

    assert exit_code == 0
    assert sorted(path.name for path in out_dir.iterdir()) == ["__init__.py", "base.py", "salaries.py"]


def test_generate_with_no_matching_tables_writes_nothing(tmp_path) -> None:
    """Exit 0 without writing when the table filter matches nothing."""

    out_dir = tmp_path / "empty"

    assert main(["generate", "--from-file", SAMPLE, "--path", str(out_dir), "-t", "salaries"]) == 0
    assert not out_dir.exists()


def test_errors_exit_two(tmp_path, capsys) -> None:
    """Print domain errors and exit with status 2."""

    sql_file = tmp_path / "bad.sql"
    sql_file.write_text("CREATE TABLE t (a int NOT FOO)", encoding="utf-8")

    assert main(["parse", str(sql_file)]) == 2
    assert "error: Expected NULL" in capsys.readouterr().err
    assert main(["parse", str(tmp_path / "missing.sql")]) == 2
