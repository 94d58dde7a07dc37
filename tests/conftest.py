"""Pytest fixtures shared across the test suite."""

from __future__ import annotations

from pathlib import Path

import pytest
import sqlalchemy as sa

from schemas.table_schema import TableSchema
from services.ddl_parser import parse_script

SAMPLES_DIR = Path(__file__).resolve().parent.parent / "samples"


@pytest.fixture(scope="session")
def employees_sql() -> str:
    """Return the three employees CREATE TABLE variants."""

    return (SAMPLES_DIR / "employees.sql").read_text(encoding="utf-8")


@pytest.fixture(scope="session")
def employees_variants(employees_sql: str) -> list[TableSchema]:
    """Return the parsed MySQL, SQLite and ANSI variants, in file order."""

    return parse_script(employees_sql)


@pytest.fixture
def mysql_employees(employees_variants: list[TableSchema]) -> TableSchema:
    return employees_variants[0]


@pytest.fixture
def sqlite_employees(employees_variants: list[TableSchema]) -> TableSchema:
    return employees_variants[1]


@pytest.fixture
def ansi_employees(employees_variants: list[TableSchema]) -> TableSchema:
    return employees_variants[2]


@pytest.fixture
def sqlite_engine():
    """Return an in-memory SQLite engine, disposed after the test."""

    engine = sa.create_engine("sqlite://")
    yield engine
    engine.dispose()
