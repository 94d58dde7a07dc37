"""Tests for comparing dialect variants of the employees table."""

from __future__ import annotations

import pytest

from services.ddl_parser import parse_create_table
from services.exceptions import DdlError
from services.schema_comparator import compare_tables, compare_variants

pytestmark = pytest.mark.unit


def test_mysql_and_ansi_variants_are_equivalent(mysql_employees, ansi_employees) -> None:
    """Match types, lengths, value sets, nullability and defaults."""

    comparison = compare_tables(mysql_employees, ansi_employees)

    assert comparison.same_shape is True
    assert comparison.equivalent is True
    assert comparison.differences == []


def test_sqlite_variant_has_same_shape_but_other_types(mysql_employees, sqlite_employees) -> None:
    """Report same shape and list the attribute-level losses of the SQLite dump."""

    comparison = compare_tables(mysql_employees, sqlite_employees)

    assert comparison.same_shape is True
    assert comparison.same_order is True
    assert comparison.same_primary_key is True
    assert comparison.missing_columns == []
    assert comparison.extra_columns == []
    assert comparison.equivalent is False

    differences = {(d.column, d.attribute): (d.expected, d.actual) for d in comparison.differences}
    assert differences[("birth_date", "data_type")] == ("DATE", "INTEGER")
    assert differences[("gender", "enum_values")] == (("M", "F"), None)
    assert differences[("first_name", "nullable")] == (False, True)
    assert differences[("first_name", "default")] == ({"value": '""', "kind": "string"}, None)
    assert ("last_name", "default") not in differences
    assert ("emp_no", "data_type") not in differences


def test_compare_variants_against_first(employees_variants) -> None:
    """Compare every later variant with the first one."""

    comparisons = compare_variants(employees_variants)

    assert [c.other_dialect.value for c in comparisons] == ["sqlite", "ansi"]
    assert all(c.same_shape for c in comparisons)


def test_compare_detects_missing_extra_and_reordered_columns() -> None:
    """Report column set, order and primary key mismatches."""

    reference = parse_create_table("CREATE TABLE t (a int, b int, c int, PRIMARY KEY (a))")
    other = parse_create_table("CREATE TABLE t (B int, a int, d int, PRIMARY KEY (B))")

    comparison = compare_tables(reference, other)

    assert comparison.missing_columns == ["c"]
    assert comparison.extra_columns == ["d"]
    assert comparison.same_order is False
    assert comparison.same_primary_key is False
    assert comparison.same_shape is False


def test_compare_with_custom_attributes(mysql_employees, sqlite_employees) -> None:
    """Restrict the comparison to the requested attributes."""

    comparison = compare_tables(mysql_employees, sqlite_employees, attributes=("comment",))

    assert {d.attribute for d in comparison.differences} == {"comment"}
    assert len(comparison.differences) == 6


def test_comparison_serializes_computed_fields(mysql_employees, ansi_employees) -> None:
    """Include same_shape and equivalent in the serialized result."""

    dumped = compare_tables(mysql_employees, ansi_employees).model_dump(mode="json")

    assert dumped["same_shape"] is True
    assert dumped["equivalent"] is True


def test_compare_variants_needs_two_tables(mysql_employees) -> None:
    """Refuse to compare a single table."""

    with pytest.raises(DdlError):
        compare_variants([mysql_employees])
