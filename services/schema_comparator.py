"""Comparison of table schemas read from different dialect variants."""

import logging
from typing import Any

from pydantic import BaseModel

from schemas.ddl import ColumnDifference, SchemaComparison
from schemas.table_schema import TableSchema
from services.exceptions import DdlError

logger = logging.getLogger(__name__)

DEFAULT_ATTRIBUTES: tuple[str, ...] = ("data_type", "length", "enum_values", "nullable", "default")


def _comparable(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump()
    return value


def compare_tables(
    reference: TableSchema,
    other: TableSchema,
    attributes: tuple[str, ...] = DEFAULT_ATTRIBUTES,
) -> SchemaComparison:
    """Compare ``other`` against ``reference``.

    Column names are matched case-insensitively. Attribute differences are
    reported only for columns present in both tables, in reference order.
    """
    reference_names = [name.lower() for name in reference.column_names]
    other_names = [name.lower() for name in other.column_names]
    shared = [name for name in reference_names if name in other_names]

    differences: list[ColumnDifference] = []
    for name in shared:
        expected_column = reference.column(name)
        actual_column = other.column(name)
        for attribute in attributes:
            expected = _comparable(getattr(expected_column, attribute))
            actual = _comparable(getattr(actual_column, attribute))
            if expected != actual:
                differences.append(
                    ColumnDifference(
                        column=expected_column.name,
                        attribute=attribute,
                        expected=expected,
                        actual=actual,
                    )
                )

    comparison = SchemaComparison(
        table=reference.name,
        reference_dialect=reference.dialect,
        other_dialect=other.dialect,
        missing_columns=[c.name for c in reference.columns if c.name.lower() not in other_names],
        extra_columns=[c.name for c in other.columns if c.name.lower() not in reference_names],
        same_order=[n for n in reference_names if n in other_names] == [n for n in other_names if n in reference_names],
        same_primary_key=[n.lower() for n in reference.primary_key] == [n.lower() for n in other.primary_key],
        differences=differences,
    )
    logger.debug(
        "Compared %s (%s) with %s (%s): shape=%s, differences=%d",
        reference.name,
        reference.dialect.value,
        other.name,
        other.dialect.value,
        comparison.same_shape,
        len(differences),
    )
    return comparison


def compare_variants(
    tables: list[TableSchema],
    attributes: tuple[str, ...] = DEFAULT_ATTRIBUTES,
) -> list[SchemaComparison]:
    """Compare every table against the first one.

    Raises:
        DdlError: If fewer than two tables are given.
    """
    if len(tables) < 2:
        raise DdlError("At least two table definitions are needed for a comparison")
    reference, *others = tables
    return [compare_tables(reference, other, attributes) for other in others]
