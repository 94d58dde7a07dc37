"""Services package."""

from services.ddl_parser import detect_dialect, parse_create_table, parse_script
from services.ddl_renderer import render_create_table
from services.model_generator import generate_package
from services.schema_comparator import compare_tables, compare_variants

__all__ = [
    "detect_dialect",
    "parse_create_table",
    "parse_script",
    "render_create_table",
    "compare_tables",
    "compare_variants",
    "generate_package",
]
