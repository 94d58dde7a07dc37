"""Command line entry point: ``ddl-schema``."""

import argparse
import json
import logging
import sys
from pathlib import Path

from sqlalchemy.exc import SQLAlchemyError

from config.database import create_db_engine
from config.settings import settings
from repositories.schema_repository import DRIVERS, SchemaRepository, build_database_url
from schemas.table_schema import Dialect, TableSchema
from services.ddl_parser import parse_script
from services.ddl_renderer import render_script
from services.exceptions import DdlError, TableNotFoundError
from services.model_generator import generate_package, write_package
from services.schema_comparator import compare_variants

logger = logging.getLogger(__name__)

DIALECT_CHOICES = [dialect.value for dialect in Dialect]


def _read_sql(path: str) -> str:
    if path == "-":
        return sys.stdin.read()
    return Path(path).read_text(encoding="utf-8")


def _split_names(value: str | None) -> list[str]:
    return [name.strip() for name in (value or "").split(",") if name.strip()]


def _parse_file(args: argparse.Namespace) -> list[TableSchema]:
    return parse_script(_read_sql(args.file), args.dialect or settings.default_dialect)


def cmd_parse(args: argparse.Namespace) -> int:
    tables = _parse_file(args)
    print(json.dumps([table.model_dump(mode="json") for table in tables], ensure_ascii=False, indent=2))
    return 0


def cmd_compare(args: argparse.Namespace) -> int:
    """Print how each variant differs from the first; 1 when shapes differ."""
    tables = _parse_file(args)
    comparisons = compare_variants(tables)
    reference = tables[0]
    status = 0
    for position, comparison in enumerate(comparisons, start=2):
        verdict = "equivalent" if comparison.equivalent else "same shape" if comparison.same_shape else "different shape"
        print(
            f"#{position} {comparison.table} ({comparison.other_dialect.value}) "
            f"vs #1 {reference.name} ({comparison.reference_dialect.value}): {verdict}"
        )
        for name in comparison.missing_columns:
            print(f"  missing column: {name}")
        for name in comparison.extra_columns:
            print(f"  extra column: {name}")
        if not comparison.same_order:
            print("  column order differs")
        if not comparison.same_primary_key:
            print("  primary key differs")
        for difference in comparison.differences:
            print(
                f"  {difference.column}.{difference.attribute}: "
                f"{difference.expected!r} != {difference.actual!r}"
            )
        if not comparison.same_shape:
            status = 1
    return status


def cmd_render(args: argparse.Namespace) -> int:
    tables = _parse_file(args)
    for result in render_script(tables, args.to):
        for warning in result.warnings:
            print(f"-- warning: {warning}")
        print(result.sql)
    return 0


def _load_tables(args: argparse.Namespace, table_names: list[str]) -> list[TableSchema]:
    """Read the tables to generate from a file or a database."""
    if args.from_file:
        tables = parse_script(_read_sql(args.from_file), args.dialect or settings.default_dialect)
        if table_names:
            wanted = {name.lower() for name in table_names}
            tables = [table for table in tables if table.name.lower() in wanted]
        return tables

    if args.driver:
        url = build_database_url(
            args.driver,
            username=args.username,
            password=args.password,
            host=args.host,
            port=args.port,
            database=args.database,
        )
    else:
        url = args.database_url or settings.database_url
    if not url:
        raise DdlError("No schema source: pass --from-file, --database-url or a driver")

    engine = create_db_engine(url)
    try:
        return SchemaRepository(engine).get_tables(table_names)
    finally:
        engine.dispose()


def cmd_generate(args: argparse.Namespace) -> int:
    """Generate a models package from a file or a live database."""
    table_names = _split_names(args.tables) or settings.table_name_list
    tables = _load_tables(args, table_names)
    if not tables:
        logger.info("No tables found, nothing generated")
        return 0

    path = Path(args.path or settings.output_path)
    package = args.package or path.name
    files = generate_package(tables, package)
    write_package(files, path)
    logger.info("Generated %d model(s) in %s", len(tables), path)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ddl-schema",
        description="Read CREATE TABLE statements across SQL dialects.",
    )
    parser.add_argument("--log-level", default=None, help="Logging level (default: LOG_LEVEL or INFO).")
    subparsers = parser.add_subparsers(dest="command", required=True)

    def add_source(sub: argparse.ArgumentParser) -> None:
        sub.add_argument("file", help="SQL file to read, '-' for stdin.")
        sub.add_argument("--dialect", choices=DIALECT_CHOICES, help="Dialect to read in; detected when omitted.")

    parse_cmd = subparsers.add_parser("parse", help="Print the canonical schema as JSON.")
    add_source(parse_cmd)
    parse_cmd.set_defaults(func=cmd_parse)

    compare_cmd = subparsers.add_parser("compare", help="Compare every table against the first one.")
    add_source(compare_cmd)
    compare_cmd.set_defaults(func=cmd_compare)

    render_cmd = subparsers.add_parser("render", help="Translate tables to another dialect.")
    add_source(render_cmd)
    render_cmd.add_argument("--to", required=True, choices=DIALECT_CHOICES, help="Target dialect.")
    render_cmd.set_defaults(func=cmd_render)

    generate_cmd = subparsers.add_parser("generate", help="Generate SQLAlchemy models.")
    generate_cmd.add_argument("driver", nargs="?", choices=sorted(DRIVERS), help="Database driver.")
    generate_cmd.add_argument("-u", "--username", help="Database user.")
    generate_cmd.add_argument("-p", "--password", help="Database password.")
    generate_cmd.add_argument("-H", "--host", help="Database host.")
    generate_cmd.add_argument("-P", "--port", type=int, help="Database port.")
    generate_cmd.add_argument("-D", "--database", help="Database name, or file for sqlite.")
    generate_cmd.add_argument("--database-url", help="SQLAlchemy URL, instead of a driver.")
    generate_cmd.add_argument("--from-file", help="Read tables from a SQL file instead of a database.")
    generate_cmd.add_argument("--dialect", choices=DIALECT_CHOICES, help="Dialect of --from-file.")
    generate_cmd.add_argument("--path", help="Output directory (default: OUTPUT_PATH).")
    generate_cmd.add_argument("--package", help="Import package of the output (default: directory name).")
    generate_cmd.add_argument("-t", "--tables", help="Comma separated table names; empty means all.")
    generate_cmd.set_defaults(func=cmd_generate)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=(args.log_level or settings.log_level).upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[
            logging.StreamHandler(sys.stderr),
        ],
    )

    try:
        return args.func(args)
    except (DdlError, TableNotFoundError, SQLAlchemyError, OSError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
