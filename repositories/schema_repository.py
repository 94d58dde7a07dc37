"""Repository for reading table schemas from a live database."""

import logging

import sqlalchemy as sa
from sqlalchemy.engine import URL, Engine

from schemas.table_schema import Dialect, TableSchema
from services.exceptions import TableNotFoundError, UnsupportedDialectError
from services.sqlalchemy_bridge import table_to_schema

logger = logging.getLogger(__name__)

DRIVERS = {
    "sqlite": "sqlite",
    "mysql": "mysql+pymysql",
    "postgres": "postgresql+psycopg2",
    "postgresql": "postgresql+psycopg2",
}

DEFAULT_PORTS = {
    "mysql": 3306,
    "postgres": 5432,
    "postgresql": 5432,
}

ENGINE_DIALECTS = {
    "mysql": Dialect.MYSQL,
    "mariadb": Dialect.MYSQL,
    "sqlite": Dialect.SQLITE,
    "postgresql": Dialect.POSTGRESQL,
}


def build_database_url(
    driver: str,
    username: str | None = None,
    password: str | None = None,
    host: str | None = None,
    port: int | None = None,
    database: str | None = None,
) -> URL:
    """Build a connection URL from individual connection settings.

    Args:
        driver: ``sqlite``, ``mysql`` or ``postgres``.
        username: Database user; ignored for SQLite.
        password: Database password; ignored for SQLite.
        host: Server host, ``localhost`` when omitted.
        port: Server port, the driver default when omitted.
        database: Database name, or the database file for SQLite.

    Returns:
        URL: SQLAlchemy connection URL.

    Raises:
        UnsupportedDialectError: If the driver is unknown.
    """
    key = driver.lower()
    if key not in DRIVERS:
        raise UnsupportedDialectError(f"Unsupported driver: {driver}")
    if key == "sqlite":
        return URL.create(DRIVERS[key], database=database)
    return URL.create(
        DRIVERS[key],
        username=username,
        password=password,
        host=host or "localhost",
        port=port or DEFAULT_PORTS[key],
        database=database,
    )


class SchemaRepository:
    """Read access to the tables of a connected database."""

    def __init__(self, engine: Engine, schema: str | None = None):
        """Initialize repository with a database engine.

        Args:
            engine: SQLAlchemy engine to inspect.
            schema: Database schema to read, the connection default when
                omitted.
        """
        self.engine = engine
        self.schema = schema
        self.dialect = ENGINE_DIALECTS.get(engine.dialect.name, Dialect.ANSI)

    def list_tables(self, table_names: list[str] | None = None) -> list[str]:
        """List table names in database order.

        Args:
            table_names: Restrict the result to these names. ``None`` or an
                empty list means every table.

        Returns:
            Matching table names.
        """
        names = sa.inspect(self.engine).get_table_names(schema=self.schema)
        if not table_names:
            return names
        wanted = {name.lower() for name in table_names}
        found = [name for name in names if name.lower() in wanted]
        missing = wanted - {name.lower() for name in found}
        if missing:
            logger.warning("Tables not found: %s", ", ".join(sorted(missing)))
        return found

    def get_table(self, name: str) -> TableSchema:
        """Reflect one table.

        Args:
            name: Table name.

        Returns:
            TableSchema describing the table.

        Raises:
            TableNotFoundError: If the table does not exist.
        """
        try:
            table = sa.Table(name, sa.MetaData(), schema=self.schema, autoload_with=self.engine)
        except sa.exc.NoSuchTableError as e:
            raise TableNotFoundError(f"Table not found: {name}") from e
        logger.debug("Reflected table %s with %d column(s)", name, len(table.columns))
        return table_to_schema(table, self.dialect)

    def get_tables(self, table_names: list[str] | None = None) -> list[TableSchema]:
        """Reflect every table returned by ``list_tables``."""
        tables = [self.get_table(name) for name in self.list_tables(table_names)]
        logger.info("Read %d table(s) from %s", len(tables), self.dialect.value)
        return tables
