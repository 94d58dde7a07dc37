"""Database engine configuration."""

from sqlalchemy import create_engine
from sqlalchemy.engine import URL, Engine

from config.settings import settings


def create_db_engine(database_url: str | URL | None = None) -> Engine:
    """Create the engine used for schema introspection.

    Args:
        database_url: Connection URL; ``settings.database_url`` when omitted.

    Raises:
        ValueError: If no URL is given or configured.
    """
    url = database_url or settings.database_url
    if not url:
        raise ValueError("No database URL configured; set DATABASE_URL or pass one explicitly")
    return create_engine(
        url,
        pool_pre_ping=True,
        echo=False,
    )
