"""FastAPI application entry point.

DDL Schema Service - reads CREATE TABLE statements written for different SQL
dialects into one canonical schema, compares variants, translates them between
dialects and generates SQLAlchemy models.
"""

import logging
import sys

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from config.settings import settings
from routers.v1 import router as v1_router
from schemas.table_schema import Dialect

VERSION = "1.0.0"

# Configure logging
logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[
        logging.StreamHandler(sys.stdout),
    ],
)

logger = logging.getLogger(__name__)

# Create FastAPI application
app = FastAPI(
    title="DDL Schema Service",
    description="""
    Canonical table schemas from dialect-specific CREATE TABLE statements.

    ## Features

    - Parsing of MySQL, SQLite, PostgreSQL and plain ANSI DDL
    - Comparison of dialect variants of the same table:
        - Column set and order
        - Primary key
        - Types, nullability, defaults and enumerations
    - Translation of tables between dialects, with warnings for lost details
    - SQLAlchemy model generation
    """,
    version=VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
)

# Browser clients of the docs page post DDL from any origin
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get(
    "/health",
    tags=["Health"],
    summary="Health Check",
    description="Check if the service is running and list the dialects it reads.",
)
async def health_check() -> dict:
    """Return service health status."""
    return {
        "status": "healthy",
        "service": "ddl-schema-service",
        "version": VERSION,
        "dialects": [dialect.value for dialect in Dialect],
        "default_dialect": settings.default_dialect.value if settings.default_dialect else None,
    }


# Versioned API
app.include_router(
    v1_router,
    prefix="/api",
)

logger.info("DDL Schema Service initialized (log level %s)", settings.log_level)
