"""Schema API endpoints."""

import logging

from fastapi import APIRouter, HTTPException

from config.settings import settings
from schemas.ddl import (
    CompareResponse,
    DdlRequest,
    ErrorResponse,
    ModelsResponse,
    ParseResponse,
    RenderRequest,
    RenderResponse,
)
from schemas.table_schema import TableSchema
from services.ddl_parser import parse_script
from services.ddl_renderer import render_script
from services.exceptions import DdlError
from services.model_generator import generate_package
from services.schema_comparator import compare_variants

logger = logging.getLogger(__name__)

router = APIRouter()

ERROR_RESPONSES = {
    422: {"model": ErrorResponse, "description": "Malformed or unsupported DDL"},
    500: {"model": ErrorResponse, "description": "Internal server error"},
}


def parse_request(request: DdlRequest) -> list[TableSchema]:
    """Parse the SQL of a request.

    Raises:
        HTTPException: 422 if the SQL cannot be read.
    """
    try:
        return parse_script(request.sql, request.dialect or settings.default_dialect)
    except DdlError as e:
        logger.info("Rejected DDL: %s", e)
        raise HTTPException(
            status_code=422,
            detail=str(e),
        ) from e


def internal_error(e: Exception, action: str) -> HTTPException:
    logger.exception("Unexpected error while %s", action)
    return HTTPException(
        status_code=500,
        detail=f"Internal server error: {str(e)}",
    )


@router.post(
    "/parse",
    response_model=ParseResponse,
    summary="Parse CREATE TABLE statements",
    description="Read one or more CREATE TABLE statements into canonical table schemas.",
    responses=ERROR_RESPONSES,
)
async def parse_tables(request: DdlRequest) -> ParseResponse:
    """Parse CREATE TABLE statements.

    Args:
        request: SQL text and optional dialect.

    Returns:
        ParseResponse with one schema per table, in statement order.
    """
    try:
        tables = parse_request(request)
        return ParseResponse(tables=tables)
    except HTTPException:
        raise
    except Exception as e:
        raise internal_error(e, "parsing") from e


@router.post(
    "/compare",
    response_model=CompareResponse,
    summary="Compare dialect variants",
    description="""
    Parse several variants of the same table and compare each against the first.

    Reports missing and extra columns, column order, primary key and per-column
    attribute differences.
    """,
    responses=ERROR_RESPONSES,
)
async def compare_tables(request: DdlRequest) -> CompareResponse:
    """Compare the variants found in the request."""
    try:
        tables = parse_request(request)
        comparisons = compare_variants(tables)
        logger.info(
            "Compared %d variant(s): %d equivalent",
            len(comparisons),
            sum(1 for comparison in comparisons if comparison.equivalent),
        )
        return CompareResponse(tables=tables, comparisons=comparisons)
    except HTTPException:
        raise
    except DdlError as e:
        raise HTTPException(
            status_code=422,
            detail=str(e),
        ) from e
    except Exception as e:
        raise internal_error(e, "comparing") from e


@router.post(
    "/render",
    response_model=RenderResponse,
    summary="Translate DDL to another dialect",
    description="Render the parsed tables as CREATE TABLE statements for the target dialect.",
    responses=ERROR_RESPONSES,
)
async def render_tables(request: RenderRequest) -> RenderResponse:
    """Render the request's tables in the target dialect."""
    try:
        tables = parse_request(request)
        return RenderResponse(results=render_script(tables, request.target))
    except HTTPException:
        raise
    except DdlError as e:
        raise HTTPException(
            status_code=422,
            detail=str(e),
        ) from e
    except Exception as e:
        raise internal_error(e, "rendering") from e


@router.post(
    "/models",
    response_model=ModelsResponse,
    summary="Generate SQLAlchemy models",
    description="Generate a SQLAlchemy models package, one module per table.",
    responses=ERROR_RESPONSES,
)
async def generate_models(request: DdlRequest) -> ModelsResponse:
    """Generate model sources for the request's tables."""
    try:
        tables = parse_request(request)
        return ModelsResponse(files=generate_package(tables))
    except HTTPException:
        raise
    except Exception as e:
        raise internal_error(e, "generating models") from e
