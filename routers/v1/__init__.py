"""API v1 router aggregation."""

from fastapi import APIRouter

from routers.v1.schemas import router as schemas_router

# Create v1 API router
router = APIRouter(prefix="/v1")

# Include sub-routers
router.include_router(
    schemas_router,
    prefix="/schemas",
    tags=["Schemas"],
)
