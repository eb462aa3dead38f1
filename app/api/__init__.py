"""
API routes for the building finance service.
"""

from fastapi import APIRouter

from app.api import buildings, calculations, metrics

router = APIRouter()

# Include sub-routers
router.include_router(buildings.router, prefix="/buildings", tags=["buildings"])
router.include_router(metrics.router, prefix="/buildings", tags=["metrics"])
router.include_router(calculations.router, prefix="/calculate", tags=["calculations"])
