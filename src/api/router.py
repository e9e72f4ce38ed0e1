"""API router aggregation."""

from fastapi import APIRouter

from src.api.health import router as health_router
from src.api.overrides import router as overrides_router
from src.api.photos import router as photos_router

api_router = APIRouter()
api_router.include_router(health_router)
# Photo reconciliation endpoints
api_router.include_router(photos_router)
# Manual override management
api_router.include_router(overrides_router)
