"""
Main API routes configuration
"""

from fastapi import APIRouter
from slowapi import Limiter

from ..core.config import Settings
from .endpoints import update


def create_api_router(settings: Settings, limiter: Limiter) -> APIRouter:
    """Create main API router for the configured update path"""
    api_router = APIRouter()

    # The update router ends in a catch-all and must be included last
    api_router.include_router(
        update.create_router(settings.UPDATE_PATH, settings.REAL_IP_HEADER, limiter, settings.rate_limit),
        tags=["DynDNS"]
    )

    return api_router
