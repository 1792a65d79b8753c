"""
Health check endpoint for monitoring. Not guarded by the firewall.
"""
from fastapi import APIRouter

from endpoint_firewall.core.config import settings

router = APIRouter()


@router.get("/health")
async def health_check():
    """Return 200 while the API is running."""
    return {
        "status": "ok",
        "environment": settings.APP_ENV,
    }
