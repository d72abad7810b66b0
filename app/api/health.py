"""Health check endpoints"""

from fastapi import APIRouter

from app.config import get_stripe_mode

router = APIRouter(prefix="/api/health", tags=["health"])


@router.get("/")
async def health_check():
    """Basic health check endpoint"""
    return {
        "status": "healthy",
        "service": "firegauge-backend",
        "stripe_mode": get_stripe_mode(),
    }
