from fastapi import APIRouter
from app.api import health
from app.features import auth, billing, feedback, referrals, support

api_router = APIRouter()

# Include all sub-routers
api_router.include_router(health.router)
api_router.include_router(auth.router)
api_router.include_router(billing.router)
api_router.include_router(referrals.router)
api_router.include_router(support.router)
api_router.include_router(feedback.router)
