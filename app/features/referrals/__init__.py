"""Referrals feature module"""

from app.features.referrals.service import ReferralService
from app.features.referrals.api import router

__all__ = [
    "router",
    "ReferralService",
]
