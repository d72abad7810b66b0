"""Referral repositories"""
from typing import Optional

from supabase import Client  # type: ignore

from app.models.referral import (
    Referral,
    ReferralCode,
    ReferralCodeCreate,
    ReferralCreate,
    ReferralUpdate,
)

from .base import BaseRepository


class ReferralCodeRepository(BaseRepository[ReferralCode, ReferralCodeCreate, ReferralCodeCreate]):
    """Repository for tenant referral codes"""
    
    def __init__(self, client: Client):
        super().__init__(client, "referral_code", ReferralCode)
    
    async def find_by_code(self, code: str) -> Optional[ReferralCode]:
        return await self.find_one({"code": code})


class ReferralRepository(BaseRepository[Referral, ReferralCreate, ReferralUpdate]):
    """Repository for referrals made with a code"""
    
    def __init__(self, client: Client):
        super().__init__(client, "referral", Referral)
    
    async def find_for_customer(self, code: str, stripe_customer_id: str) -> Optional[Referral]:
        """Referral row for a code and the referred Stripe customer"""
        return await self.find_one({
            "code": code,
            "referred_stripe_customer_id": stripe_customer_id,
        })
