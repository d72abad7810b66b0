"""Referral domain models"""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel


class ReferralCodeCreate(BaseModel):
    """Referral code creation model"""
    tenant_id: int
    code: str


class ReferralCode(ReferralCodeCreate):
    """Complete referral code model from database"""
    id: Optional[int] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ReferralBase(BaseModel):
    """Base referral fields"""
    code: str
    referred_stripe_customer_id: str
    referred_subscription_id: Optional[str] = None
    referred_price_id: Optional[str] = None
    qualified: bool = False
    reward_cents: int = 0
    reward_applied_cents: int = 0


class ReferralCreate(ReferralBase):
    """Referral creation model"""
    pass


class ReferralUpdate(BaseModel):
    """Referral update model"""
    qualified: Optional[bool] = None
    reward_cents: Optional[int] = None
    reward_applied_cents: Optional[int] = None


class Referral(ReferralBase):
    """Complete referral model from database"""
    id: int
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
