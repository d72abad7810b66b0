"""Subscription domain model (mirror of the Stripe subscription)"""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel


ACTIVE_SUBSCRIPTION_STATUSES = ["active", "trialing"]


class SubscriptionBase(BaseModel):
    """Base subscription fields"""
    tenant_id: int
    stripe_subscription_id: str
    stripe_customer_id: str
    stripe_price_id: Optional[str] = None
    status: str
    current_period_start: Optional[datetime] = None
    current_period_end: Optional[datetime] = None
    cancel_at_period_end: bool = False


class SubscriptionCreate(SubscriptionBase):
    """Subscription creation/upsert model"""
    pass


class SubscriptionUpdate(BaseModel):
    """Subscription update model - all fields optional"""
    status: Optional[str] = None
    stripe_price_id: Optional[str] = None
    current_period_start: Optional[datetime] = None
    current_period_end: Optional[datetime] = None
    cancel_at_period_end: Optional[bool] = None


class Subscription(SubscriptionBase):
    """Complete subscription model from database"""
    id: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_SUBSCRIPTION_STATUSES

    class Config:
        from_attributes = True
