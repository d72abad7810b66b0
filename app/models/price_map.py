"""Stripe price map row"""
from typing import Optional
from pydantic import BaseModel


class PriceMapEntry(BaseModel):
    """Maps plan + billing cycle to a Stripe price for one Stripe mode"""
    id: Optional[int] = None
    plan_id: str
    billing_cycle: str
    mode: str
    price_id: str
    active: bool = True

    class Config:
        from_attributes = True
