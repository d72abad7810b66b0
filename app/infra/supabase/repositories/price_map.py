"""Stripe price map repository"""
from typing import Optional

from supabase import Client  # type: ignore
from pydantic import BaseModel

from app.models.price_map import PriceMapEntry

from .base import BaseRepository


class PriceMapRepository(BaseRepository[PriceMapEntry, PriceMapEntry, BaseModel]):
    """Read access to the stripe_price_map table"""
    
    def __init__(self, client: Client):
        super().__init__(client, "stripe_price_map", PriceMapEntry)
    
    async def find_price_id(self, plan_id: str, billing_cycle: str, mode: str) -> Optional[str]:
        """Active price for plan + cycle in the given Stripe mode"""
        entry = await self.find_one({
            "plan_id": plan_id,
            "billing_cycle": billing_cycle,
            "mode": mode,
            "active": True,
        })
        return entry.price_id if entry else None
