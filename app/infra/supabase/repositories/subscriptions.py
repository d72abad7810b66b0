"""Subscription repository"""
from typing import Optional

from supabase import Client  # type: ignore

from app.models.subscription import (
    ACTIVE_SUBSCRIPTION_STATUSES,
    Subscription,
    SubscriptionCreate,
    SubscriptionUpdate,
)

from .base import BaseRepository


class SubscriptionRepository(BaseRepository[Subscription, SubscriptionCreate, SubscriptionUpdate]):
    """Repository for subscription operations"""
    
    def __init__(self, client: Client):
        super().__init__(client, "subscriptions", Subscription)
    
    async def find_active_for_tenant(self, tenant_id: int) -> Optional[Subscription]:
        """Most recent active or trialing subscription for a tenant"""
        response = (
            self._client.table(self._table_name)
            .select("*")
            .eq("tenant_id", tenant_id)
            .in_("status", ACTIVE_SUBSCRIPTION_STATUSES)
            .order("created_at", desc=True)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return self._to_model(response.data[0])
    
    async def find_by_stripe_subscription_id(self, stripe_subscription_id: str) -> Optional[Subscription]:
        """Find subscription by Stripe subscription ID"""
        return await self.find_one({"stripe_subscription_id": stripe_subscription_id})
    
    async def upsert_from_stripe(self, data: SubscriptionCreate) -> Subscription:
        """Insert or refresh the row keyed by stripe_subscription_id"""
        return await self.upsert(data, on_conflict="stripe_subscription_id")
    
    async def update_by_stripe_subscription_id(
        self,
        stripe_subscription_id: str,
        data: SubscriptionUpdate
    ) -> Optional[Subscription]:
        """Update a subscription identified by its Stripe ID"""
        data_dict = data.model_dump(exclude_unset=True, mode='json')
        response = (
            self._client.table(self._table_name)
            .update(data_dict)
            .eq("stripe_subscription_id", stripe_subscription_id)
            .execute()
        )
        if not response.data:
            return None
        return self._to_model(response.data[0])
