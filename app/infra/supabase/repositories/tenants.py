"""Tenant repository"""
from typing import Optional

from supabase import Client  # type: ignore

from app.models.tenant import Tenant, TenantCreate, TenantUpdate

from .base import BaseRepository


class TenantRepository(BaseRepository[Tenant, TenantCreate, TenantUpdate]):
    """Repository for tenant operations"""
    
    def __init__(self, client: Client):
        super().__init__(client, "tenant", Tenant)
    
    async def find_by_stripe_customer_id(self, stripe_customer_id: str) -> Optional[Tenant]:
        """Find tenant by Stripe customer ID"""
        return await self.find_one({"stripe_customer_id": stripe_customer_id})
    
    async def link_stripe_customer(self, tenant_id: int, stripe_customer_id: str) -> bool:
        """Set stripe_customer_id only if the tenant does not have one yet"""
        response = (
            self._client.table(self._table_name)
            .update({"stripe_customer_id": stripe_customer_id})
            .eq("id", tenant_id)
            .is_("stripe_customer_id", "null")
            .execute()
        )
        return bool(response.data)
