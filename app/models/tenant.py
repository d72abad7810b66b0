"""Tenant domain model"""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel


class TenantBase(BaseModel):
    """Base tenant fields"""
    name: str
    supabase_auth_user_id: Optional[str] = None
    is_active: bool = True
    plan: Optional[str] = None
    stripe_customer_id: Optional[str] = None


class TenantCreate(TenantBase):
    """Tenant creation model"""
    pass


class TenantUpdate(BaseModel):
    """Tenant update model - all fields optional"""
    name: Optional[str] = None
    is_active: Optional[bool] = None
    plan: Optional[str] = None
    stripe_customer_id: Optional[str] = None


class Tenant(TenantBase):
    """Complete tenant model from database"""
    id: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
