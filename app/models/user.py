"""Application user domain model (public.user, linked to an auth user)"""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel


class AppUserBase(BaseModel):
    """Base user fields"""
    supabase_auth_user_id: Optional[str] = None
    tenant_id: int
    role: str = "admin"
    username: str
    is_active: bool = True


class AppUserCreate(AppUserBase):
    """User creation model"""
    pass


class AppUserUpdate(BaseModel):
    """User update model"""
    role: Optional[str] = None
    username: Optional[str] = None
    is_active: Optional[bool] = None


class AppUser(AppUserBase):
    """Complete user model from database"""
    id: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
