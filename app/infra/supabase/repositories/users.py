"""Application user repository"""
from typing import Optional

from supabase import Client  # type: ignore

from app.models.user import AppUser, AppUserCreate, AppUserUpdate

from .base import BaseRepository


class AppUserRepository(BaseRepository[AppUser, AppUserCreate, AppUserUpdate]):
    """Repository for public.user rows"""
    
    def __init__(self, client: Client):
        super().__init__(client, "user", AppUser)
    
    async def find_by_auth_user_id(self, auth_user_id: str) -> Optional[AppUser]:
        """Find the application user linked to a Supabase auth user"""
        return await self.find_one({"supabase_auth_user_id": auth_user_id})
