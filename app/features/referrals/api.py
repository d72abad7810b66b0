"""Referral code endpoints"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends
from supabase import Client  # type: ignore

from app.auth import AuthenticatedUser, get_current_user
from app.config import get_stripe_secret_key
from app.features.referrals.schemas import CreateReferralCodeRequest, CreateReferralCodeResponse
from app.features.referrals.service import ReferralService
from app.infra.supabase import get_supabase_client
from app.infra.supabase.repositories import RepositoryFactory

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/functions/v1", tags=["referrals"])


def get_referral_service(supabase: Client = Depends(get_supabase_client)) -> ReferralService:
    return ReferralService(RepositoryFactory(supabase), get_stripe_secret_key())


@router.post("/create-referral-code", response_model=CreateReferralCodeResponse)
async def create_referral_code(
    req: Optional[CreateReferralCodeRequest] = None,
    user: AuthenticatedUser = Depends(get_current_user),
    service: ReferralService = Depends(get_referral_service),
):
    """
    Create a referral code for the caller's tenant

    Without desired_code a random FG-XXXXXX code is issued.
    """
    desired_code = req.desired_code if req else None
    code = await service.create_code(user.id, desired_code)
    return CreateReferralCodeResponse(code=code)
