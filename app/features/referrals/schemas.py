"""Request and response schemas for Referrals feature"""
from typing import Optional

from pydantic import BaseModel


class CreateReferralCodeRequest(BaseModel):
    """Optional vanity code; sanitized server-side"""
    desired_code: Optional[str] = None


class CreateReferralCodeResponse(BaseModel):
    code: str
