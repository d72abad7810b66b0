"""Request and response schemas for Feedback feature"""
from typing import Optional

from pydantic import BaseModel


class SubmitFeatureRequest(BaseModel):
    title: str = ""
    description: Optional[str] = None
    email: Optional[str] = None


class VoteRequest(BaseModel):
    email: Optional[str] = None


class VoteUsageResponse(BaseModel):
    email: str
    used: int
    remaining: int
    max_votes: int
