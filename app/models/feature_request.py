"""Feedback board domain models"""
from datetime import datetime
from enum import Enum
from typing import Optional
from pydantic import BaseModel


class FeatureRequestStatus(str, Enum):
    """Feature request lifecycle status"""
    OPEN = "open"
    PLANNED = "planned"
    SHIPPED = "shipped"


class FeatureRequestBase(BaseModel):
    """Base feature request fields"""
    title: str
    description: Optional[str] = None
    status: FeatureRequestStatus = FeatureRequestStatus.OPEN


class FeatureRequestCreate(FeatureRequestBase):
    """Feature request creation model"""
    created_by_email: Optional[str] = None


class FeatureRequestUpdate(BaseModel):
    """Feature request update model"""
    status: Optional[FeatureRequestStatus] = None


class FeatureRequest(FeatureRequestBase):
    """Complete feature request model from database"""
    id: str
    votes_count: int = 0

    class Config:
        from_attributes = True


class FeatureVoteCreate(BaseModel):
    """Feature vote creation model"""
    request_id: str
    voter_email: str


class FeatureVote(FeatureVoteCreate):
    """Complete feature vote model from database"""
    id: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
