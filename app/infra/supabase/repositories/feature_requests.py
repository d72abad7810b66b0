"""Feedback board repositories"""
from typing import List

from supabase import Client  # type: ignore

from app.models.feature_request import (
    FeatureRequest,
    FeatureRequestCreate,
    FeatureRequestUpdate,
    FeatureVote,
    FeatureVoteCreate,
)

from .base import BaseRepository


class FeatureRequestRepository(BaseRepository[FeatureRequest, FeatureRequestCreate, FeatureRequestUpdate]):
    """Repository for feature requests"""
    
    def __init__(self, client: Client):
        super().__init__(client, "feature_requests", FeatureRequest)
    
    async def list_by_votes(self) -> List[FeatureRequest]:
        """All requests, most voted first"""
        response = (
            self._client.table(self._table_name)
            .select("id,title,description,status,votes_count")
            .order("votes_count", desc=True)
            .execute()
        )
        return self._to_models(response.data)


class FeatureVoteRepository(BaseRepository[FeatureVote, FeatureVoteCreate, FeatureVoteCreate]):
    """Repository for feature votes"""
    
    def __init__(self, client: Client):
        super().__init__(client, "feature_votes", FeatureVote)
    
    async def count_for_email(self, voter_email: str) -> int:
        """Number of votes already cast by an email"""
        return await self.count({"voter_email": voter_email})
