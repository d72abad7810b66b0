"""Feedback board: feature requests and email-capped voting"""
import logging
from dataclasses import dataclass
from typing import List, Optional

from app.infra.supabase.repositories import FeatureRequestRepository, FeatureVoteRepository
from app.models.feature_request import (
    FeatureRequest,
    FeatureRequestCreate,
    FeatureRequestStatus,
    FeatureVoteCreate,
)

logger = logging.getLogger(__name__)

MAX_VOTES_PER_EMAIL = 4
STATUS_FILTERS = ["all"] + [status.value for status in FeatureRequestStatus]


class FeedbackError(Exception):
    """A feedback action was refused or failed"""

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class VoteLimitReached(FeedbackError):
    """The voter has already used every vote"""

    def __init__(self):
        super().__init__(f"You have used all {MAX_VOTES_PER_EMAIL} votes", status_code=409)


@dataclass
class VoteUsage:
    email: str
    used: int
    remaining: int
    max_votes: int = MAX_VOTES_PER_EMAIL


def filter_requests(
    requests: List[FeatureRequest],
    status: str = "all",
    search: str = "",
) -> List[FeatureRequest]:
    """Status filter plus case-insensitive search over title and description"""
    term = (search or "").strip().lower()
    results = []
    for request in requests:
        if status != "all" and request.status.value != status:
            continue
        if term:
            haystack = f"{request.title} {request.description or ''}".lower()
            if term not in haystack:
                continue
        results.append(request)
    return results


class FeedbackService:
    """Lists, creates and votes on feature requests"""

    def __init__(self, request_repo: FeatureRequestRepository, vote_repo: FeatureVoteRepository):
        self.request_repo = request_repo
        self.vote_repo = vote_repo

    async def list_requests(self, status: str = "all", search: str = "") -> List[FeatureRequest]:
        """Requests ordered by votes, most voted first"""
        if status not in STATUS_FILTERS:
            raise FeedbackError(f"Unknown status filter: {status}")
        try:
            requests = await self.request_repo.list_by_votes()
        except Exception as e:
            logger.error(f"Failed to load feature requests: {e}", exc_info=True)
            raise FeedbackError("Failed to load feedback", status_code=500)
        return filter_requests(requests, status, search)

    async def submit_request(
        self,
        title: str,
        description: Optional[str] = None,
        email: Optional[str] = None,
    ) -> FeatureRequest:
        """Create an open feature request"""
        if not title or not title.strip():
            raise FeedbackError("Please enter a title")

        data = FeatureRequestCreate(
            title=title.strip(),
            description=(description or "").strip() or None,
            status=FeatureRequestStatus.OPEN,
            created_by_email=(email or "").strip() or None,
        )
        try:
            request = await self.request_repo.create(data)
        except Exception as e:
            logger.error(f"Failed to create feature request: {e}")
            raise FeedbackError("Could not submit", status_code=500)

        logger.info(f"Feature request {request.id} submitted")
        return request

    async def vote_usage(self, email: str) -> VoteUsage:
        email = (email or "").strip()
        used = await self.vote_repo.count_for_email(email) if email else 0
        return VoteUsage(email=email, used=used, remaining=max(0, MAX_VOTES_PER_EMAIL - used))

    async def cast_vote(self, request_id: str, email: Optional[str]) -> VoteUsage:
        """
        Record one vote for a request

        The count check here only saves a round trip; the database policy is
        what actually enforces the cap, and its 'Vote limit' error maps to
        the same refusal.

        Raises:
            FeedbackError: no email, or the insert failed
            VoteLimitReached: the email has no votes left
        """
        email = (email or "").strip()
        if not email:
            raise FeedbackError("Enter your email to vote")

        usage = await self.vote_usage(email)
        if usage.used >= MAX_VOTES_PER_EMAIL:
            raise VoteLimitReached()

        try:
            await self.vote_repo.create(FeatureVoteCreate(request_id=request_id, voter_email=email))
        except Exception as e:
            if "Vote limit" in str(e):
                raise VoteLimitReached()
            logger.error(f"Vote insert failed for request {request_id}: {e}")
            raise FeedbackError("Vote failed", status_code=500)

        logger.info(f"Vote recorded for request {request_id}")
        return VoteUsage(email=email, used=usage.used + 1, remaining=max(0, usage.remaining - 1))
