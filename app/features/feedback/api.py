"""Feedback board endpoints"""
import logging
from dataclasses import asdict
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query
from supabase import Client  # type: ignore

from app.features.feedback.schemas import SubmitFeatureRequest, VoteRequest, VoteUsageResponse
from app.features.feedback.service import FeedbackError, FeedbackService
from app.infra.supabase import get_supabase_client
from app.infra.supabase.repositories import RepositoryFactory
from app.models.feature_request import FeatureRequest

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/feedback", tags=["feedback"])


def get_feedback_service(supabase: Client = Depends(get_supabase_client)) -> FeedbackService:
    repos = RepositoryFactory(supabase)
    return FeedbackService(repos.feature_requests, repos.feature_votes)


@router.get("/requests", response_model=List[FeatureRequest])
async def list_requests(
    status: str = Query("all"),
    search: str = Query(""),
    service: FeedbackService = Depends(get_feedback_service),
):
    """Feature requests, most voted first, filtered by status and search text"""
    try:
        return await service.list_requests(status, search)
    except FeedbackError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post("/requests", response_model=FeatureRequest, status_code=201)
async def submit_request(
    req: SubmitFeatureRequest,
    service: FeedbackService = Depends(get_feedback_service),
):
    try:
        return await service.submit_request(req.title, req.description, req.email)
    except FeedbackError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("/votes", response_model=VoteUsageResponse)
async def vote_usage(
    email: str = Query(""),
    service: FeedbackService = Depends(get_feedback_service),
):
    """Votes used and remaining for an email"""
    usage = await service.vote_usage(email)
    return VoteUsageResponse(**asdict(usage))


@router.post("/requests/{request_id}/vote", response_model=VoteUsageResponse)
async def vote(
    request_id: str,
    req: VoteRequest,
    service: FeedbackService = Depends(get_feedback_service),
):
    """
    Vote for a feature request

    Raises:
        400: no email
        409: all votes used
        500: insert failed
    """
    try:
        usage = await service.cast_vote(request_id, req.email)
    except FeedbackError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return VoteUsageResponse(**asdict(usage))
