"""Feedback feature module"""

from app.features.feedback.service import (
    MAX_VOTES_PER_EMAIL,
    FeedbackError,
    FeedbackService,
    VoteLimitReached,
)
from app.features.feedback.api import router

__all__ = [
    "router",
    "FeedbackService",
    "FeedbackError",
    "VoteLimitReached",
    "MAX_VOTES_PER_EMAIL",
]
