"""
Pydantic schemas for API request/response validation.
"""

from wikiflow.schemas.common import ErrorResponse, HealthResponse, SuccessResponse
from wikiflow.schemas.task import (
    AnnotationCreate,
    AnnotationResponse,
    DocumentDetail,
    DocumentResponse,
    DocumentSubmit,
    NotificationResponse,
    TaskCreate,
    TaskDetailResponse,
    TaskEventResponse,
    TaskOverrideRequest,
    TaskResponse,
)
from wikiflow.schemas.vote import (
    AssessmentResponse,
    DocumentStatsResponse,
    VoteCastResponse,
    VoteCreate,
    VoteResponse,
    VoteScores,
)

__all__ = [
    # Common
    "ErrorResponse",
    "HealthResponse",
    "SuccessResponse",
    # Tasks
    "AnnotationCreate",
    "AnnotationResponse",
    "DocumentDetail",
    "DocumentResponse",
    "DocumentSubmit",
    "NotificationResponse",
    "TaskCreate",
    "TaskDetailResponse",
    "TaskEventResponse",
    "TaskOverrideRequest",
    "TaskResponse",
    # Votes
    "AssessmentResponse",
    "DocumentStatsResponse",
    "VoteCastResponse",
    "VoteCreate",
    "VoteResponse",
    "VoteScores",
]
