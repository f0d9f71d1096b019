"""Vote and assessment schemas."""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class VoteScores(BaseModel):
    """
    The two scores a reviewer gives a document.

    Range checks happen in the vote aggregator so an out-of-range score is
    reported as an InvalidScore rather than a generic validation error.
    """

    document_quality_score: int
    code_readability_score: int


class VoteCreate(VoteScores):
    """Vote submission request."""

    comments: Optional[str] = Field(None, max_length=5000)


class VoteResponse(BaseModel):
    """A recorded vote."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    document_id: uuid.UUID
    voter_id: uuid.UUID
    document_quality_score: int
    code_readability_score: int
    comments: Optional[str] = None
    voted_at: datetime


class DocumentStatsResponse(BaseModel):
    """Live aggregate of a document's votes."""

    model_config = ConfigDict(from_attributes=True)

    document_id: uuid.UUID
    avg_document_quality: float
    avg_code_readability: float
    total_votes: int


class AssessmentResponse(BaseModel):
    """Per-document assessment record."""

    model_config = ConfigDict(from_attributes=True)

    document_id: uuid.UUID
    avg_document_quality: float
    avg_code_readability: float
    total_votes: int
    assessment_status: str
    is_winner: bool
    completed_at: Optional[datetime] = None


class VoteCastResponse(BaseModel):
    """Result of casting a vote."""

    vote: VoteResponse
    stats: DocumentStatsResponse
    task_status: str
    winning_document_id: Optional[uuid.UUID] = None
