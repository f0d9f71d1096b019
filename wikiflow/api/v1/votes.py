"""
Document voting endpoints.
"""

import uuid

from fastapi import APIRouter, status

from wikiflow.api.deps import CurrentUser, Orchestrator, error_response
from wikiflow.schemas.vote import (
    DocumentStatsResponse,
    VoteCastResponse,
    VoteCreate,
    VoteResponse,
    VoteScores,
)

router = APIRouter()


@router.post(
    "/{document_id}/votes",
    response_model=VoteCastResponse,
    status_code=status.HTTP_201_CREATED,
)
async def cast_vote(
    document_id: uuid.UUID,
    data: VoteCreate,
    user: CurrentUser,
    orchestrator: Orchestrator,
):
    """Score a document. The task completes once the voting quorum is met."""
    scores = VoteScores(
        document_quality_score=data.document_quality_score,
        code_readability_score=data.code_readability_score,
    )
    result = await orchestrator.cast_vote(document_id, user.id, scores, data.comments)
    if not result.ok:
        return error_response(result.error)

    outcome = result.value
    return VoteCastResponse(
        vote=VoteResponse.model_validate(outcome.vote),
        stats=DocumentStatsResponse.model_validate(outcome.stats),
        task_status=outcome.task_status.value,
        winning_document_id=outcome.winning_document_id,
    )


@router.get("/{document_id}/assessment", response_model=DocumentStatsResponse)
async def get_document_assessment(
    document_id: uuid.UUID,
    user: CurrentUser,
    orchestrator: Orchestrator,
):
    """Live vote statistics for a document."""
    result = await orchestrator.document_assessment(document_id)
    if not result.ok:
        return error_response(result.error)
    return DocumentStatsResponse.model_validate(result.value)
