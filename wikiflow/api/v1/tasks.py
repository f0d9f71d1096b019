"""
Wiki task endpoints - creation, acceptance, submission, annotation, override.
"""

import uuid
from typing import List, Optional

from fastapi import APIRouter, Query, status

from wikiflow.api.deps import AdminUser, CurrentUser, Orchestrator, error_response
from wikiflow.kernel.models.base import as_utc, utcnow
from wikiflow.kernel.models.task import TaskStatus, WikiTask
from wikiflow.orchestration.state_machine import coerce_status, is_overdue
from wikiflow.orchestration.workflow import TaskSnapshot
from wikiflow.schemas.common import SuccessResponse
from wikiflow.schemas.task import (
    AnnotationCreate,
    AnnotationResponse,
    DocumentDetail,
    DocumentResponse,
    DocumentSubmit,
    TaskCreate,
    TaskDetailResponse,
    TaskEventResponse,
    TaskOverrideRequest,
    TaskResponse,
)
from wikiflow.schemas.vote import AssessmentResponse, DocumentStatsResponse, VoteResponse

router = APIRouter()


def _task_response(task: WikiTask) -> TaskResponse:
    return TaskResponse(
        id=task.id,
        function_ref=task.function_ref,
        title=task.title,
        description=task.description,
        code_annotator_id=task.code_annotator_id,
        writer1_id=task.writer1_id,
        writer2_id=task.writer2_id,
        assigned_by=task.assigned_by,
        deadline=as_utc(task.deadline),
        status=coerce_status(task.status).value,
        status_changed_at=task.status_changed_at,
        winning_document_id=task.winning_document_id,
        is_overdue=is_overdue(task.deadline, utcnow()),
        created_at=task.created_at,
        updated_at=task.updated_at,
    )


def _detail_response(snapshot: TaskSnapshot) -> TaskDetailResponse:
    documents = []
    for doc in snapshot.documents:
        visible = doc.id in snapshot.visible_document_ids
        documents.append(
            DocumentDetail(
                id=doc.id,
                task_id=doc.task_id,
                author_id=doc.author_id,
                title=doc.title,
                content=doc.content if visible else None,
                doc_type=doc.doc_type,
                submitted_at=doc.submitted_at,
                stats=(
                    DocumentStatsResponse.model_validate(snapshot.stats[doc.id])
                    if snapshot.votes_visible else None
                ),
                votes=(
                    [VoteResponse.model_validate(v) for v in snapshot.votes.get(doc.id, [])]
                    if snapshot.votes_visible else []
                ),
            )
        )

    task = _task_response(snapshot.task)
    task.is_overdue = snapshot.is_overdue
    return TaskDetailResponse(
        task=task,
        documents=documents,
        assessments=[
            AssessmentResponse(
                document_id=a.document_id,
                avg_document_quality=a.avg_document_quality,
                avg_code_readability=a.avg_code_readability,
                total_votes=a.total_votes,
                assessment_status=getattr(a.assessment_status, "value", a.assessment_status),
                is_winner=a.is_winner,
                completed_at=a.completed_at,
            )
            for a in snapshot.assessments.values()
        ] if snapshot.votes_visible else [],
        annotations=[AnnotationResponse.model_validate(a) for a in snapshot.annotations],
        history=[
            TaskEventResponse(
                event_type=getattr(e.event_type, "value", e.event_type),
                user_id=e.user_id,
                payload=e.payload or {},
                created_at=e.created_at,
            )
            for e in snapshot.history
        ],
    )


@router.post("", response_model=TaskResponse, status_code=status.HTTP_201_CREATED)
async def create_task(
    data: TaskCreate,
    user: CurrentUser,
    orchestrator: Orchestrator,
):
    """Create a wiki task and notify its annotator and writers."""
    result = await orchestrator.create_task(user.id, data)
    if not result.ok:
        return error_response(result.error)
    return _task_response(result.value)


@router.get("", response_model=List[TaskResponse])
async def list_tasks(
    user: CurrentUser,
    orchestrator: Orchestrator,
    status_filter: Optional[TaskStatus] = Query(None, alias="status"),
    mine: bool = Query(False, description="Only tasks where I am a writer"),
):
    """List tasks, newest first. Deadlines are checked as tasks are read."""
    result = await orchestrator.list_tasks(
        status=status_filter,
        writer_id=user.id if mine else None,
    )
    if not result.ok:
        return error_response(result.error)
    return [_task_response(t) for t in result.value]


@router.get("/{task_id}", response_model=TaskDetailResponse)
async def get_task(
    task_id: uuid.UUID,
    user: CurrentUser,
    orchestrator: Orchestrator,
):
    """Get a task with its documents, votes, assessments and annotations."""
    result = await orchestrator.view_task(task_id, user.id)
    if not result.ok:
        return error_response(result.error)
    return _detail_response(result.value)


@router.post("/{task_id}/accept", response_model=TaskResponse)
async def accept_task(
    task_id: uuid.UUID,
    user: CurrentUser,
    orchestrator: Orchestrator,
):
    """Accept a writing assignment. Accepting twice is harmless."""
    result = await orchestrator.accept_assignment(task_id, user.id)
    if not result.ok:
        return error_response(result.error)
    return _task_response(result.value)


@router.post(
    "/{task_id}/documents",
    response_model=DocumentResponse,
    status_code=status.HTTP_201_CREATED,
)
async def submit_document(
    task_id: uuid.UUID,
    data: DocumentSubmit,
    user: CurrentUser,
    orchestrator: Orchestrator,
):
    """Submit the writer's document. Each writer submits exactly once."""
    result = await orchestrator.submit_document(task_id, user.id, data)
    if not result.ok:
        return error_response(result.error)
    return DocumentResponse.model_validate(result.value)


@router.post(
    "/{task_id}/annotations",
    response_model=AnnotationResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_annotation(
    task_id: uuid.UUID,
    data: AnnotationCreate,
    user: CurrentUser,
    orchestrator: Orchestrator,
):
    """Attach code annotations (files, key methods, commits) to a task."""
    result = await orchestrator.add_annotation(task_id, user.id, data)
    if not result.ok:
        return error_response(result.error)
    return AnnotationResponse.model_validate(result.value)


@router.post("/{task_id}/override", response_model=TaskResponse)
async def override_task_status(
    task_id: uuid.UUID,
    data: TaskOverrideRequest,
    admin: AdminUser,
    orchestrator: Orchestrator,
):
    """Move an overtime task back to in_progress or pending_vote (admin only)."""
    result = await orchestrator.override_status(
        task_id, admin.id, data.target_status, data.new_deadline
    )
    if not result.ok:
        return error_response(result.error)
    return _task_response(result.value)


@router.post("/{task_id}/refresh-overtime", response_model=SuccessResponse)
async def refresh_overtime(
    task_id: uuid.UUID,
    user: CurrentUser,
    orchestrator: Orchestrator,
):
    """Run the deadline check for one task now."""
    result = await orchestrator.refresh_overtime_status(task_id)
    if not result.ok:
        return error_response(result.error)
    return SuccessResponse(
        message="Deadline checked",
        data={"task_id": str(task_id), "status": result.value.value},
    )
