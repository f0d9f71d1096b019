"""Wiki task, document, annotation and notification schemas."""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from wikiflow.kernel.models.base import as_utc
from wikiflow.kernel.models.task import TaskStatus
from wikiflow.schemas.vote import AssessmentResponse, DocumentStatsResponse, VoteResponse


class TaskCreate(BaseModel):
    """Create a wiki task for one function."""

    function_ref: str = Field(..., min_length=1, max_length=255)
    title: str = Field(..., min_length=1, max_length=300)
    description: Optional[str] = None
    code_annotator_id: uuid.UUID
    writer1_id: uuid.UUID
    writer2_id: uuid.UUID
    deadline: Optional[datetime] = None

    @field_validator("deadline")
    @classmethod
    def deadline_to_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        # SQLite keeps only the wall-clock part, so offsets must not reach storage
        return as_utc(v)


class TaskOverrideRequest(BaseModel):
    """Operator override for an overtime task."""

    target_status: TaskStatus
    # Omit to clear the deadline
    new_deadline: Optional[datetime] = None

    @field_validator("new_deadline")
    @classmethod
    def deadline_to_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return as_utc(v)


class TaskResponse(BaseModel):
    """Wiki task response."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    function_ref: str
    title: str
    description: Optional[str] = None
    code_annotator_id: Optional[uuid.UUID] = None
    writer1_id: Optional[uuid.UUID] = None
    writer2_id: Optional[uuid.UUID] = None
    assigned_by: uuid.UUID
    deadline: Optional[datetime] = None
    status: str
    status_changed_at: Optional[datetime] = None
    winning_document_id: Optional[uuid.UUID] = None
    is_overdue: bool = False
    created_at: datetime
    updated_at: datetime


class DocumentSubmit(BaseModel):
    """A writer's draft."""

    title: str = Field(..., min_length=1, max_length=300)
    content: str = Field(..., min_length=1)
    doc_type: str = Field("feature_documentation", max_length=50)


class DocumentResponse(BaseModel):
    """
    Submitted document.

    content is None while the reader is not allowed to see it (another
    writer's draft during the writing phase).
    """

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    task_id: uuid.UUID
    author_id: uuid.UUID
    title: str
    content: Optional[str] = None
    doc_type: str
    submitted_at: datetime


class DocumentDetail(DocumentResponse):
    """Document with its votes and live statistics, as shown in the task view."""

    stats: Optional[DocumentStatsResponse] = None
    votes: List[VoteResponse] = []


class AnnotationCreate(BaseModel):
    """Code annotation from the task's code annotator."""

    file_paths: List[str] = Field(default_factory=list)
    key_methods: List[str] = Field(default_factory=list)
    git_commits: List[str] = Field(default_factory=list)
    deployment_status: Optional[str] = None
    additional_notes: Optional[str] = Field(None, max_length=10000)


class AnnotationResponse(BaseModel):
    """Code annotation response."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    task_id: uuid.UUID
    annotator_id: uuid.UUID
    file_paths: Optional[List[str]] = None
    key_methods: Optional[List[str]] = None
    git_commits: Optional[List[str]] = None
    deployment_status: Optional[str] = None
    additional_notes: Optional[str] = None
    created_at: datetime


class TaskEventResponse(BaseModel):
    """Audit entry from the task's history."""

    model_config = ConfigDict(from_attributes=True)

    event_type: str
    user_id: Optional[uuid.UUID] = None
    payload: dict
    created_at: datetime


class TaskDetailResponse(BaseModel):
    """Everything about one task the reader is allowed to see."""

    task: TaskResponse
    documents: List[DocumentDetail]
    assessments: List[AssessmentResponse]
    annotations: List[AnnotationResponse]
    history: List[TaskEventResponse] = []


class NotificationResponse(BaseModel):
    """Inbox entry."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    task_id: uuid.UUID
    notification_type: str
    title: str
    message: str
    is_read: bool
    created_at: datetime
