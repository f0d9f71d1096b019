"""
Event type definitions using Pydantic for validation.

These are the payload schemas for events logged to the audit trail.
"""

import uuid
from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

from wikiflow.kernel.models.base import utcnow


class BaseEvent(BaseModel):
    """Base event payload structure."""

    model_config = ConfigDict(extra="allow")

    timestamp: datetime = Field(default_factory=utcnow)
    metadata: Dict[str, Any] = Field(default_factory=dict)


class TaskStatusChangedEvent(BaseEvent):
    """Any write to WikiTask.status."""

    from_status: str
    to_status: str
    trigger: str
    function_ref: Optional[str] = None


class DocumentSubmittedEvent(BaseEvent):
    """A writer submitted their draft."""

    task_id: uuid.UUID
    title: str
    doc_type: str


class VoteCastEvent(BaseEvent):
    """An accepted vote."""

    task_id: uuid.UUID
    document_id: uuid.UUID
    document_quality_score: int
    code_readability_score: int


class AssessmentCompletedEvent(BaseEvent):
    """Voting finished and a winner was selected."""

    winning_document_id: uuid.UUID
    avg_document_quality: float
    avg_code_readability: float
    total_votes: int
