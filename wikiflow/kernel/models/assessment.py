"""
Assessment model - derived aggregate of the votes on one document.

Rows are recomputed from votes by the vote aggregator and never hand-edited.
"""

import uuid
from datetime import datetime
from enum import Enum
from typing import Optional

from sqlalchemy import Boolean, DateTime, Float, ForeignKey, Integer, String, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from wikiflow.kernel.models.base import Base, TimestampMixin, generate_uuid


class AssessmentStatus(str, Enum):
    """Status of a document assessment."""
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class Assessment(Base, TimestampMixin):
    """Aggregate scores for a (task, document) pair."""

    __tablename__ = "assessments"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        primary_key=True,
        default=generate_uuid,
    )
    task_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        ForeignKey("wiki_tasks.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    document_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        ForeignKey("documents.id", ondelete="CASCADE"),
        nullable=False,
    )

    avg_document_quality: Mapped[float] = mapped_column(
        Float,
        default=0.0,
        nullable=False,
    )
    avg_code_readability: Mapped[float] = mapped_column(
        Float,
        default=0.0,
        nullable=False,
    )
    total_votes: Mapped[int] = mapped_column(
        Integer,
        default=0,
        nullable=False,
    )

    assessment_status: Mapped[AssessmentStatus] = mapped_column(
        String(20),
        default=AssessmentStatus.PENDING,
        nullable=False,
    )
    is_winner: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
    )
    completed_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    __table_args__ = (
        UniqueConstraint("task_id", "document_id", name="uq_assessment_task_document"),
    )

    def __repr__(self) -> str:
        return f"<Assessment doc={self.document_id} votes={self.total_votes}>"
