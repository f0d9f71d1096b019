"""
Wiki task model - one documentation effort bound to one function.

WikiTask.status is authoritative for the writing/voting lifecycle and is
only ever written by the workflow orchestrator.
"""

import uuid
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import DateTime, ForeignKey, Index, String, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from wikiflow.kernel.models.base import Base, TimestampMixin, generate_uuid, utcnow

if TYPE_CHECKING:
    from wikiflow.kernel.models.document import Document


class TaskStatus(str, Enum):
    """Lifecycle state of a wiki task."""

    NOT_STARTED = "not_started"    # Created, waiting for writers to accept
    IN_PROGRESS = "in_progress"    # At least one writer accepted
    PENDING_VOTE = "pending_vote"  # All required writers submitted
    COMPLETED = "completed"        # Voting finished, winner selected
    OVERTIME = "overtime"          # Deadline passed without resolution


class WikiTask(Base, TimestampMixin):
    """
    A documentation task: one function, one annotator, two competing writers.
    """

    __tablename__ = "wiki_tasks"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        primary_key=True,
        default=generate_uuid,
    )
    # Opaque reference into the (external) function/category tree
    function_ref: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        index=True,
    )
    title: Mapped[str] = mapped_column(
        String(300),
        nullable=False,
    )
    description: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
    )

    # Assignment
    code_annotator_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    writer1_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    writer2_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    assigned_by: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=False,
    )

    deadline: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        index=True,
    )

    status: Mapped[TaskStatus] = mapped_column(
        String(20),
        default=TaskStatus.NOT_STARTED,
        nullable=False,
    )
    status_changed_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    # Set once, when the task completes
    winning_document_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(),
        nullable=True,
    )

    # Relationships
    documents: Mapped[List["Document"]] = relationship(
        "Document",
        back_populates="task",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="raise",
    )

    __table_args__ = (
        Index("ix_wiki_tasks_function_status", "function_ref", "status"),
    )

    @property
    def required_writers(self) -> List[uuid.UUID]:
        """Distinct assigned writers, in assignment order."""
        writers: List[uuid.UUID] = []
        for writer_id in (self.writer1_id, self.writer2_id):
            if writer_id is not None and writer_id not in writers:
                writers.append(writer_id)
        return writers

    def is_writer(self, user_id: uuid.UUID) -> bool:
        return user_id in self.required_writers

    def __repr__(self) -> str:
        status = self.status.value if hasattr(self.status, "value") else self.status
        return f"<WikiTask {self.title} {status}>"


class TaskAcceptance(Base):
    """A writer's acceptance of a task assignment."""

    __tablename__ = "task_acceptances"

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
    writer_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=False,
    )
    accepted_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
    )

    __table_args__ = (
        UniqueConstraint("task_id", "writer_id", name="uq_task_acceptance_writer"),
    )

    def __repr__(self) -> str:
        return f"<TaskAcceptance task={self.task_id} writer={self.writer_id}>"
