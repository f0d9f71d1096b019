"""
Document model - a writer's submitted draft for a task.

Documents are immutable once submitted; the writing phase for an author
ends with their single submission.
"""

import uuid
from datetime import datetime
from typing import TYPE_CHECKING, List

from sqlalchemy import DateTime, ForeignKey, String, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from wikiflow.kernel.models.base import Base, generate_uuid, utcnow

if TYPE_CHECKING:
    from wikiflow.kernel.models.task import WikiTask
    from wikiflow.kernel.models.vote import Vote


class Document(Base):
    """A competing documentation draft."""

    __tablename__ = "documents"

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
    author_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )

    title: Mapped[str] = mapped_column(
        String(500),
        nullable=False,
    )
    content: Mapped[str] = mapped_column(
        Text,
        nullable=False,
    )
    doc_type: Mapped[str] = mapped_column(
        String(50),
        default="feature_documentation",
        nullable=False,
    )
    submitted_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
    )

    # Relationships
    task: Mapped["WikiTask"] = relationship(
        "WikiTask",
        back_populates="documents",
        lazy="raise",
    )
    votes: Mapped[List["Vote"]] = relationship(
        "Vote",
        back_populates="document",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="raise",
    )

    __table_args__ = (
        UniqueConstraint("task_id", "author_id", name="uq_document_task_author"),
    )

    def __repr__(self) -> str:
        return f"<Document {self.title} by {self.author_id}>"
