"""
Collaboration models - code annotations and task notifications.
"""

import uuid
from enum import Enum
from typing import Optional

from sqlalchemy import Boolean, ForeignKey, String, Text, Uuid, JSON
from sqlalchemy.orm import Mapped, mapped_column

from wikiflow.kernel.models.base import Base, TimestampMixin, generate_uuid


class NotificationType(str, Enum):
    """Kinds of task notifications."""
    TASK_ASSIGNED = "task_assigned"
    TASK_ACCEPTED = "task_accepted"
    CONTENT_SUBMITTED = "content_submitted"
    VOTING_STARTED = "voting_started"
    TASK_COMPLETED = "task_completed"
    TASK_OVERTIME = "task_overtime"


class CodeAnnotation(Base, TimestampMixin):
    """The code author's notes on the function a task documents."""

    __tablename__ = "code_annotations"

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
    annotator_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=False,
    )

    # JSON arrays of strings
    file_paths: Mapped[Optional[list]] = mapped_column(
        JSON,
        nullable=True,
    )
    key_methods: Mapped[Optional[list]] = mapped_column(
        JSON,
        nullable=True,
    )
    git_commits: Mapped[Optional[list]] = mapped_column(
        JSON,
        nullable=True,
    )
    deployment_status: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
    )
    additional_notes: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
    )

    def __repr__(self) -> str:
        return f"<CodeAnnotation {self.id} task={self.task_id}>"


class TaskNotification(Base, TimestampMixin):
    """Inbox entry for a user about a task. Read on demand, never pushed."""

    __tablename__ = "task_notifications"

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
    recipient_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    notification_type: Mapped[NotificationType] = mapped_column(
        String(30),
        nullable=False,
    )
    title: Mapped[str] = mapped_column(
        String(200),
        nullable=False,
    )
    message: Mapped[str] = mapped_column(
        Text,
        nullable=False,
    )
    is_read: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<TaskNotification {self.notification_type} to {self.recipient_id}>"
