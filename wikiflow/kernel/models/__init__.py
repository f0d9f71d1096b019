"""
Kernel Data Models

Core SQLAlchemy models for the documentation task workflow.
"""

from wikiflow.kernel.models.base import Base, TimestampMixin, generate_uuid, utcnow, as_utc
from wikiflow.kernel.models.user import User, UserRole
from wikiflow.kernel.models.task import WikiTask, TaskStatus, TaskAcceptance
from wikiflow.kernel.models.document import Document
from wikiflow.kernel.models.vote import Vote, MIN_SCORE, MAX_SCORE
from wikiflow.kernel.models.assessment import Assessment, AssessmentStatus
from wikiflow.kernel.models.collaboration import (
    CodeAnnotation,
    TaskNotification,
    NotificationType,
)
from wikiflow.kernel.models.event_log import EventLog, EventType

__all__ = [
    # Base
    "Base",
    "TimestampMixin",
    "generate_uuid",
    "utcnow",
    "as_utc",
    # User
    "User",
    "UserRole",
    # Task
    "WikiTask",
    "TaskStatus",
    "TaskAcceptance",
    # Documents & votes
    "Document",
    "Vote",
    "MIN_SCORE",
    "MAX_SCORE",
    "Assessment",
    "AssessmentStatus",
    # Collaboration
    "CodeAnnotation",
    "TaskNotification",
    "NotificationType",
    # Event Log
    "EventLog",
    "EventType",
]
