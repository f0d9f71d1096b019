"""
Stable Kernel Layer

Foundational components the workflow is built on:
- Task/document/vote store
- Immutable Event Log (all status mutations logged)

Architectural Invariants:
- All status changes logged before commit; logs immutable
- Assessments are derived from votes, never authoritative
"""

from wikiflow.kernel.models import (
    User,
    UserRole,
    WikiTask,
    TaskStatus,
    Document,
    Vote,
    Assessment,
    AssessmentStatus,
    EventLog,
    EventType,
)

__all__ = [
    # User & Identity
    "User",
    "UserRole",
    # Task workflow
    "WikiTask",
    "TaskStatus",
    "Document",
    "Vote",
    "Assessment",
    "AssessmentStatus",
    # Event Log
    "EventLog",
    "EventType",
]
