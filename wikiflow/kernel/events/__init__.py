"""
Event sourcing infrastructure.

Provides append-only audit logging with immutable events.
"""

from wikiflow.kernel.events.event_store import EventStore
from wikiflow.kernel.events.event_types import (
    BaseEvent,
    TaskStatusChangedEvent,
    DocumentSubmittedEvent,
    VoteCastEvent,
    AssessmentCompletedEvent,
)

__all__ = [
    "EventStore",
    "BaseEvent",
    "TaskStatusChangedEvent",
    "DocumentSubmittedEvent",
    "VoteCastEvent",
    "AssessmentCompletedEvent",
]
