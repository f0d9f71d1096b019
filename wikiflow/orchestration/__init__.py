"""Orchestration layer - task state machine, workflow errors.

The orchestrator itself lives in wikiflow.orchestration.workflow.
"""

from wikiflow.orchestration.errors import (
    WorkflowError,
    DomainError,
    NotAssigned,
    InvalidState,
    DuplicateVote,
    InvalidScore,
    SelfVote,
    NotFound,
    StorageFailure,
    WorkflowResult,
)
from wikiflow.orchestration.state_machine import (
    StateMachine,
    TransitionTrigger,
    can_transition,
    evaluate_overtime,
    is_overdue,
    valid_transitions,
)
from wikiflow.kernel.models.task import TaskStatus

__all__ = [
    "StateMachine",
    "TransitionTrigger",
    "TaskStatus",
    "can_transition",
    "evaluate_overtime",
    "is_overdue",
    "valid_transitions",
    "WorkflowError",
    "DomainError",
    "NotAssigned",
    "InvalidState",
    "DuplicateVote",
    "InvalidScore",
    "SelfVote",
    "NotFound",
    "StorageFailure",
    "WorkflowResult",
]
