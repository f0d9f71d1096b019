"""
Workflow error kinds and the result type returned by the orchestrator.

Domain errors are raised inside the core and converted to
WorkflowResult failures at the orchestrator boundary. StorageFailure is the
one kind that propagates to callers unchanged.
"""

from dataclasses import dataclass
from typing import Any, Generic, Optional, TypeVar

T = TypeVar("T")


class WorkflowError(Exception):
    """Base class for all workflow errors."""

    code = "workflow_error"

    def __init__(self, message: str, **details: Any):
        super().__init__(message)
        self.message = message
        self.details = details


class DomainError(WorkflowError):
    """Validation failure the caller can fix by changing its input."""


class NotAssigned(DomainError):
    """Actor lacks permission for the action."""
    code = "not_assigned"


class InvalidState(DomainError):
    """Transition attempted from an incompatible status."""
    code = "invalid_state"


class DuplicateVote(DomainError):
    """Voter already voted on this document."""
    code = "duplicate_vote"


class InvalidScore(DomainError):
    """A score is outside the closed interval [1, 10]."""
    code = "invalid_score"


class SelfVote(DomainError):
    """Voter is the document's author."""
    code = "self_vote"


class NotFound(DomainError):
    """Referenced task, document or user is missing."""
    code = "not_found"


class StorageFailure(WorkflowError):
    """Persistence collaborator failed. The cause is kept on __cause__."""
    code = "storage_failure"


@dataclass(frozen=True)
class WorkflowResult(Generic[T]):
    """Success-with-payload or a typed domain failure."""

    value: Optional[T] = None
    error: Optional[DomainError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T) -> "WorkflowResult[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: DomainError) -> "WorkflowResult[T]":
        return cls(error=error)

    def unwrap(self) -> T:
        """Return the payload, re-raising the failure if there is one."""
        if self.error is not None:
            raise self.error
        return self.value  # type: ignore[return-value]
