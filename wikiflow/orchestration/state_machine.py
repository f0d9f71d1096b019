"""
State machine for the WikiTask lifecycle.

WikiTask.status is authoritative for writing, voting and completion.
Valid transitions and the events that may trigger them are defined here;
StateMachine.transition is the only code that assigns WikiTask.status.
"""

import uuid
from datetime import datetime
from enum import Enum
from typing import Dict, Iterable, List, Optional, Set, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from wikiflow.kernel.events.event_store import EventStore
from wikiflow.kernel.events.event_types import TaskStatusChangedEvent
from wikiflow.kernel.models.base import as_utc, utcnow
from wikiflow.kernel.models.event_log import EventType
from wikiflow.kernel.models.task import TaskStatus, WikiTask
from wikiflow.logging_config import get_logger
from wikiflow.orchestration.errors import InvalidState

logger = get_logger(__name__)


class TransitionTrigger(str, Enum):
    """External events that move a task between states."""
    ACCEPT = "accept"
    SUBMIT = "submit"
    VOTE = "vote"
    DEADLINE = "deadline"
    OVERRIDE = "override"


# Statuses a deadline check may escalate to overtime
ESCALATABLE_STATES = frozenset({
    TaskStatus.NOT_STARTED,
    TaskStatus.IN_PROGRESS,
    TaskStatus.PENDING_VOTE,
})

# Statuses an operator override may restore
OVERRIDE_TARGETS = frozenset({TaskStatus.IN_PROGRESS, TaskStatus.PENDING_VOTE})

# Valid transitions: (from_status, to_status) -> triggers that may cause it
_TRANSITIONS: Dict[Tuple[TaskStatus, TaskStatus], Set[TransitionTrigger]] = {
    # Writers
    (TaskStatus.NOT_STARTED, TaskStatus.IN_PROGRESS): {TransitionTrigger.ACCEPT},
    (TaskStatus.IN_PROGRESS, TaskStatus.PENDING_VOTE): {TransitionTrigger.SUBMIT},
    # Reviewers
    (TaskStatus.PENDING_VOTE, TaskStatus.COMPLETED): {TransitionTrigger.VOTE},
    # Deadline escalation
    (TaskStatus.NOT_STARTED, TaskStatus.OVERTIME): {TransitionTrigger.DEADLINE},
    (TaskStatus.IN_PROGRESS, TaskStatus.OVERTIME): {TransitionTrigger.DEADLINE},
    (TaskStatus.PENDING_VOTE, TaskStatus.OVERTIME): {TransitionTrigger.DEADLINE},
    # Operator intervention
    (TaskStatus.OVERTIME, TaskStatus.IN_PROGRESS): {TransitionTrigger.OVERRIDE},
    (TaskStatus.OVERTIME, TaskStatus.PENDING_VOTE): {TransitionTrigger.OVERRIDE},
}


def coerce_status(value) -> TaskStatus:
    """Status column values load back as plain strings; normalize them."""
    return value if isinstance(value, TaskStatus) else TaskStatus(value)


def valid_transitions(from_status: TaskStatus) -> List[TaskStatus]:
    """Return list of valid target statuses from given status."""
    from_status = coerce_status(from_status)
    return sorted(
        {t for (f, t) in _TRANSITIONS if f == from_status},
        key=lambda s: s.value,
    )


def can_transition(
    from_status: TaskStatus,
    to_status: TaskStatus,
    trigger: TransitionTrigger,
) -> bool:
    """Check if trigger may move a task from_status -> to_status."""
    key = (coerce_status(from_status), coerce_status(to_status))
    return trigger in _TRANSITIONS.get(key, set())


def is_overdue(deadline: Optional[datetime], now: datetime) -> bool:
    """True when a deadline is set and now is strictly past it."""
    if deadline is None:
        return False
    return as_utc(now) > as_utc(deadline)


def evaluate_overtime(
    status: TaskStatus,
    deadline: Optional[datetime],
    now: datetime,
) -> TaskStatus:
    """
    Pure deadline check: the status a task should have at time now.

    Only escalates. Completed tasks and tasks already in overtime come back
    unchanged, so a later now never clears overtime.
    """
    status = coerce_status(status)
    if status in ESCALATABLE_STATES and is_overdue(deadline, now):
        return TaskStatus.OVERTIME
    return status


def status_after_submission(
    submitted_author_ids: Iterable[uuid.UUID],
    required_writers: Iterable[uuid.UUID],
) -> TaskStatus:
    """pending_vote once every required writer has submitted, else in_progress."""
    submitted = set(submitted_author_ids)
    required = set(required_writers)
    if required and required <= submitted:
        return TaskStatus.PENDING_VOTE
    return TaskStatus.IN_PROGRESS


class StateMachine:
    """Service for performing task status transitions with audit logging."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.event_store = EventStore(session)

    async def transition(
        self,
        task: WikiTask,
        to_status: TaskStatus,
        trigger: TransitionTrigger,
        actor_id: Optional[uuid.UUID] = None,
        now: Optional[datetime] = None,
    ) -> WikiTask:
        """Move task to to_status. Logs event and updates the task."""
        from_status = coerce_status(task.status)
        to_status = coerce_status(to_status)
        if not can_transition(from_status, to_status, trigger):
            raise InvalidState(
                f"Invalid transition: {from_status.value} -> {to_status.value} on {trigger.value}",
                status=from_status.value,
            )

        task.status = to_status
        task.status_changed_at = now or utcnow()

        await self.event_store.log_from_model(
            event_type=EventType.TASK_STATUS_CHANGED,
            entity_type="task",
            entity_id=task.id,
            user_id=actor_id,
            payload_model=TaskStatusChangedEvent(
                from_status=from_status.value,
                to_status=to_status.value,
                trigger=trigger.value,
                function_ref=task.function_ref,
            ),
        )
        logger.info(
            "Task status changed",
            extra={
                "task_id": str(task.id),
                "from_status": from_status.value,
                "to_status": to_status.value,
                "trigger": trigger.value,
            },
        )
        return task
