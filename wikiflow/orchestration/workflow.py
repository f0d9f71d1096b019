"""
Workflow Orchestrator - the single entry point that mutates task state.

Every external event (acceptance, submission, vote, deadline check,
operator override) goes through WorkflowOrchestrator. It asks the vote
aggregator for derived statistics and drives the state machine.

Domain errors never escape: each public method returns a WorkflowResult.
StorageFailure propagates to the caller unchanged.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Awaitable, Callable, Dict, List, Optional, Sequence, Set, TypeVar

from sqlalchemy.ext.asyncio import AsyncSession

from wikiflow.config import Settings, get_settings
from wikiflow.engines.voting.aggregator import (
    Candidate,
    CompletionPolicy,
    DocumentStats,
    VoteAggregator,
)
from wikiflow.kernel.events.event_store import EventStore
from wikiflow.kernel.events.event_types import (
    AssessmentCompletedEvent,
    DocumentSubmittedEvent,
    VoteCastEvent,
)
from wikiflow.kernel.models.assessment import Assessment, AssessmentStatus
from wikiflow.kernel.models.base import as_utc, utcnow
from wikiflow.kernel.models.collaboration import (
    CodeAnnotation,
    NotificationType,
    TaskNotification,
)
from wikiflow.kernel.models.document import Document
from wikiflow.kernel.models.event_log import EventLog, EventType
from wikiflow.kernel.models.task import TaskAcceptance, TaskStatus, WikiTask
from wikiflow.kernel.models.user import User, UserRole
from wikiflow.kernel.models.vote import Vote
from wikiflow.logging_config import get_logger
from wikiflow.orchestration.errors import (
    DomainError,
    InvalidState,
    NotAssigned,
    NotFound,
    WorkflowResult,
)
from wikiflow.orchestration.repository import TaskRepository
from wikiflow.orchestration.state_machine import (
    OVERRIDE_TARGETS,
    StateMachine,
    TransitionTrigger,
    coerce_status,
    evaluate_overtime,
    is_overdue,
    status_after_submission,
)
from wikiflow.schemas.task import AnnotationCreate, DocumentSubmit, TaskCreate
from wikiflow.schemas.vote import VoteScores

logger = get_logger(__name__)

T = TypeVar("T")

# Statuses in which every participant may read every document
_OPEN_STATUSES = frozenset({TaskStatus.PENDING_VOTE, TaskStatus.COMPLETED})


@dataclass
class VoteOutcome:
    """Result of an accepted vote."""

    vote: Vote
    stats: DocumentStats
    task_status: TaskStatus
    winning_document_id: Optional[uuid.UUID] = None


@dataclass
class TaskSnapshot:
    """Everything the task view shows, recomputed on read."""

    task: WikiTask
    is_overdue: bool
    documents: List[Document]
    votes: Dict[uuid.UUID, List[Vote]]
    stats: Dict[uuid.UUID, DocumentStats]
    assessments: Dict[uuid.UUID, Assessment]
    annotations: List[CodeAnnotation]
    history: List[EventLog] = field(default_factory=list)
    visible_document_ids: Set[uuid.UUID] = field(default_factory=set)
    votes_visible: bool = False


class WorkflowOrchestrator:
    """
    Drives documentation tasks through their lifecycle.

    Usage:
        orchestrator = WorkflowOrchestrator(session)
        result = await orchestrator.cast_vote(document_id, voter_id, scores)
        if not result.ok:
            ...  # result.error is a typed DomainError
    """

    def __init__(
        self,
        session: AsyncSession,
        settings: Optional[Settings] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.session = session
        self.settings = settings or get_settings()
        self.clock = clock or utcnow
        self.repo = TaskRepository(session)
        self.state_machine = StateMachine(session)
        self.event_store = EventStore(session)
        self.policy = CompletionPolicy(
            min_votes_per_document=self.settings.min_votes_per_document,
        )

    async def _run(self, operation: str, action: Awaitable[T]) -> WorkflowResult[T]:
        """Await action, converting domain errors into a failed result."""
        try:
            return WorkflowResult.success(await action)
        except DomainError as exc:
            logger.info(
                "Workflow request rejected",
                extra={"operation": operation, "code": exc.code, "detail": exc.message},
            )
            return WorkflowResult.failure(exc)

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    async def create_task(
        self, actor_id: uuid.UUID, data: TaskCreate
    ) -> WorkflowResult[WikiTask]:
        return await self._run("create_task", self._create_task(actor_id, data))

    async def accept_assignment(
        self, task_id: uuid.UUID, actor_id: uuid.UUID
    ) -> WorkflowResult[WikiTask]:
        return await self._run("accept_assignment", self._accept_assignment(task_id, actor_id))

    async def submit_document(
        self, task_id: uuid.UUID, actor_id: uuid.UUID, payload: DocumentSubmit
    ) -> WorkflowResult[Document]:
        return await self._run(
            "submit_document", self._submit_document(task_id, actor_id, payload)
        )

    async def cast_vote(
        self,
        document_id: uuid.UUID,
        voter_id: uuid.UUID,
        scores: VoteScores,
        comments: Optional[str] = None,
    ) -> WorkflowResult[VoteOutcome]:
        return await self._run(
            "cast_vote", self._cast_vote(document_id, voter_id, scores, comments)
        )

    async def refresh_overtime_status(
        self, task_id: uuid.UUID, now: Optional[datetime] = None
    ) -> WorkflowResult[TaskStatus]:
        return await self._run(
            "refresh_overtime_status", self._refresh_overtime_status(task_id, now)
        )

    async def override_status(
        self,
        task_id: uuid.UUID,
        actor_id: uuid.UUID,
        target: TaskStatus,
        new_deadline: Optional[datetime] = None,
    ) -> WorkflowResult[WikiTask]:
        return await self._run(
            "override_status",
            self._override_status(task_id, actor_id, target, new_deadline),
        )

    async def add_annotation(
        self, task_id: uuid.UUID, actor_id: uuid.UUID, data: AnnotationCreate
    ) -> WorkflowResult[CodeAnnotation]:
        return await self._run("add_annotation", self._add_annotation(task_id, actor_id, data))

    async def view_task(
        self, task_id: uuid.UUID, actor_id: uuid.UUID
    ) -> WorkflowResult[TaskSnapshot]:
        return await self._run("view_task", self._view_task(task_id, actor_id))

    async def list_tasks(
        self,
        status: Optional[TaskStatus] = None,
        writer_id: Optional[uuid.UUID] = None,
    ) -> WorkflowResult[List[WikiTask]]:
        return await self._run("list_tasks", self._list_tasks(status, writer_id))

    async def document_assessment(
        self, document_id: uuid.UUID
    ) -> WorkflowResult[DocumentStats]:
        return await self._run("document_assessment", self._document_assessment(document_id))

    async def list_notifications(
        self, actor_id: uuid.UUID, unread_only: bool = False
    ) -> WorkflowResult[List[TaskNotification]]:
        return await self._run(
            "list_notifications", self.repo.load_notifications(actor_id, unread_only)
        )

    # ------------------------------------------------------------------
    # Operation bodies
    # ------------------------------------------------------------------

    async def _create_task(self, actor_id: uuid.UUID, data: TaskCreate) -> WikiTask:
        actor = await self._require_user(actor_id)
        if _role(actor) not in self.settings.task_creator_roles:
            raise NotAssigned("Only admins and code authors can create tasks")
        if data.writer1_id == data.writer2_id:
            raise InvalidState("Two different writers must be assigned")

        for user_id in (data.code_annotator_id, data.writer1_id, data.writer2_id):
            await self._require_user(user_id)

        if await self.repo.find_active_task_for_function(data.function_ref):
            raise InvalidState("This function already has an active wiki task")

        task = WikiTask(
            function_ref=data.function_ref,
            title=data.title,
            description=data.description,
            code_annotator_id=data.code_annotator_id,
            writer1_id=data.writer1_id,
            writer2_id=data.writer2_id,
            assigned_by=actor_id,
            deadline=as_utc(data.deadline),
            status=TaskStatus.NOT_STARTED,
        )
        await self.repo.save_task(task)

        await self.event_store.log(
            event_type=EventType.TASK_CREATED,
            entity_type="task",
            entity_id=task.id,
            user_id=actor_id,
            payload={
                "function_ref": task.function_ref,
                "writer1_id": task.writer1_id,
                "writer2_id": task.writer2_id,
                "code_annotator_id": task.code_annotator_id,
                "deadline": task.deadline,
            },
        )
        await self._notify(
            task,
            [task.code_annotator_id],
            NotificationType.TASK_ASSIGNED,
            "Code Annotation Task Assigned",
            f'You have been assigned to provide code annotations for "{task.title}"',
        )
        await self._notify(
            task,
            task.required_writers,
            NotificationType.TASK_ASSIGNED,
            "Wiki Writing Task Assigned",
            f'You have been assigned to write documentation for "{task.title}"',
        )
        logger.info("Task created", extra={"task_id": str(task.id), "function_ref": task.function_ref})
        return task

    async def _accept_assignment(self, task_id: uuid.UUID, actor_id: uuid.UUID) -> WikiTask:
        task = await self._require_task(task_id)
        if not task.is_writer(actor_id):
            raise NotAssigned("You are not assigned to this task")

        now = self.clock()
        status = await self._apply_deadline(task, now)

        # Repeat accepts are no-ops
        if await self.repo.load_acceptance(task.id, actor_id) is not None:
            return task

        if status not in (TaskStatus.NOT_STARTED, TaskStatus.IN_PROGRESS):
            raise InvalidState(
                "Task cannot be accepted in current status", status=status.value
            )

        await self.repo.save_acceptance(
            TaskAcceptance(task_id=task.id, writer_id=actor_id, accepted_at=now)
        )
        await self.event_store.log(
            event_type=EventType.TASK_ACCEPTED,
            entity_type="task",
            entity_id=task.id,
            user_id=actor_id,
        )
        if status == TaskStatus.NOT_STARTED:
            await self._transition(task, TaskStatus.IN_PROGRESS, TransitionTrigger.ACCEPT, actor_id, now)

        await self._notify(
            task,
            [task.assigned_by],
            NotificationType.TASK_ACCEPTED,
            "Task Accepted",
            f'A writer accepted "{task.title}"',
        )
        return task

    async def _submit_document(
        self, task_id: uuid.UUID, actor_id: uuid.UUID, payload: DocumentSubmit
    ) -> Document:
        task = await self._require_task(task_id)
        if not task.is_writer(actor_id):
            raise NotAssigned("You are not assigned to this task")

        now = self.clock()
        status = await self._apply_deadline(task, now)
        if status != TaskStatus.IN_PROGRESS:
            raise InvalidState(
                "Task is not accepting submissions", status=status.value
            )

        documents = await self.repo.load_documents_for_task(task.id)
        if any(doc.author_id == actor_id for doc in documents):
            raise InvalidState("Document already submitted for this task")

        if await self.repo.load_acceptance(task.id, actor_id) is None:
            await self.repo.save_acceptance(
                TaskAcceptance(task_id=task.id, writer_id=actor_id, accepted_at=now)
            )

        document = Document(
            task_id=task.id,
            author_id=actor_id,
            title=payload.title,
            content=payload.content,
            doc_type=payload.doc_type,
            submitted_at=now,
        )
        await self.repo.save_document(document)
        documents.append(document)

        await self.event_store.log_from_model(
            event_type=EventType.DOCUMENT_SUBMITTED,
            entity_type="document",
            entity_id=document.id,
            user_id=actor_id,
            payload_model=DocumentSubmittedEvent(
                task_id=task.id,
                title=document.title,
                doc_type=document.doc_type,
            ),
        )
        await self._notify(
            task,
            [task.assigned_by],
            NotificationType.CONTENT_SUBMITTED,
            "Content Submitted",
            f'A writer submitted documentation for "{task.title}"',
        )

        next_status = status_after_submission(
            [doc.author_id for doc in documents], task.required_writers
        )
        if next_status == TaskStatus.PENDING_VOTE:
            await self._open_voting(task, documents, actor_id, now, TransitionTrigger.SUBMIT)

        logger.info(
            "Document submitted",
            extra={
                "task_id": str(task.id),
                "document_id": str(document.id),
                "task_status": coerce_status(task.status).value,
            },
        )
        return document

    async def _cast_vote(
        self,
        document_id: uuid.UUID,
        voter_id: uuid.UUID,
        scores: VoteScores,
        comments: Optional[str],
    ) -> VoteOutcome:
        document = await self.repo.load_document(document_id)
        if document is None:
            raise NotFound("Document not found")
        # Votes on one task are serialized so the last one always sees the others
        task = await self._require_task(document.task_id, for_update=True)

        voter = await self._require_user(voter_id)
        if _role(voter) not in self.settings.voter_roles:
            raise NotAssigned("Your role cannot vote on documents")

        now = self.clock()
        status = await self._apply_deadline(task, now)
        if status != TaskStatus.PENDING_VOTE:
            raise InvalidState("Task is not open for voting", status=status.value)

        existing = await self.repo.load_votes_for_document(document.id)
        VoteAggregator.validate_vote(
            voter_id=voter_id,
            author_id=document.author_id,
            document_quality_score=scores.document_quality_score,
            code_readability_score=scores.code_readability_score,
            existing_voter_ids=[v.voter_id for v in existing],
        )

        vote = Vote(
            document_id=document.id,
            voter_id=voter_id,
            document_quality_score=scores.document_quality_score,
            code_readability_score=scores.code_readability_score,
            comments=comments,
            voted_at=now,
        )
        await self.repo.save_vote(vote)
        await self.event_store.log_from_model(
            event_type=EventType.VOTE_CAST,
            entity_type="vote",
            entity_id=vote.id,
            user_id=voter_id,
            payload_model=VoteCastEvent(
                task_id=task.id,
                document_id=document.id,
                document_quality_score=vote.document_quality_score,
                code_readability_score=vote.code_readability_score,
            ),
        )

        documents = await self.repo.load_documents_for_task(task.id)
        stats = await self._settle_votes(task, documents, voter_id, now)

        return VoteOutcome(
            vote=vote,
            stats=stats[document.id],
            task_status=coerce_status(task.status),
            winning_document_id=task.winning_document_id,
        )

    async def _refresh_overtime_status(
        self, task_id: uuid.UUID, now: Optional[datetime]
    ) -> TaskStatus:
        task = await self._require_task(task_id)
        return await self._apply_deadline(task, now or self.clock())

    async def _override_status(
        self,
        task_id: uuid.UUID,
        actor_id: uuid.UUID,
        target: TaskStatus,
        new_deadline: Optional[datetime],
    ) -> WikiTask:
        actor = await self._require_user(actor_id)
        if _role(actor) != UserRole.ADMIN.value:
            raise NotAssigned("Operator override requires an admin")

        task = await self._require_task(task_id)
        now = self.clock()
        status = await self._apply_deadline(task, now)
        if status != TaskStatus.OVERTIME:
            raise InvalidState("Only overtime tasks can be overridden", status=status.value)

        try:
            target = coerce_status(target)
        except ValueError:
            raise InvalidState(f"Unknown target status: {target}")
        if target not in OVERRIDE_TARGETS:
            raise InvalidState(
                "Override target must be in_progress or pending_vote", target=target.value
            )
        if new_deadline is not None and not as_utc(new_deadline) > as_utc(now):
            raise InvalidState("New deadline must be in the future")

        documents = await self.repo.load_documents_for_task(task.id)
        submitted = status_after_submission(
            [d.author_id for d in documents], task.required_writers
        )
        if target == TaskStatus.PENDING_VOTE and not documents:
            raise InvalidState("No submitted documents to vote on")
        if target == TaskStatus.IN_PROGRESS and submitted == TaskStatus.PENDING_VOTE:
            raise InvalidState("All writers have submitted; override to pending_vote instead")

        previous_deadline = task.deadline
        # Without a new deadline the old one is cleared so the next deadline
        # check does not put the task straight back into overtime.
        task.deadline = as_utc(new_deadline)
        if target == TaskStatus.PENDING_VOTE:
            await self._open_voting(task, documents, actor_id, now, TransitionTrigger.OVERRIDE)
        else:
            await self._transition(task, target, TransitionTrigger.OVERRIDE, actor_id, now)

        await self.event_store.log(
            event_type=EventType.TASK_OVERRIDDEN,
            entity_type="task",
            entity_id=task.id,
            user_id=actor_id,
            payload={
                "to_status": target.value,
                "previous_deadline": previous_deadline,
                "new_deadline": new_deadline,
            },
        )
        logger.warning(
            "Operator override applied",
            extra={"task_id": str(task.id), "to_status": target.value},
        )
        return task

    async def _add_annotation(
        self, task_id: uuid.UUID, actor_id: uuid.UUID, data: AnnotationCreate
    ) -> CodeAnnotation:
        task = await self._require_task(task_id)
        actor = await self._require_user(actor_id)
        if actor_id != task.code_annotator_id and _role(actor) != UserRole.ADMIN.value:
            raise NotAssigned("Only the task's code annotator can annotate it")

        status = await self._apply_deadline(task, self.clock())
        if status == TaskStatus.COMPLETED:
            raise InvalidState("Completed tasks cannot be annotated", status=status.value)

        annotation = CodeAnnotation(
            task_id=task.id,
            annotator_id=actor_id,
            file_paths=data.file_paths,
            key_methods=data.key_methods,
            git_commits=data.git_commits,
            deployment_status=data.deployment_status,
            additional_notes=data.additional_notes,
        )
        await self.repo.save_annotation(annotation)
        await self.event_store.log(
            event_type=EventType.TASK_ANNOTATED,
            entity_type="task",
            entity_id=task.id,
            user_id=actor_id,
            payload={"annotation_id": annotation.id},
        )
        return annotation

    async def _view_task(self, task_id: uuid.UUID, actor_id: uuid.UUID) -> TaskSnapshot:
        actor = await self._require_user(actor_id)
        task = await self._require_task(task_id)
        now = self.clock()
        status = await self._apply_deadline(task, now)

        documents = await self.repo.load_documents_for_task(task.id)
        votes = await self.repo.load_votes_for_documents([d.id for d in documents])
        stats = {
            d.id: VoteAggregator.aggregate(d.id, votes[d.id]) for d in documents
        }
        assessments = {a.document_id: a for a in await self.repo.load_assessments(task.id)}
        annotations = await self.repo.load_annotations(task.id)
        history = await self.repo.load_task_history(task.id)

        # During writing, drafts are private to their authors
        open_to_all = status in _OPEN_STATUSES or _role(actor) == UserRole.ADMIN.value
        visible = {
            d.id for d in documents if open_to_all or d.author_id == actor_id
        }

        return TaskSnapshot(
            task=task,
            is_overdue=is_overdue(task.deadline, now),
            documents=documents,
            votes=votes,
            stats=stats,
            assessments=assessments,
            annotations=annotations,
            history=history,
            visible_document_ids=visible,
            votes_visible=open_to_all,
        )

    async def _list_tasks(
        self, status: Optional[TaskStatus], writer_id: Optional[uuid.UUID]
    ) -> List[WikiTask]:
        now = self.clock()
        tasks = await self.repo.list_tasks(writer_id=writer_id)
        for task in tasks:
            await self._apply_deadline(task, now)
        if status is None:
            return tasks
        status = coerce_status(status)
        return [t for t in tasks if coerce_status(t.status) == status]

    async def _document_assessment(self, document_id: uuid.UUID) -> DocumentStats:
        document = await self.repo.load_document(document_id)
        if document is None:
            raise NotFound("Document not found")
        votes = await self.repo.load_votes_for_document(document.id)
        return VoteAggregator.aggregate(document.id, votes)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _require_task(self, task_id: uuid.UUID, for_update: bool = False) -> WikiTask:
        task = await self.repo.load_task(task_id, for_update=for_update)
        if task is None:
            raise NotFound("Task not found")
        return task

    async def _require_user(self, user_id: Optional[uuid.UUID]) -> User:
        user = await self.repo.load_user(user_id) if user_id is not None else None
        if user is None:
            raise NotFound("User not found")
        if not user.is_active:
            raise NotAssigned("User account is disabled")
        return user

    async def _transition(
        self,
        task: WikiTask,
        to_status: TaskStatus,
        trigger: TransitionTrigger,
        actor_id: Optional[uuid.UUID],
        now: datetime,
    ) -> None:
        await self.state_machine.transition(task, to_status, trigger, actor_id, now)
        await self.repo.save_task(task)

    async def _apply_deadline(self, task: WikiTask, now: datetime) -> TaskStatus:
        """Materialize overtime if the deadline has passed. Returns the status."""
        current = coerce_status(task.status)
        target = evaluate_overtime(current, task.deadline, now)
        if target != current:
            await self._transition(task, target, TransitionTrigger.DEADLINE, None, now)
            await self._notify(
                task,
                task.required_writers,
                NotificationType.TASK_OVERTIME,
                "Task Overtime",
                f'The deadline for "{task.title}" has passed',
            )
        return target

    async def _open_voting(
        self,
        task: WikiTask,
        documents: Sequence[Document],
        actor_id: uuid.UUID,
        now: datetime,
        trigger: TransitionTrigger,
    ) -> None:
        await self._transition(task, TaskStatus.PENDING_VOTE, trigger, actor_id, now)

        admins = await self.repo.load_active_users_by_role([UserRole.ADMIN.value])
        await self._notify(
            task,
            [admin.id for admin in admins],
            NotificationType.VOTING_STARTED,
            "Voting Phase Ready",
            f'Submissions for "{task.title}" are ready for voting',
        )
        # Votes may already satisfy the policy when voting reopens after overtime
        await self._settle_votes(task, documents, actor_id, now)

    async def _settle_votes(
        self,
        task: WikiTask,
        documents: Sequence[Document],
        actor_id: uuid.UUID,
        now: datetime,
    ) -> Dict[uuid.UUID, DocumentStats]:
        """Refresh assessments and complete the task once the policy is met."""
        stats = await self._compute_stats(documents)
        assessments = await self._sync_assessments(task, documents, stats)

        pool = await self.repo.load_reviewer_pool(self.settings.reviewer_roles)
        eligible = VoteAggregator.eligible_reviewers(pool, [d.author_id for d in documents])
        decision = VoteAggregator.evaluate_completion(
            [stats[d.id] for d in documents], eligible, self.policy
        )
        if decision.complete:
            await self._complete(task, documents, stats, assessments, actor_id, now)
        return stats

    async def _compute_stats(
        self, documents: Sequence[Document]
    ) -> Dict[uuid.UUID, DocumentStats]:
        votes = await self.repo.load_votes_for_documents([d.id for d in documents])
        return {d.id: VoteAggregator.aggregate(d.id, votes[d.id]) for d in documents}

    async def _sync_assessments(
        self,
        task: WikiTask,
        documents: Sequence[Document],
        stats: Dict[uuid.UUID, DocumentStats],
    ) -> Dict[uuid.UUID, Assessment]:
        """Write the recomputed stats back onto one Assessment per document."""
        assessments = {a.document_id: a for a in await self.repo.load_assessments(task.id)}
        for document in documents:
            doc_stats = stats[document.id]
            assessment = assessments.get(document.id)
            if assessment is None:
                assessment = Assessment(task_id=task.id, document_id=document.id)
                assessments[document.id] = assessment
            assessment.avg_document_quality = doc_stats.avg_document_quality
            assessment.avg_code_readability = doc_stats.avg_code_readability
            assessment.total_votes = doc_stats.total_votes
            if assessment.assessment_status != AssessmentStatus.COMPLETED:
                assessment.assessment_status = (
                    AssessmentStatus.IN_PROGRESS if doc_stats.total_votes
                    else AssessmentStatus.PENDING
                )
        await self.repo.save_assessment(*assessments.values())
        return assessments

    async def _complete(
        self,
        task: WikiTask,
        documents: Sequence[Document],
        stats: Dict[uuid.UUID, DocumentStats],
        assessments: Dict[uuid.UUID, Assessment],
        actor_id: uuid.UUID,
        now: datetime,
    ) -> None:
        winner = VoteAggregator.select_winner(
            Candidate(
                document_id=d.id,
                author_id=d.author_id,
                submitted_at=d.submitted_at,
                stats=stats[d.id],
            )
            for d in documents
        )
        for assessment in assessments.values():
            assessment.assessment_status = AssessmentStatus.COMPLETED
            assessment.completed_at = now
            assessment.is_winner = assessment.document_id == winner.document_id
        await self.repo.save_assessment(*assessments.values())

        task.winning_document_id = winner.document_id
        await self._transition(task, TaskStatus.COMPLETED, TransitionTrigger.VOTE, actor_id, now)

        await self.event_store.log_from_model(
            event_type=EventType.ASSESSMENT_COMPLETED,
            entity_type="task",
            entity_id=task.id,
            user_id=actor_id,
            payload_model=AssessmentCompletedEvent(
                winning_document_id=winner.document_id,
                avg_document_quality=winner.stats.avg_document_quality,
                avg_code_readability=winner.stats.avg_code_readability,
                total_votes=winner.stats.total_votes,
            ),
        )
        await self._notify(
            task,
            [*task.required_writers, task.code_annotator_id],
            NotificationType.TASK_COMPLETED,
            "Task Completed",
            f'Voting on "{task.title}" has finished',
        )
        logger.info(
            "Task completed",
            extra={"task_id": str(task.id), "winning_document_id": str(winner.document_id)},
        )

    async def _notify(
        self,
        task: WikiTask,
        recipients: Sequence[Optional[uuid.UUID]],
        notification_type: NotificationType,
        title: str,
        message: str,
    ) -> None:
        seen: Set[uuid.UUID] = set()
        notifications = []
        for recipient_id in recipients:
            if recipient_id is None or recipient_id in seen:
                continue
            seen.add(recipient_id)
            notifications.append(
                TaskNotification(
                    task_id=task.id,
                    recipient_id=recipient_id,
                    notification_type=notification_type,
                    title=title,
                    message=message,
                )
            )
        await self.repo.save_notifications(notifications)


def _role(user: User) -> str:
    return user.role.value if hasattr(user.role, "value") else str(user.role)
