"""
Task repository - persistence collaborator for the workflow orchestrator.

Wraps an AsyncSession. Every SQLAlchemy failure surfaces as StorageFailure
so callers can tell storage problems from domain validation errors; the
vote uniqueness violation is the one exception and becomes DuplicateVote.
"""

import uuid
from typing import Dict, Iterable, List, Optional, Sequence

from sqlalchemy import and_, or_, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from wikiflow.kernel.events.event_store import EventStore
from wikiflow.kernel.models.assessment import Assessment
from wikiflow.kernel.models.event_log import EventLog
from wikiflow.kernel.models.collaboration import CodeAnnotation, TaskNotification
from wikiflow.kernel.models.document import Document
from wikiflow.kernel.models.task import TaskAcceptance, TaskStatus, WikiTask
from wikiflow.kernel.models.user import User
from wikiflow.kernel.models.vote import Vote, UNIQUE_VOTE_CONSTRAINT
from wikiflow.logging_config import get_logger
from wikiflow.orchestration.errors import DuplicateVote, InvalidState, StorageFailure

logger = get_logger(__name__)


def _is_unique_violation(exc: IntegrityError, constraint: str) -> bool:
    message = str(exc.orig).lower()
    return constraint in message or "unique" in message or "duplicate key" in message


class TaskRepository:
    """
    Loads and saves workflow entities.

    save_* methods add and flush immediately so generated ids and database
    constraints are checked before the orchestrator continues.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def _scalars(self, query) -> list:
        try:
            result = await self.session.execute(query)
        except SQLAlchemyError as exc:
            logger.error("Storage read failed", extra={"error": str(exc)})
            raise StorageFailure("Storage read failed") from exc
        return list(result.scalars().all())

    async def _scalar(self, query):
        try:
            result = await self.session.execute(query)
        except SQLAlchemyError as exc:
            logger.error("Storage read failed", extra={"error": str(exc)})
            raise StorageFailure("Storage read failed") from exc
        return result.scalar_one_or_none()

    async def _save(self, *entities) -> None:
        self.session.add_all(entities)
        try:
            await self.session.flush()
        except SQLAlchemyError as exc:
            await self.session.rollback()
            logger.error("Storage write failed", extra={"error": str(exc)})
            raise StorageFailure("Storage write failed") from exc

    # Tasks

    async def load_task(
        self, task_id: uuid.UUID, for_update: bool = False
    ) -> Optional[WikiTask]:
        """
        Load a task. With for_update the row stays locked until the
        transaction ends and the in-session copy is refreshed.
        """
        query = select(WikiTask).where(WikiTask.id == task_id)
        if for_update:
            query = query.with_for_update().execution_options(populate_existing=True)
        return await self._scalar(query)

    async def load_task_history(self, task_id: uuid.UUID, limit: int = 100) -> List[EventLog]:
        """Audit events recorded against the task, newest first."""
        try:
            # EventStore.log only adds; write pending events before reading
            await self.session.flush()
            return await EventStore(self.session).get_entity_history(
                "task", task_id, limit=limit
            )
        except SQLAlchemyError as exc:
            logger.error("Storage read failed", extra={"error": str(exc)})
            raise StorageFailure("Storage read failed") from exc

    async def save_task(self, task: WikiTask) -> WikiTask:
        await self._save(task)
        return task

    async def list_tasks(
        self,
        status: Optional[TaskStatus] = None,
        writer_id: Optional[uuid.UUID] = None,
    ) -> List[WikiTask]:
        query = select(WikiTask)
        if status is not None:
            query = query.where(WikiTask.status == status)
        if writer_id is not None:
            query = query.where(
                or_(WikiTask.writer1_id == writer_id, WikiTask.writer2_id == writer_id)
            )
        query = query.order_by(WikiTask.created_at.desc())
        return await self._scalars(query)

    async def find_active_task_for_function(self, function_ref: str) -> Optional[WikiTask]:
        """Any task on this function that has not completed yet."""
        query = select(WikiTask).where(
            and_(
                WikiTask.function_ref == function_ref,
                WikiTask.status != TaskStatus.COMPLETED,
            )
        ).limit(1)
        return await self._scalar(query)

    # Acceptances

    async def load_acceptance(
        self, task_id: uuid.UUID, writer_id: uuid.UUID
    ) -> Optional[TaskAcceptance]:
        query = select(TaskAcceptance).where(
            and_(
                TaskAcceptance.task_id == task_id,
                TaskAcceptance.writer_id == writer_id,
            )
        )
        return await self._scalar(query)

    async def save_acceptance(self, acceptance: TaskAcceptance) -> TaskAcceptance:
        await self._save(acceptance)
        return acceptance

    # Documents

    async def load_document(self, document_id: uuid.UUID) -> Optional[Document]:
        return await self._scalar(select(Document).where(Document.id == document_id))

    async def load_documents_for_task(self, task_id: uuid.UUID) -> List[Document]:
        query = (
            select(Document)
            .where(Document.task_id == task_id)
            .order_by(Document.submitted_at, Document.id)
        )
        return await self._scalars(query)

    async def save_document(self, document: Document) -> Document:
        self.session.add(document)
        try:
            await self.session.flush()
        except IntegrityError as exc:
            await self.session.rollback()
            if _is_unique_violation(exc, "uq_document_task_author"):
                raise InvalidState("Document already submitted for this task") from exc
            raise StorageFailure("Storage write failed") from exc
        except SQLAlchemyError as exc:
            await self.session.rollback()
            raise StorageFailure("Storage write failed") from exc
        return document

    # Votes

    async def load_votes_for_document(self, document_id: uuid.UUID) -> List[Vote]:
        query = (
            select(Vote)
            .where(Vote.document_id == document_id)
            .order_by(Vote.voted_at, Vote.id)
        )
        return await self._scalars(query)

    async def load_votes_for_documents(
        self, document_ids: Sequence[uuid.UUID]
    ) -> Dict[uuid.UUID, List[Vote]]:
        votes: Dict[uuid.UUID, List[Vote]] = {doc_id: [] for doc_id in document_ids}
        if not document_ids:
            return votes
        query = (
            select(Vote)
            .where(Vote.document_id.in_(list(document_ids)))
            .order_by(Vote.voted_at, Vote.id)
        )
        for vote in await self._scalars(query):
            votes[vote.document_id].append(vote)
        return votes

    async def save_vote(self, vote: Vote) -> Vote:
        """Insert a vote. A concurrent duplicate loses with DuplicateVote."""
        self.session.add(vote)
        try:
            await self.session.flush()
        except IntegrityError as exc:
            await self.session.rollback()
            if _is_unique_violation(exc, UNIQUE_VOTE_CONSTRAINT):
                raise DuplicateVote("You have already voted on this document") from exc
            raise StorageFailure("Storage write failed") from exc
        except SQLAlchemyError as exc:
            await self.session.rollback()
            raise StorageFailure("Storage write failed") from exc
        return vote

    # Assessments

    async def load_assessments(self, task_id: uuid.UUID) -> List[Assessment]:
        query = select(Assessment).where(Assessment.task_id == task_id)
        return await self._scalars(query)

    async def save_assessment(self, *assessments: Assessment) -> None:
        await self._save(*assessments)

    # Users

    async def load_user(self, user_id: uuid.UUID) -> Optional[User]:
        return await self._scalar(select(User).where(User.id == user_id))

    async def load_active_users_by_role(self, roles: Iterable[str]) -> List[User]:
        query = (
            select(User)
            .where(and_(User.role.in_(list(roles)), User.is_active == True))  # noqa: E712
            .order_by(User.created_at, User.id)
        )
        return await self._scalars(query)

    async def load_reviewer_pool(self, roles: Iterable[str]) -> List[uuid.UUID]:
        """Ids of active users whose role makes them quorum reviewers."""
        return [user.id for user in await self.load_active_users_by_role(roles)]

    # Annotations & notifications

    async def save_annotation(self, annotation: CodeAnnotation) -> CodeAnnotation:
        await self._save(annotation)
        return annotation

    async def load_annotations(self, task_id: uuid.UUID) -> List[CodeAnnotation]:
        query = (
            select(CodeAnnotation)
            .where(CodeAnnotation.task_id == task_id)
            .order_by(CodeAnnotation.created_at.desc())
        )
        return await self._scalars(query)

    async def save_notifications(self, notifications: Sequence[TaskNotification]) -> None:
        if notifications:
            await self._save(*notifications)

    async def load_notifications(
        self, recipient_id: uuid.UUID, unread_only: bool = False
    ) -> List[TaskNotification]:
        query = select(TaskNotification).where(TaskNotification.recipient_id == recipient_id)
        if unread_only:
            query = query.where(TaskNotification.is_read == False)  # noqa: E712
        query = query.order_by(TaskNotification.created_at.desc())
        return await self._scalars(query)
