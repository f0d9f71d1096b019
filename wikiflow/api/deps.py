"""
FastAPI dependencies for actor identity, database sessions and the orchestrator.
"""

import uuid
from typing import Annotated, Dict, Optional, Type

from fastapi import Depends, Header, HTTPException, status
from fastapi.responses import JSONResponse
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from wikiflow.database import get_db
from wikiflow.kernel.models.user import User, UserRole
from wikiflow.logging_config import actor_id_var
from wikiflow.orchestration.errors import (
    DomainError,
    DuplicateVote,
    InvalidScore,
    InvalidState,
    NotAssigned,
    NotFound,
    SelfVote,
)
from wikiflow.orchestration.workflow import WorkflowOrchestrator
from wikiflow.schemas.common import ErrorResponse


DbSession = Annotated[AsyncSession, Depends(get_db)]

# Identity is established upstream; the gateway forwards the actor's id.
ACTOR_HEADER = "X-User-Id"

ERROR_STATUS: Dict[Type[DomainError], int] = {
    NotAssigned: status.HTTP_403_FORBIDDEN,
    SelfVote: status.HTTP_403_FORBIDDEN,
    NotFound: status.HTTP_404_NOT_FOUND,
    InvalidState: status.HTTP_409_CONFLICT,
    DuplicateVote: status.HTTP_409_CONFLICT,
    InvalidScore: status.HTTP_422_UNPROCESSABLE_ENTITY,
}


async def get_current_user(
    db: DbSession,
    x_user_id: Annotated[Optional[str], Header(alias=ACTOR_HEADER)] = None,
) -> User:
    """Resolve the acting user from the identity header or raise 401."""
    if not x_user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
        )
    try:
        user_id = uuid.UUID(x_user_id)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid user id",
        )

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
        )
    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User account is disabled",
        )

    actor_id_var.set(str(user.id))
    return user


CurrentUser = Annotated[User, Depends(get_current_user)]


async def require_admin(user: CurrentUser) -> User:
    """Require the current user to be an admin."""
    if user.role != UserRole.ADMIN:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
    return user


AdminUser = Annotated[User, Depends(require_admin)]


async def get_orchestrator(db: DbSession) -> WorkflowOrchestrator:
    """Request-scoped orchestrator bound to the request's session."""
    return WorkflowOrchestrator(db)


Orchestrator = Annotated[WorkflowOrchestrator, Depends(get_orchestrator)]


def error_response(error: DomainError) -> JSONResponse:
    """
    Map a failed WorkflowResult to an HTTP response.

    Returned rather than raised so the session still commits work done
    before the rejection, such as a task moved to overtime on this request.
    """
    status_code = ERROR_STATUS.get(type(error), status.HTTP_400_BAD_REQUEST)
    body = ErrorResponse(detail=error.message, code=error.code, details=error.details)
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"))
