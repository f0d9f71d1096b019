"""
Notification inbox endpoints.
"""

from typing import List

from fastapi import APIRouter, Query

from wikiflow.api.deps import CurrentUser, Orchestrator, error_response
from wikiflow.schemas.task import NotificationResponse

router = APIRouter()


@router.get("/me", response_model=List[NotificationResponse])
async def my_notifications(
    user: CurrentUser,
    orchestrator: Orchestrator,
    unread_only: bool = Query(False),
):
    """The current user's notifications, newest first."""
    result = await orchestrator.list_notifications(user.id, unread_only)
    if not result.ok:
        return error_response(result.error)
    return [
        NotificationResponse(
            id=n.id,
            task_id=n.task_id,
            notification_type=getattr(n.notification_type, "value", n.notification_type),
            title=n.title,
            message=n.message,
            is_read=n.is_read,
            created_at=n.created_at,
        )
        for n in result.value
    ]
