"""
API v1 routes.
"""

from fastapi import APIRouter

from wikiflow.api.v1 import notifications, tasks, votes

router = APIRouter()

router.include_router(tasks.router, prefix="/tasks", tags=["Tasks"])
router.include_router(votes.router, prefix="/documents", tags=["Voting"])
router.include_router(notifications.router, prefix="/notifications", tags=["Notifications"])
