"""
Feedback API Module
Endpoints for submitting feedback and for admin triage of it.

Import this into api_server.py to add the routes.
"""

import uuid
from typing import Any, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from dependencies import CurrentActor
from schemas.feedback import (
    FeedbackCreate,
    FeedbackRead,
    FeedbackStatus,
    FeedbackType,
    FeedbackUpdate,
)
from schemas.response import APIResponse
from services.feedback_service import FeedbackService

feedback_router = APIRouter(prefix="/api/feedback", tags=["Feedback"])


def get_feedback_service(db: AsyncSession = Depends(get_db)) -> FeedbackService:
    return FeedbackService(db)


@feedback_router.get("", response_model=APIResponse[list[FeedbackRead]])
async def list_feedback(
    actor: CurrentActor,
    service: FeedbackService = Depends(get_feedback_service),
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1),
    type: Optional[FeedbackType] = None,
    status_filter: Optional[FeedbackStatus] = Query(None, alias="status"),
    search: Optional[str] = Query(None, max_length=255),
):
    """List feedback, newest first. Admins see all items, everyone else their own."""
    items, total, page_size = await service.list_feedback(
        actor,
        type=type,
        status=status_filter,
        search=search,
        page=page,
        limit=limit,
    )
    return APIResponse.paginated(
        [FeedbackRead.model_validate(item) for item in items],
        page=page,
        page_size=page_size,
        total_count=total,
    )


@feedback_router.get("/{feedback_id}", response_model=APIResponse[FeedbackRead])
async def get_feedback(
    feedback_id: uuid.UUID,
    actor: CurrentActor,
    service: FeedbackService = Depends(get_feedback_service),
):
    feedback = await service.get_feedback(feedback_id, actor)
    return APIResponse.success(FeedbackRead.model_validate(feedback))


@feedback_router.post(
    "",
    response_model=APIResponse[FeedbackRead],
    status_code=status.HTTP_201_CREATED,
)
async def submit_feedback(
    payload: FeedbackCreate,
    actor: CurrentActor,
    service: FeedbackService = Depends(get_feedback_service),
):
    feedback = await service.submit_feedback(payload, actor)
    return APIResponse.success(FeedbackRead.model_validate(feedback))


@feedback_router.put("/{feedback_id}", response_model=APIResponse[FeedbackRead])
async def update_feedback(
    feedback_id: uuid.UUID,
    patch: FeedbackUpdate,
    actor: CurrentActor,
    service: FeedbackService = Depends(get_feedback_service),
):
    """Admin triage: status, assignee and response."""
    feedback = await service.update_feedback(feedback_id, patch, actor)
    return APIResponse.success(FeedbackRead.model_validate(feedback))


@feedback_router.delete("/{feedback_id}", response_model=APIResponse[dict[str, Any]])
async def delete_feedback(
    feedback_id: uuid.UUID,
    actor: CurrentActor,
    service: FeedbackService = Depends(get_feedback_service),
):
    await service.delete_feedback(feedback_id, actor)
    return APIResponse.success({"id": str(feedback_id), "message": "Feedback removed"})
