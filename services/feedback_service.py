"""MIC Service — Feedback Service.

Any account can submit feedback and read back what it submitted. Admins
see every item and triage it: status, assignee and a written response.
"""

from __future__ import annotations

import uuid
from typing import Any

from sqlalchemy import or_
from sqlalchemy.ext.asyncio import AsyncSession

from config import get_settings
from core.exceptions import ResourceNotFound
from db.models import Feedback, User
from logger import get_logger
from schemas.feedback import (
    FeedbackCreate,
    FeedbackStatus,
    FeedbackType,
    FeedbackUpdate,
)
from schemas.security import Actor, UserRole
from services.alert_filters import LIKE_ESCAPE, escape_like
from services.base import BaseService
from services.rbac_service import Operation, authorize

logger = get_logger(__name__)


class FeedbackService(BaseService[Feedback]):
    """Service for user feedback."""

    resource_name = "Feedback"

    def __init__(self, db: AsyncSession):
        super().__init__(Feedback, db)
        settings = get_settings().alerts
        self.default_page_size = settings.default_page_size
        self.max_page_size = settings.max_page_size

    async def list_feedback(
        self,
        actor: Actor,
        type: FeedbackType | None = None,
        status: FeedbackStatus | None = None,
        search: str | None = None,
        page: int = 1,
        limit: int | None = None,
    ) -> tuple[list[Feedback], int, int]:
        """List feedback, newest first. Non-admins only see their own.

        Returns:
            ``(items, total_count, limit)``.
        """
        limit = min(limit or self.default_page_size, self.max_page_size)

        conditions: list[Any] = []
        if type is not None:
            conditions.append(Feedback.type == type)
        if status is not None:
            conditions.append(Feedback.status == status)
        term = (search or "").strip()
        if term:
            pattern = f"%{escape_like(term)}%"
            conditions.append(
                or_(
                    Feedback.title.ilike(pattern, escape=LIKE_ESCAPE),
                    Feedback.description.ilike(pattern, escape=LIKE_ESCAPE),
                )
            )
        if actor.role != UserRole.ADMIN:
            conditions.append(Feedback.created_by_id == actor.id)

        items, total = await self.paginate(
            conditions,
            order_by=(Feedback.created_at.desc(), Feedback.id.desc()),
            page=page,
            limit=limit,
        )
        return items, total, limit

    async def get_feedback(self, feedback_id: uuid.UUID, actor: Actor) -> Feedback:
        feedback = await self.get_or_raise(feedback_id)
        authorize(actor, Operation.VIEW_FEEDBACK, feedback)
        return feedback

    async def submit_feedback(self, payload: FeedbackCreate, actor: Actor) -> Feedback:
        authorize(actor, Operation.SUBMIT_FEEDBACK)

        feedback = Feedback(
            title=payload.title,
            description=payload.description,
            type=payload.type,
            priority=payload.priority,
            category=payload.category,
            status=FeedbackStatus.OPEN,
            created_by_id=actor.id,
            attachments=list(payload.attachments),
        )
        self.db.add(feedback)
        await self.commit()

        self.logger.info(
            "Feedback submitted",
            feedback_id=str(feedback.id),
            feedback_type=payload.type.value,
        )
        return await self.reload(feedback.id)

    async def update_feedback(
        self,
        feedback_id: uuid.UUID,
        patch: FeedbackUpdate,
        actor: Actor,
    ) -> Feedback:
        """Triage a feedback item (admin only).

        Raises:
            ResourceNotFound: Feedback or assignee does not exist.
            PermissionDenied: Caller is not an admin.
        """
        feedback = await self.get_or_raise(feedback_id)
        authorize(actor, Operation.UPDATE_FEEDBACK)

        data = patch.model_dump(exclude_unset=True)
        assignee_id = data.pop("assigned_to", None)
        if assignee_id is not None:
            if await self.db.get(User, assignee_id) is None:
                raise ResourceNotFound("User", assignee_id)
            data["assigned_to_id"] = assignee_id

        changed = self.apply_patch(feedback, data)
        await self.commit()

        self.logger.info("Feedback updated", feedback_id=str(feedback.id), changes=changed)
        return await self.reload(feedback.id)

    async def delete_feedback(self, feedback_id: uuid.UUID, actor: Actor) -> None:
        feedback = await self.get_or_raise(feedback_id)
        authorize(actor, Operation.DELETE_FEEDBACK)
        await self.delete(feedback)
