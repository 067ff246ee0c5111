"""MIC Service — Feedback Schemas.

Suggestions, issue reports and praise from users of the system. Anyone
can submit; triage fields (status, assignee, response) are admin-only.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from schemas.security import UserRef


class FeedbackType(str, Enum):
    SUGGESTION = "suggestion"
    ISSUE = "issue"
    PRAISE = "praise"
    OTHER = "other"


class FeedbackPriority(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class FeedbackStatus(str, Enum):
    OPEN = "open"
    UNDER_REVIEW = "under_review"
    IMPLEMENTED = "implemented"
    DECLINED = "declined"
    CLOSED = "closed"


class FeedbackCreate(BaseModel):
    """Payload for submitting feedback."""
    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(..., min_length=1, max_length=255)
    description: str = Field(..., min_length=1)
    type: FeedbackType = FeedbackType.SUGGESTION
    priority: FeedbackPriority = FeedbackPriority.MEDIUM
    category: Optional[str] = Field(None, max_length=100)
    attachments: list[str] = Field(default_factory=list)


class FeedbackUpdate(BaseModel):
    """Admin triage of a feedback item. Omitted fields are left alone."""
    model_config = ConfigDict(str_strip_whitespace=True)

    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = Field(None, min_length=1)
    type: Optional[FeedbackType] = None
    priority: Optional[FeedbackPriority] = None
    category: Optional[str] = Field(None, max_length=100)
    status: Optional[FeedbackStatus] = None
    assigned_to: Optional[uuid.UUID] = None
    response: Optional[str] = None


class FeedbackRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    title: str
    description: str
    type: FeedbackType
    priority: FeedbackPriority
    category: Optional[str] = None
    status: FeedbackStatus
    created_by_id: Optional[uuid.UUID] = None
    created_by: Optional[UserRef] = None
    assigned_to_id: Optional[uuid.UUID] = None
    assigned_to: Optional[UserRef] = None
    response: Optional[str] = None
    attachments: list[str] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime
