"""MIC Service — Alert Schemas.

Request and response models for the alert workflow. Patch payloads are
explicit: every field is optional and omitted (or null) fields leave the
stored value untouched.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from schemas.machine import MachineRef
from schemas.security import UserRef


class AlertStatus(str, Enum):
    OPEN = "open"
    ASSIGNED = "assigned"
    IN_PROGRESS = "in_progress"
    RESOLVED = "resolved"
    CLOSED = "closed"


class AlertPriority(str, Enum):
    CRITICAL = "critical"
    MEDIUM = "medium"
    LOW = "low"


OUTSTANDING_STATUSES: frozenset[AlertStatus] = frozenset({
    AlertStatus.OPEN,
    AlertStatus.ASSIGNED,
    AlertStatus.IN_PROGRESS,
})


def _not_blank(value: Optional[str]) -> Optional[str]:
    if value is not None and not value.strip():
        raise ValueError("must not be blank")
    return value


class AlertCreate(BaseModel):
    """Payload for filing a new alert."""
    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(..., min_length=1, max_length=255)
    description: str = Field(..., min_length=1)
    machine_id: uuid.UUID
    priority: AlertPriority = AlertPriority.MEDIUM
    photos: list[str] = Field(default_factory=list)


class AlertUpdate(BaseModel):
    """Partial update for an alert."""
    model_config = ConfigDict(str_strip_whitespace=True)

    title: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = None
    priority: Optional[AlertPriority] = None
    status: Optional[AlertStatus] = None
    assigned_to: Optional[uuid.UUID] = None

    @field_validator("title", "description")
    @classmethod
    def _reject_blank(cls, v: Optional[str]) -> Optional[str]:
        return _not_blank(v)


class AlertRead(BaseModel):
    """Alert enriched with display references."""
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    title: str
    description: str
    machine_id: Optional[uuid.UUID] = None
    machine: Optional[MachineRef] = None
    priority: AlertPriority
    status: AlertStatus
    created_by_id: Optional[uuid.UUID] = None
    created_by: Optional[UserRef] = None
    assigned_to_id: Optional[uuid.UUID] = None
    assigned_to: Optional[UserRef] = None
    resolved_by_id: Optional[uuid.UUID] = None
    resolved_by: Optional[UserRef] = None
    resolved_at: Optional[datetime] = None
    photos: list[str] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime
