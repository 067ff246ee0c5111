"""MIC Service — Maintenance Record Schemas."""

from __future__ import annotations

import uuid
from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from schemas.machine import MachineRef
from schemas.security import UserRef


class MaintenanceType(str, Enum):
    PREVENTIVE = "preventive"
    CORRECTIVE = "corrective"
    PREDICTIVE = "predictive"
    ROUTINE = "routine"


class MaintenanceStatus(str, Enum):
    SCHEDULED = "scheduled"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class MaintenancePriority(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class MaintenanceCreate(BaseModel):
    """Payload for scheduling maintenance on a machine."""
    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(..., min_length=1, max_length=255)
    description: str = Field(..., min_length=1)
    machine_id: uuid.UUID
    maintenance_type: MaintenanceType = MaintenanceType.PREVENTIVE
    scheduled_date: datetime
    estimated_duration: float = Field(..., gt=0, description="Hours")
    required_parts: list[str] = Field(default_factory=list)
    assigned_technicians: list[uuid.UUID] = Field(default_factory=list)
    priority: MaintenancePriority = MaintenancePriority.MEDIUM
    notes: Optional[str] = None
    notify_users: bool = True
    cost: float = Field(0, ge=0)


class MaintenanceUpdate(BaseModel):
    """Partial update. Moving to ``completed`` stamps the record and the machine."""
    model_config = ConfigDict(str_strip_whitespace=True)

    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = Field(None, min_length=1)
    maintenance_type: Optional[MaintenanceType] = None
    scheduled_date: Optional[datetime] = None
    completed_date: Optional[datetime] = None
    estimated_duration: Optional[float] = Field(None, gt=0)
    actual_duration: Optional[float] = Field(None, ge=0)
    required_parts: Optional[list[str]] = None
    assigned_technicians: Optional[list[uuid.UUID]] = None
    status: Optional[MaintenanceStatus] = None
    priority: Optional[MaintenancePriority] = None
    notes: Optional[str] = None
    notify_users: Optional[bool] = None
    cost: Optional[float] = Field(None, ge=0)


class MaintenanceRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    title: str
    description: str
    machine_id: Optional[uuid.UUID] = None
    machine: Optional[MachineRef] = None
    maintenance_type: MaintenanceType
    scheduled_date: datetime
    completed_date: Optional[datetime] = None
    estimated_duration: float
    actual_duration: Optional[float] = None
    required_parts: list[str] = Field(default_factory=list)
    technicians: list[UserRef] = Field(default_factory=list)
    status: MaintenanceStatus
    priority: MaintenancePriority
    created_by: Optional[UserRef] = None
    completed_by: Optional[UserRef] = None
    notes: Optional[str] = None
    notify_users: bool
    cost: float
    created_at: datetime
    updated_at: datetime
