"""MIC Service — Machine Schemas.

Pydantic models for Machine API requests and responses.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from enum import Enum
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from schemas.security import UserRef


class MachineStatus(str, Enum):
    """Operational state of a machine."""
    OPERATIONAL = "operational"
    MAINTENANCE = "maintenance"
    ERROR = "error"
    OFFLINE = "offline"


class MachineMetrics(BaseModel):
    """Performance gauges, conventionally 0-100 but not range-checked."""
    model_config = ConfigDict(from_attributes=True)

    performance: float = 100.0
    availability: float = 100.0
    quality: float = 100.0


class MachineCreate(BaseModel):
    """Payload for creating a new machine."""
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1, max_length=255)
    model: str = Field(..., min_length=1, max_length=255)
    serial_number: str = Field(..., min_length=1, max_length=255)
    location: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    status: MachineStatus = MachineStatus.OPERATIONAL
    installation_date: Optional[datetime] = None
    manufacturer: Optional[str] = Field(None, max_length=255)
    maintenance_interval: Optional[Union[int, str]] = Field(
        None, description="Days between maintenance; 90 when omitted or non-numeric"
    )
    notes: Optional[str] = None


class MachineUpdate(BaseModel):
    """Payload for updating a machine. Omitted fields are left unchanged."""
    model_config = ConfigDict(str_strip_whitespace=True)

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    model: Optional[str] = Field(None, min_length=1, max_length=255)
    serial_number: Optional[str] = Field(None, min_length=1, max_length=255)
    location: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    status: Optional[MachineStatus] = None
    installation_date: Optional[datetime] = None
    manufacturer: Optional[str] = Field(None, max_length=255)
    maintenance_interval: Optional[Union[int, str]] = None
    notes: Optional[str] = None


class MachineStatusUpdate(BaseModel):
    """Payload for PUT /machines/{id}/status."""
    status: MachineStatus


class MachineMetricsUpdate(BaseModel):
    """Payload for PUT /machines/{id}/metrics. Omitted gauges are kept."""
    performance: Optional[float] = None
    availability: Optional[float] = None
    quality: Optional[float] = None


class MachineRef(BaseModel):
    """Display reference to a machine embedded in other resources."""
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    location: Optional[str] = None


class MachineRead(BaseModel):
    """Full Machine resource response."""
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    model: str
    serial_number: str
    location: str
    description: Optional[str] = None
    manufacturer: Optional[str] = None
    notes: Optional[str] = None
    status: MachineStatus
    installation_date: Optional[datetime] = None
    last_maintenance: Optional[datetime] = None
    next_scheduled_maintenance: Optional[datetime] = None
    maintenance_interval: int
    metrics: MachineMetrics
    created_by_id: Optional[uuid.UUID] = None
    created_by: Optional[UserRef] = None
    created_at: datetime
    updated_at: datetime
