"""MIC Service — Pydantic schemas.

Request/response models grouped by resource. Enums used by the ORM models
live here so the storage and API layers share one definition.
"""

from schemas.alert import (
    AlertCreate,
    AlertPriority,
    AlertRead,
    AlertStatus,
    AlertUpdate,
)
from schemas.feedback import (
    FeedbackCreate,
    FeedbackPriority,
    FeedbackRead,
    FeedbackStatus,
    FeedbackType,
    FeedbackUpdate,
)
from schemas.machine import (
    MachineCreate,
    MachineMetrics,
    MachineMetricsUpdate,
    MachineRead,
    MachineStatus,
    MachineStatusUpdate,
    MachineUpdate,
)
from schemas.maintenance import (
    MaintenanceCreate,
    MaintenancePriority,
    MaintenanceRead,
    MaintenanceStatus,
    MaintenanceType,
    MaintenanceUpdate,
)
from schemas.response import APIResponse, ErrorResponse, ORJSONResponse
from schemas.security import (
    Actor,
    AuthResponse,
    LoginRequest,
    ProfileUpdate,
    RegisterRequest,
    TokenData,
    UserCreate,
    UserRead,
    UserRole,
    UserUpdate,
)

__all__ = [
    "APIResponse",
    "Actor",
    "AlertCreate",
    "AlertPriority",
    "AlertRead",
    "AlertStatus",
    "AlertUpdate",
    "AuthResponse",
    "ErrorResponse",
    "FeedbackCreate",
    "FeedbackPriority",
    "FeedbackRead",
    "FeedbackStatus",
    "FeedbackType",
    "FeedbackUpdate",
    "LoginRequest",
    "MachineCreate",
    "MachineMetrics",
    "MachineMetricsUpdate",
    "MachineRead",
    "MachineStatus",
    "MachineStatusUpdate",
    "MachineUpdate",
    "MaintenanceCreate",
    "MaintenancePriority",
    "MaintenanceRead",
    "MaintenanceStatus",
    "MaintenanceType",
    "MaintenanceUpdate",
    "ORJSONResponse",
    "ProfileUpdate",
    "RegisterRequest",
    "TokenData",
    "UserCreate",
    "UserRead",
    "UserRole",
    "UserUpdate",
]
