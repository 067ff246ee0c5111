"""MIC Service — Service Layer.

This package contains business logic services that encapsulate
domain operations and keep API routes thin.

Services:
    - AuthService: Password hashing, JWT token management
    - AlertService: Alert lifecycle and machine status coupling
    - FeedbackService: Feedback submission and admin triage
    - MachineService: Machine registry and maintenance calendar
    - MaintenanceService: Maintenance scheduling and completion
    - UserService: Accounts, registration, login
    - BaseService: Shared lookup/paginate/commit helpers

Usage:
    from services import AlertService

    # In FastAPI route
    async def list_alerts(actor: CurrentActor, db: AsyncSession = Depends(get_db)):
        items, total, limit = await AlertService(db).list_alerts(actor)
"""

from services.alert_service import AlertService
from services.auth_service import AuthService, get_auth_service
from services.base import BaseService
from services.feedback_service import FeedbackService
from services.machine_service import MachineService
from services.maintenance_service import MaintenanceService
from services.user_service import UserService

__all__ = [
    "AlertService",
    "AuthService",
    "BaseService",
    "FeedbackService",
    "MachineService",
    "MaintenanceService",
    "UserService",
    "get_auth_service",
]
