"""MIC Service — ORM models.

Importing this package registers every table on ``Base.metadata``.
"""

from db.models.alert import Alert
from db.models.feedback import Feedback
from db.models.machine import Machine
from db.models.maintenance import MaintenanceRecord, maintenance_technicians
from db.models.user import User

__all__ = [
    "Alert",
    "Feedback",
    "Machine",
    "MaintenanceRecord",
    "User",
    "maintenance_technicians",
]
