"""MIC Service — Maintenance Record ORM Model."""

from __future__ import annotations

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    String,
    Table,
    Text,
    Uuid,
)
from sqlalchemy.orm import relationship

from db.base import Base, TimestampMixin, UUIDPrimaryKeyMixin, enum_type
from schemas.maintenance import MaintenancePriority, MaintenanceStatus, MaintenanceType

maintenance_technicians = Table(
    "maintenance_technicians",
    Base.metadata,
    Column(
        "maintenance_id",
        Uuid,
        ForeignKey("maintenance_records.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column("user_id", Uuid, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
)


class MaintenanceRecord(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """Scheduled or completed maintenance work on a machine."""
    __tablename__ = "maintenance_records"

    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    machine_id = Column(
        Uuid, ForeignKey("machines.id", ondelete="SET NULL"), nullable=True, index=True
    )
    maintenance_type = Column(
        enum_type(MaintenanceType), nullable=False, default=MaintenanceType.PREVENTIVE
    )
    status = Column(
        enum_type(MaintenanceStatus), nullable=False, default=MaintenanceStatus.SCHEDULED, index=True
    )
    priority = Column(
        enum_type(MaintenancePriority), nullable=False, default=MaintenancePriority.MEDIUM
    )

    scheduled_date = Column(DateTime(timezone=True), nullable=False, index=True)
    completed_date = Column(DateTime(timezone=True), nullable=True)
    estimated_duration = Column(Float, nullable=False)  # hours
    actual_duration = Column(Float, nullable=True)

    required_parts = Column(JSON, nullable=False, default=list)
    notes = Column(Text, nullable=True)
    notify_users = Column(Boolean, nullable=False, default=True)
    cost = Column(Float, nullable=False, default=0.0)

    created_by_id = Column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    completed_by_id = Column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    machine = relationship("Machine", lazy="selectin")
    created_by = relationship("User", foreign_keys=[created_by_id], lazy="selectin")
    completed_by = relationship("User", foreign_keys=[completed_by_id], lazy="selectin")
    technicians = relationship("User", secondary=maintenance_technicians, lazy="selectin")
