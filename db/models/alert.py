"""MIC Service — Alert ORM Model."""

from __future__ import annotations

from sqlalchemy import JSON, Column, DateTime, ForeignKey, Index, String, Text, Uuid
from sqlalchemy.orm import relationship

from db.base import Base, TimestampMixin, UUIDPrimaryKeyMixin, enum_type
from schemas.alert import AlertPriority, AlertStatus


class Alert(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """A problem report filed against a machine."""
    __tablename__ = "alerts"
    __table_args__ = (
        # outstanding-critical recount on resolve
        Index("ix_alerts_machine_priority_status", "machine_id", "priority", "status"),
    )

    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    machine_id = Column(
        Uuid, ForeignKey("machines.id", ondelete="SET NULL"), nullable=True, index=True
    )
    priority = Column(enum_type(AlertPriority), nullable=False, default=AlertPriority.MEDIUM)
    status = Column(enum_type(AlertStatus), nullable=False, default=AlertStatus.OPEN, index=True)

    created_by_id = Column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    assigned_to_id = Column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    resolved_by_id = Column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    resolved_at = Column(DateTime(timezone=True), nullable=True)

    photos = Column(JSON, nullable=False, default=list)

    machine = relationship("Machine", lazy="selectin")
    created_by = relationship("User", foreign_keys=[created_by_id], lazy="selectin")
    assigned_to = relationship("User", foreign_keys=[assigned_to_id], lazy="selectin")
    resolved_by = relationship("User", foreign_keys=[resolved_by_id], lazy="selectin")

    def __repr__(self) -> str:
        return f"<Alert {self.id} {self.priority}/{self.status}>"
