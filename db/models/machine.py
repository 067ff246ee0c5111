"""MIC Service — Machine ORM Model.

Defines the Machine entity: a physical asset on the shop floor with an
operational status, three performance gauges and a maintenance schedule.
"""

from __future__ import annotations

from sqlalchemy import Column, DateTime, Float, ForeignKey, Integer, String, Text, Uuid
from sqlalchemy.orm import relationship

from db.base import Base, TimestampMixin, UUIDPrimaryKeyMixin, enum_type, utcnow
from schemas.machine import MachineStatus


class Machine(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """Machine entity representing a physical asset."""
    __tablename__ = "machines"

    name = Column(String(255), nullable=False, index=True)
    model = Column(String(255), nullable=False)
    serial_number = Column(String(255), nullable=False, unique=True)
    location = Column(String(255), nullable=False, index=True)
    description = Column(Text, nullable=True)
    manufacturer = Column(String(255), nullable=True)
    notes = Column(Text, nullable=True)

    status = Column(
        enum_type(MachineStatus),
        nullable=False,
        default=MachineStatus.OPERATIONAL,
        index=True,
    )

    # Maintenance schedule
    installation_date = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    last_maintenance = Column(DateTime(timezone=True), nullable=True)
    next_scheduled_maintenance = Column(DateTime(timezone=True), nullable=True)
    maintenance_interval = Column(Integer, nullable=False, default=90)  # days

    # Gauges, conventionally 0-100
    performance = Column(Float, nullable=False, default=100.0)
    availability = Column(Float, nullable=False, default=100.0)
    quality = Column(Float, nullable=False, default=100.0)

    created_by_id = Column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_by = relationship("User", foreign_keys=[created_by_id], lazy="selectin")

    @property
    def metrics(self) -> dict[str, float]:
        return {
            "performance": self.performance,
            "availability": self.availability,
            "quality": self.quality,
        }

    def __repr__(self) -> str:
        return f"<Machine {self.serial_number} ({self.status})>"
