"""MIC Service — Feedback ORM Model."""

from __future__ import annotations

from sqlalchemy import JSON, Column, ForeignKey, String, Text, Uuid
from sqlalchemy.orm import relationship

from db.base import Base, TimestampMixin, UUIDPrimaryKeyMixin, enum_type
from schemas.feedback import FeedbackPriority, FeedbackStatus, FeedbackType


class Feedback(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """A suggestion or issue report about the service itself."""
    __tablename__ = "feedback"

    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    type = Column(enum_type(FeedbackType), nullable=False, default=FeedbackType.SUGGESTION, index=True)
    priority = Column(enum_type(FeedbackPriority), nullable=False, default=FeedbackPriority.MEDIUM)
    category = Column(String(100), nullable=True)
    status = Column(enum_type(FeedbackStatus), nullable=False, default=FeedbackStatus.OPEN, index=True)

    created_by_id = Column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    assigned_to_id = Column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    response = Column(Text, nullable=True)
    attachments = Column(JSON, nullable=False, default=list)

    created_by = relationship("User", foreign_keys=[created_by_id], lazy="selectin")
    assigned_to = relationship("User", foreign_keys=[assigned_to_id], lazy="selectin")

    def __repr__(self) -> str:
        return f"<Feedback {self.id} {self.type}/{self.status}>"
