"""MIC Service — User ORM Model."""

from __future__ import annotations

from sqlalchemy import Boolean, Column, String

from db.base import Base, TimestampMixin, UUIDPrimaryKeyMixin, enum_type
from schemas.security import UserRole


class User(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """Application account. Email is stored lower-cased."""
    __tablename__ = "users"

    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False, unique=True, index=True)
    hashed_password = Column(String(255), nullable=False)
    role = Column(enum_type(UserRole), nullable=False, default=UserRole.USER, index=True)
    department = Column(String(255), nullable=True)
    contact_number = Column(String(50), nullable=True)
    avatar = Column(String(1024), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)

    def __repr__(self) -> str:
        return f"<User {self.email} ({self.role})>"
