"""MIC Service — Security & User Schemas.

Pydantic models for authentication, authorization, and user management.

Notes:
    - Password hashes are never part of a response model
    - Plain passwords use SecretStr so they never reach the logs
    - Token claims are immutable after decoding
"""

from __future__ import annotations

import uuid
from datetime import datetime
from enum import Enum
from typing import Annotated

from pydantic import (
    BaseModel,
    ConfigDict,
    EmailStr,
    Field,
    SecretStr,
    field_validator,
)


# =============================================================================
# Enums
# =============================================================================

class UserRole(str, Enum):
    """User authorization roles.

    - user: Files alerts and sees only the alerts they filed.
    - technician: Works alerts (open or assigned to them), manages machines
      and maintenance.
    - admin: Everything, including user management and deletes.
    """
    USER = "user"
    TECHNICIAN = "technician"
    ADMIN = "admin"


STAFF_ROLES: frozenset[UserRole] = frozenset({UserRole.TECHNICIAN, UserRole.ADMIN})


# =============================================================================
# Actor / Token Models
# =============================================================================

class Actor(BaseModel):
    """The authenticated identity performing an operation."""

    model_config = ConfigDict(frozen=True)

    id: uuid.UUID
    role: UserRole
    name: str = ""

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    @property
    def is_staff(self) -> bool:
        return self.role in STAFF_ROLES


class TokenData(BaseModel):
    """Decoded JWT token payload.

    Attributes:
        sub: Subject (user ID).
        name: Display name at issuance time.
        role: Role at issuance time (the stored role wins on each request).
        exp: Token expiration timestamp.
        iat: Token issued-at timestamp.
        jti: Unique token identifier.
    """

    model_config = ConfigDict(frozen=True)

    sub: Annotated[str, Field(description="Subject (user ID)")]
    name: str = Field(default="", description="User display name")
    role: UserRole = Field(default=UserRole.USER, description="User role")
    exp: datetime = Field(..., description="Expiration time")
    iat: datetime = Field(..., description="Issued at time")
    jti: Annotated[
        str,
        Field(default_factory=lambda: str(uuid.uuid4()), description="Token ID"),
    ]

    @property
    def user_id(self) -> str:
        """Alias for sub (subject) claim."""
        return self.sub

    @property
    def is_expired(self) -> bool:
        from datetime import timezone
        return datetime.now(timezone.utc) > self.exp


# =============================================================================
# Authentication Requests
# =============================================================================

class LoginRequest(BaseModel):
    """User login credentials."""

    model_config = ConfigDict(str_strip_whitespace=True)

    email: EmailStr = Field(..., description="Account email", examples=["tech@micservice.com"])
    password: SecretStr = Field(..., min_length=1, max_length=128)

    @field_validator("email")
    @classmethod
    def _lower_email(cls, v: str) -> str:
        return v.lower()


class RegisterRequest(BaseModel):
    """Self-service registration.

    Only ``user`` and ``technician`` may be requested; anything else is
    downgraded to ``user`` by the service.
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    password: SecretStr = Field(..., min_length=8, max_length=128)
    role: str | None = Field(None, description="Requested role")

    @field_validator("email")
    @classmethod
    def _lower_email(cls, v: str) -> str:
        return v.lower()


class ProfileUpdate(BaseModel):
    """Fields a user may change on their own account."""

    model_config = ConfigDict(str_strip_whitespace=True)

    name: str | None = Field(None, min_length=1, max_length=255)
    password: SecretStr | None = Field(None, min_length=8, max_length=128)
    contact_number: str | None = Field(None, max_length=50)
    department: str | None = Field(None, max_length=255)


# =============================================================================
# User Models
# =============================================================================

class UserBase(BaseModel):
    """Base user fields shared across models."""

    model_config = ConfigDict(
        str_strip_whitespace=True,
        from_attributes=True,
    )

    name: str = Field(..., min_length=1, max_length=255, examples=["Jane Doe"])
    email: EmailStr = Field(..., description="Email address")
    role: UserRole = Field(default=UserRole.USER, description="User role")
    department: str | None = Field(None, max_length=255)
    contact_number: str | None = Field(None, max_length=50)
    is_active: bool = Field(default=True, description="Account active status")

    @field_validator("email")
    @classmethod
    def _lower_email(cls, v: str) -> str:
        return v.lower()


class UserCreate(UserBase):
    """Schema for creating a new user (admin)."""

    password: SecretStr = Field(..., min_length=8, max_length=128)


class UserUpdate(BaseModel):
    """Schema for updating user fields. Only provided fields are updated."""

    model_config = ConfigDict(str_strip_whitespace=True)

    name: str | None = Field(None, min_length=1, max_length=255)
    email: EmailStr | None = None
    role: UserRole | None = None
    password: SecretStr | None = Field(None, min_length=8, max_length=128)
    department: str | None = Field(None, max_length=255)
    contact_number: str | None = Field(None, max_length=50)
    is_active: bool | None = None

    @field_validator("email")
    @classmethod
    def _lower_email(cls, v: str | None) -> str | None:
        return v.lower() if v else v


class UserRead(BaseModel):
    """User model for API responses. Never carries the password hash."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    email: str
    role: UserRole
    department: str | None = None
    contact_number: str | None = None
    avatar: str | None = None
    is_active: bool
    created_at: datetime
    updated_at: datetime


class UserRef(BaseModel):
    """Display reference to a user embedded in other resources."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str


class AuthResponse(BaseModel):
    """Returned after successful login or registration."""

    user: UserRead
    token: str = Field(..., description="JWT access token")
    token_type: str = Field(default="bearer")
