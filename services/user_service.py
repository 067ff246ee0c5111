"""MIC Service — User Service.

Account management (admin), self-service registration and profile edits,
and credential checks for login.
"""

from __future__ import annotations

import uuid
from typing import Any

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from config import get_settings
from core.exceptions import AuthenticationFailed, ConflictError
from db.models import User
from logger import get_logger
from schemas.security import (
    Actor,
    ProfileUpdate,
    RegisterRequest,
    UserCreate,
    UserRole,
    UserUpdate,
)
from services.alert_filters import LIKE_ESCAPE, escape_like
from services.auth_service import AuthService, get_auth_service
from services.base import BaseService
from services.rbac_service import Operation, authorize

logger = get_logger(__name__)

SELF_REGISTER_ROLES = frozenset({UserRole.USER, UserRole.TECHNICIAN})


class UserService(BaseService[User]):
    """Service for user accounts.

    Passwords are hashed here and never leave this module in plain text.
    """

    resource_name = "User"

    def __init__(self, db: AsyncSession, auth: AuthService | None = None):
        super().__init__(User, db)
        self.auth = auth or get_auth_service()
        settings = get_settings().alerts
        self.default_page_size = settings.default_page_size
        self.max_page_size = settings.max_page_size

    # =========================================================================
    # Lookups
    # =========================================================================

    async def get_by_email(self, email: str) -> User | None:
        return await self.db.scalar(select(User).where(User.email == email.lower()))

    async def _ensure_email_free(self, email: str, exclude_id: uuid.UUID | None = None) -> None:
        existing = await self.get_by_email(email)
        if existing is not None and existing.id != exclude_id:
            raise ConflictError("User", "email", email)

    async def list_users(
        self,
        actor: Actor,
        role: UserRole | None = None,
        is_active: bool | None = None,
        search: str | None = None,
        page: int = 1,
        limit: int | None = None,
    ) -> tuple[list[User], int, int]:
        """List accounts, newest first (admin only).

        Returns:
            ``(items, total_count, limit)``.
        """
        authorize(actor, Operation.MANAGE_USERS)
        limit = min(limit or self.default_page_size, self.max_page_size)

        conditions: list[Any] = []
        if role is not None:
            conditions.append(User.role == role)
        if is_active is not None:
            conditions.append(User.is_active == is_active)
        term = (search or "").strip()
        if term:
            pattern = f"%{escape_like(term)}%"
            conditions.append(
                or_(
                    User.name.ilike(pattern, escape=LIKE_ESCAPE),
                    User.email.ilike(pattern, escape=LIKE_ESCAPE),
                    User.department.ilike(pattern, escape=LIKE_ESCAPE),
                )
            )

        items, total = await self.paginate(
            conditions,
            order_by=(User.created_at.desc(), User.id.desc()),
            page=page,
            limit=limit,
        )
        return items, total, limit

    async def get_user(self, user_id: uuid.UUID, actor: Actor) -> User:
        authorize(actor, Operation.MANAGE_USERS)
        return await self.get_or_raise(user_id)

    # =========================================================================
    # Admin management
    # =========================================================================

    async def create_user(self, payload: UserCreate, actor: Actor | None = None) -> User:
        """Create an account.

        Args:
            payload: Account fields including the plain password.
            actor: The admin performing the action; None for registration.

        Raises:
            ConflictError: Email already in use.
        """
        if actor is not None:
            authorize(actor, Operation.MANAGE_USERS)
        await self._ensure_email_free(payload.email)

        user = User(
            name=payload.name,
            email=payload.email.lower(),
            hashed_password=await self.auth.hash_password(payload.password.get_secret_value()),
            role=payload.role,
            department=payload.department,
            contact_number=payload.contact_number,
            is_active=payload.is_active,
        )
        self.db.add(user)
        await self.commit(conflict_field="email", conflict_value=payload.email)

        self.logger.info("User created", user_id=str(user.id), role=user.role.value)
        return user

    async def update_user(self, user_id: uuid.UUID, patch: UserUpdate, actor: Actor) -> User:
        """Partially update an account. A new password is re-hashed."""
        authorize(actor, Operation.MANAGE_USERS)
        user = await self.get_or_raise(user_id)

        data = patch.model_dump(exclude_unset=True)
        password = data.pop("password", None)

        email = data.get("email")
        if email and email != user.email:
            await self._ensure_email_free(email, exclude_id=user.id)

        changed = self.apply_patch(user, data)
        if password is not None:
            user.hashed_password = await self.auth.hash_password(password.get_secret_value())
            changed.append("password")

        await self.commit(conflict_field="email", conflict_value=email)
        self.logger.info("User updated", user_id=str(user.id), changes=changed)
        return user

    async def delete_user(self, user_id: uuid.UUID, actor: Actor) -> None:
        """Hard-delete an account.

        Raises:
            ResourceNotFound: Checked before the self-delete rule.
            PermissionDenied: Not an admin, or deleting one's own account.
        """
        user = await self.get_or_raise(user_id)
        authorize(actor, Operation.DELETE_USER, user.id)
        await self.delete(user)

    # =========================================================================
    # Self service
    # =========================================================================

    async def register(self, payload: RegisterRequest) -> User:
        """Public sign-up. Roles other than user/technician become user."""
        try:
            role = UserRole((payload.role or UserRole.USER.value).lower())
        except ValueError:
            role = UserRole.USER
        if role not in SELF_REGISTER_ROLES:
            self.logger.warning("Registration role downgraded", requested_role=payload.role)
            role = UserRole.USER

        return await self.create_user(
            UserCreate(
                name=payload.name,
                email=payload.email,
                password=payload.password,
                role=role,
            )
        )

    async def authenticate(self, email: str, password: str) -> User:
        """Check login credentials.

        Raises:
            AuthenticationFailed: Unknown email, wrong password, or
                deactivated account.
        """
        user = await self.get_by_email(email)
        if user is None or not await self.auth.verify_password(password, user.hashed_password):
            self.logger.warning("login_failed")
            raise AuthenticationFailed()
        if not user.is_active:
            self.logger.warning("login_rejected_inactive", user_id=str(user.id))
            raise AuthenticationFailed("Your account has been deactivated. Please contact an administrator.")

        self.logger.info("login_success", user_id=str(user.id))
        return user

    def issue_token(self, user: User) -> str:
        return self.auth.create_access_token(user_id=str(user.id), name=user.name, role=user.role)

    async def update_profile(self, actor: Actor, patch: ProfileUpdate) -> User:
        """Let a user edit their own name, password, phone and department."""
        user = await self.get_or_raise(actor.id)

        data = patch.model_dump(exclude_unset=True)
        password = data.pop("password", None)

        changed = self.apply_patch(user, data)
        if password is not None:
            user.hashed_password = await self.auth.hash_password(password.get_secret_value())
            changed.append("password")

        await self.commit()
        self.logger.info("Profile updated", user_id=str(user.id), changes=changed)
        return user
