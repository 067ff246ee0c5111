"""MIC Service — FastAPI Dependencies.

Dependency injection for authentication and authorization.

The bearer token only identifies the caller; the role and active flag
are read from the users table on every request, so a demotion or
deactivation takes effect immediately.

Usage:
    from dependencies import CurrentActor, AdminActor

    @router.get("/alerts")
    async def list_alerts(actor: CurrentActor):
        ...

    @router.delete("/users/{user_id}")
    async def delete_user(actor: AdminActor):
        ...
"""

from __future__ import annotations

import uuid
from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from db.models import User
from logger import get_logger, user_id_var
from schemas.security import Actor, TokenData, UserRole
from services.auth_service import AuthService, InvalidTokenError, get_auth_service
from services.rbac_service import Operation, roles_for

logger = get_logger(__name__)

# =============================================================================
# Security Scheme
# =============================================================================

_bearer_scheme = HTTPBearer(
    scheme_name="JWT",
    description="Enter your JWT access token",
    auto_error=False,  # missing header is reported as 401 below
)

_UNAUTHORIZED_HEADERS = {"WWW-Authenticate": "Bearer"}


# =============================================================================
# Authentication Dependencies
# =============================================================================

async def get_token_data(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(_bearer_scheme)],
    auth_service: Annotated[AuthService, Depends(get_auth_service)],
) -> TokenData:
    """Extract and validate the JWT from the Authorization header.

    Raises:
        HTTPException: 401 if the header is missing or the token is invalid.
    """
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authorized, no token",
            headers=_UNAUTHORIZED_HEADERS,
        )

    try:
        return auth_service.verify_token(credentials.credentials)
    except InvalidTokenError as exc:
        logger.warning("Invalid token rejected")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authorized, token failed",
            headers=_UNAUTHORIZED_HEADERS,
        ) from exc


async def get_current_user(
    token_data: Annotated[TokenData, Depends(get_token_data)],
    db: Annotated[AsyncSession, Depends(get_db)],
    request: Request,
) -> User:
    """Load the account named by the token.

    Raises:
        HTTPException: 401 if the account no longer exists, 403 if it has
            been deactivated.
    """
    try:
        user_id = uuid.UUID(token_data.sub)
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authorized, token failed",
            headers=_UNAUTHORIZED_HEADERS,
        ) from exc

    user = await db.get(User, user_id)
    if user is None:
        logger.warning("Token for unknown user", user_id=token_data.sub)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authorized, user not found",
            headers=_UNAUTHORIZED_HEADERS,
        )

    if not user.is_active:
        logger.warning("Inactive user attempted access", user_id=str(user.id))
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User account is deactivated",
        )

    request.state.user_id = str(user.id)
    user_id_var.set(str(user.id))
    return user


async def get_current_actor(
    user: Annotated[User, Depends(get_current_user)],
) -> Actor:
    """The caller as an immutable (id, role, name) triple."""
    return Actor(id=user.id, role=user.role, name=user.name)


# =============================================================================
# Generic Role Checker
# =============================================================================

class RoleChecker:
    """Callable dependency that admits only the listed roles.

    Example:
        @router.post("/machines")
        async def create_machine(
            actor: Actor = Depends(RoleChecker([UserRole.TECHNICIAN, UserRole.ADMIN])),
        ):
            ...

        # Or derive the roles from the access policy
        RoleChecker.for_operation(Operation.DELETE_MACHINE)
    """

    def __init__(self, required_roles: list[str | UserRole] | frozenset[UserRole]) -> None:
        if not required_roles:
            raise ValueError("required_roles cannot be empty")
        try:
            self.required_roles: frozenset[UserRole] = frozenset(
                UserRole(str(role.value if isinstance(role, UserRole) else role).lower().strip())
                for role in required_roles
            )
        except ValueError as exc:
            raise ValueError(
                f"Invalid role in {list(required_roles)}. "
                f"Valid roles are: {[r.value for r in UserRole]}"
            ) from exc
        self._role_names = sorted(r.value for r in self.required_roles)

    @classmethod
    def for_operation(cls, operation: Operation) -> "RoleChecker":
        return cls(roles_for(operation))

    async def __call__(
        self,
        actor: Annotated[Actor, Depends(get_current_actor)],
    ) -> Actor:
        if actor.role not in self.required_roles:
            logger.warning(
                "User lacks required role",
                user_id=str(actor.id),
                user_role=actor.role.value,
                required_roles=self._role_names,
            )
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"User role {actor.role.value} is not authorized to access this route",
            )
        return actor

    def __repr__(self) -> str:
        return f"RoleChecker(required_roles={self._role_names})"


# =============================================================================
# Convenience Aliases
# =============================================================================

require_staff = RoleChecker([UserRole.TECHNICIAN, UserRole.ADMIN])
require_admin = RoleChecker([UserRole.ADMIN])

CurrentUser = Annotated[User, Depends(get_current_user)]
CurrentActor = Annotated[Actor, Depends(get_current_actor)]
StaffActor = Annotated[Actor, Depends(require_staff)]
AdminActor = Annotated[Actor, Depends(require_admin)]
