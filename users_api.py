"""
Users API Module
Admin-only account management.

Import this into api_server.py to add the routes.
"""

import uuid
from typing import Any, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from dependencies import RoleChecker
from schemas.response import APIResponse
from schemas.security import Actor, UserCreate, UserRead, UserRole, UserUpdate
from services.rbac_service import Operation
from services.user_service import UserService

users_router = APIRouter(prefix="/api/users", tags=["Users"])

require_user_admin = RoleChecker.for_operation(Operation.MANAGE_USERS)


def get_user_service(db: AsyncSession = Depends(get_db)) -> UserService:
    return UserService(db)


@users_router.get("", response_model=APIResponse[list[UserRead]])
async def list_users(
    actor: Actor = Depends(require_user_admin),
    service: UserService = Depends(get_user_service),
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1),
    role: Optional[UserRole] = None,
    is_active: Optional[bool] = None,
    search: Optional[str] = Query(None, max_length=255),
):
    items, total, page_size = await service.list_users(
        actor,
        role=role,
        is_active=is_active,
        search=search,
        page=page,
        limit=limit,
    )
    return APIResponse.paginated(
        [UserRead.model_validate(user) for user in items],
        page=page,
        page_size=page_size,
        total_count=total,
    )


@users_router.get("/{user_id}", response_model=APIResponse[UserRead])
async def get_user(
    user_id: uuid.UUID,
    actor: Actor = Depends(require_user_admin),
    service: UserService = Depends(get_user_service),
):
    user = await service.get_user(user_id, actor)
    return APIResponse.success(UserRead.model_validate(user))


@users_router.post(
    "",
    response_model=APIResponse[UserRead],
    status_code=status.HTTP_201_CREATED,
)
async def create_user(
    payload: UserCreate,
    actor: Actor = Depends(require_user_admin),
    service: UserService = Depends(get_user_service),
):
    user = await service.create_user(payload, actor)
    return APIResponse.success(UserRead.model_validate(user))


@users_router.put("/{user_id}", response_model=APIResponse[UserRead])
async def update_user(
    user_id: uuid.UUID,
    patch: UserUpdate,
    actor: Actor = Depends(require_user_admin),
    service: UserService = Depends(get_user_service),
):
    user = await service.update_user(user_id, patch, actor)
    return APIResponse.success(UserRead.model_validate(user))


@users_router.delete("/{user_id}", response_model=APIResponse[dict[str, Any]])
async def delete_user(
    user_id: uuid.UUID,
    actor: Actor = Depends(require_user_admin),
    service: UserService = Depends(get_user_service),
):
    """Admins cannot delete their own account."""
    await service.delete_user(user_id, actor)
    return APIResponse.success({"id": str(user_id), "message": "User removed"})
